import logging
from typing import Callable, Optional

import socketio

from compsync.errors import ConfigError, StoreError
from compsync.services.rounds.descriptor import RoundDescriptor
from compsync.services.rounds.store import OnError, OnUpdate, normalize_room_id

logger = logging.getLogger(__name__)


class SocketRoundSubscription:
    """Follows one room's descriptor over the server's /ws Socket.IO namespace.

    The server answers every ``subscribe`` with the current descriptor, so
    re-subscribing on each (re)connect is all it takes to catch up after a
    network drop. Reconnecting is left to python-socketio's own retry loop.
    """

    def __init__(self, server_url: str, namespace: str = '/ws', client: Optional[socketio.Client] = None):
        self.server_url = server_url
        self.namespace = namespace
        self.client = client or socketio.Client(reconnection=True)

    def subscribe(self, room_id: str, on_update: OnUpdate, on_error: OnError = None) -> Callable[[], None]:
        key = normalize_room_id(room_id)
        ns = self.namespace

        def report(exc: Exception) -> None:
            if on_error is not None:
                on_error(exc)

        def handle_connect():
            logger.info(f"[store-connected] room={key} url={self.server_url}")
            self.client.emit('subscribe', {'roomId': key}, namespace=ns)

        def handle_round(data):
            if not isinstance(data, dict) or normalize_room_id(str(data.get('roomId', ''))) != key:
                return
            raw = data.get('round')
            if raw is None:
                on_update(None)
                return
            try:
                descriptor = RoundDescriptor.from_dict(raw)
            except ConfigError as exc:
                report(exc)
                return
            on_update(descriptor)

        def handle_disconnect(*args):
            report(StoreError('Connection to round store lost', reconnecting=True))

        def handle_connect_error(data=None):
            report(StoreError(f"Could not connect to round store: {data}", reconnecting=False))

        self.client.on('connect', handle_connect, namespace=ns)
        self.client.on('round', handle_round, namespace=ns)
        self.client.on('disconnect', handle_disconnect, namespace=ns)
        self.client.on('connect_error', handle_connect_error, namespace=ns)

        try:
            self.client.connect(self.server_url, namespaces=[ns])
        except socketio.exceptions.ConnectionError as exc:
            report(StoreError(f"Could not connect to round store: {exc}", reconnecting=False))

        def unsubscribe():
            if self.client.connected:
                self.client.emit('unsubscribe', {'roomId': key}, namespace=ns)
                self.client.disconnect()

        return unsubscribe
