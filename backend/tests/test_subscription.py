import socketio

from compsync.client.subscription import SocketRoundSubscription
from compsync.errors import ConfigError, StoreError
from conftest import make_descriptor


class FakeSocketClient:
    """Just enough of socketio.Client to drive the handlers by hand."""

    def __init__(self, fail=False):
        self.handlers = {}
        self.emitted = []
        self.connected = False
        self.fail = fail

    def on(self, event, handler, namespace=None):
        self.handlers[(event, namespace)] = handler

    def connect(self, url, namespaces=None):
        if self.fail:
            raise socketio.exceptions.ConnectionError('refused')
        self.connected = True
        self.fire('connect')

    def emit(self, event, data=None, namespace=None):
        self.emitted.append((event, data, namespace))

    def disconnect(self):
        self.connected = False

    def fire(self, event, *args):
        self.handlers[(event, '/ws')](*args)


def _subscribe(client, room='wall1'):
    updates, errors = [], []
    sub = SocketRoundSubscription('http://srv', client=client)
    unsubscribe = sub.subscribe(room, updates.append, errors.append)
    return updates, errors, unsubscribe


def test_subscribes_on_connect_and_parses_rounds():
    client = FakeSocketClient()
    updates, errors, _ = _subscribe(client)
    assert client.emitted == [('subscribe', {'roomId': 'WALL1'}, '/ws')]

    descriptor = make_descriptor()
    client.fire('round', {'roomId': 'WALL1', 'round': descriptor.to_dict()})
    client.fire('round', {'roomId': 'OTHER', 'round': descriptor.to_dict()})
    client.fire('round', {'roomId': 'WALL1', 'round': None})
    assert updates == [descriptor, None]
    assert errors == []


def test_resubscribes_after_reconnect():
    client = FakeSocketClient()
    _, errors, _ = _subscribe(client)
    client.fire('disconnect')
    assert isinstance(errors[0], StoreError)
    assert errors[0].reconnecting is True
    client.fire('connect')
    assert [e[0] for e in client.emitted] == ['subscribe', 'subscribe']


def test_malformed_round_reported_as_config_error():
    client = FakeSocketClient()
    updates, errors, _ = _subscribe(client)
    client.fire('round', {'roomId': 'WALL1', 'round': {'startTime': 'x'}})
    assert updates == []
    assert isinstance(errors[0], ConfigError)


def test_connection_failure_reported_offline():
    client = FakeSocketClient(fail=True)
    updates, errors, _ = _subscribe(client)
    assert updates == []
    assert isinstance(errors[0], StoreError)
    assert errors[0].reconnecting is False


def test_unsubscribe_leaves_and_disconnects():
    client = FakeSocketClient()
    _, _, unsubscribe = _subscribe(client)
    unsubscribe()
    assert client.emitted[-1] == ('unsubscribe', {'roomId': 'WALL1'}, '/ws')
    assert client.connected is False
