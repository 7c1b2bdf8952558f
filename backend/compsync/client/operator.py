import logging
import random
import string
from typing import Any, Dict, Optional

import requests

from compsync.client.clock import DEFAULT_TIMEOUT
from compsync.errors import ControlError
from compsync.services.rounds.descriptor import RoundConfig

logger = logging.getLogger(__name__)


def generate_room_id(length: int = 6) -> str:
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


class ControlClient:
    """Posts START/STOP/RESET to the server's /api/broadcast endpoint."""

    def __init__(
        self,
        server_url: str,
        pin: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self.server_url = server_url.rstrip('/')
        self.pin = pin
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, message_type: str, room_id: str, config: Optional[RoundConfig] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {'type': message_type, 'roomId': room_id}
        if config is not None:
            body.update({
                'climbingDurationMs': config.climbing_duration_ms,
                'preparationDurationMs': config.preparation_duration_ms,
                'preparationEnabled': config.preparation_enabled,
                'recurring': config.recurring,
            })
        headers = {'X-Admin-Pin': self.pin} if self.pin else {}
        try:
            res = self.session.post(f"{self.server_url}/api/broadcast", json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ControlError(str(exc)) from exc
        if not 200 <= res.status_code < 300:
            raise ControlError(res.text or f"HTTP {res.status_code}", status_code=res.status_code)
        try:
            return res.json()
        except ValueError:
            return {'ok': True}


class OperatorConsole:
    """Operator-side state: what to start, whether a round is running, last status.

    ``running`` is updated optimistically as soon as the server acknowledges,
    not when displays catch up. A failed request changes nothing but the status
    text, so pressing the button again is always safe.
    """

    def __init__(self, client: ControlClient, room_id: Optional[str] = None, config: Optional[RoundConfig] = None):
        self.client = client
        self.room_id = room_id or generate_room_id()
        self.config = config or RoundConfig(climbing_duration_ms=300_000, preparation_duration_ms=60_000)
        self.running = False
        self.status: Optional[str] = None
        self.last_start_time: Optional[str] = None

    def _send(self, message_type: str, config: Optional[RoundConfig] = None) -> bool:
        self.status = None
        try:
            reply = self.client.send(message_type, self.room_id, config)
        except ControlError as exc:
            self.status = f"Error: {exc}"
            logger.error(f"[control-failed] room={self.room_id} type={message_type} {exc}")
            return False
        self.status = f"{message_type} sent"
        if message_type == 'START':
            self.running = True
            self.last_start_time = reply.get('startTime')
        else:
            self.running = False
        logger.info(f"[control-sent] room={self.room_id} type={message_type}")
        return True

    def start(self, config: Optional[RoundConfig] = None) -> bool:
        if config is not None:
            self.config = config
        return self._send('START', self.config)

    def stop(self) -> bool:
        return self._send('STOP')

    def reset(self) -> bool:
        return self._send('RESET')
