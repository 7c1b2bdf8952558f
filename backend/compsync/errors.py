class CompsyncError(Exception):
    """Base class for timer errors."""


class CalibrationError(CompsyncError):
    """The authoritative time probe was unreachable or answered garbage."""


class ConfigError(CompsyncError):
    """A round descriptor or request is missing fields or has bad values."""


class RoundNotFound(CompsyncError):
    def __init__(self, room_id: str):
        super().__init__(f"No round for room {room_id}")
        self.room_id = room_id


class ControlError(CompsyncError):
    """The control endpoint could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(CompsyncError):
    """The round store subscription dropped or could not connect."""

    def __init__(self, message: str, reconnecting: bool = False):
        super().__init__(message)
        self.reconnecting = reconnecting
