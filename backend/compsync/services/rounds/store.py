"""Round stores.

A store keeps at most one descriptor per room and has state semantics:
subscribing hands over the current descriptor (or None) right away, then
again after every mutation. Nothing else is retained, so a display that
joins mid-round sees exactly what one present from the start would see.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

from compsync.errors import RoundNotFound
from .descriptor import RoundDescriptor

OnUpdate = Callable[[Optional[RoundDescriptor]], None]
OnError = Callable[[Exception], None]

# Matches the width of the room_id column
MAX_ROOM_ID_LENGTH = 64

logger = logging.getLogger(__name__)


def normalize_room_id(room_id: str) -> str:
    return room_id.strip().upper()


def socket_room(room_id: str) -> str:
    return f"room:{normalize_room_id(room_id)}"


class RoundStore:
    """Subscribable descriptor store. Last writer wins."""

    def __init__(self):
        self._subscribers: Dict[str, List[Tuple[OnUpdate, Optional[OnError]]]] = defaultdict(list)

    # Storage hooks for subclasses
    def _read(self, room_id: str) -> Optional[RoundDescriptor]:
        raise NotImplementedError

    def _write(self, room_id: str, descriptor: RoundDescriptor) -> None:
        raise NotImplementedError

    def _remove(self, room_id: str) -> None:
        raise NotImplementedError

    def get(self, room_id: str) -> Optional[RoundDescriptor]:
        return self._read(normalize_room_id(room_id))

    def put(self, room_id: str, descriptor: RoundDescriptor) -> RoundDescriptor:
        key = normalize_room_id(room_id)
        self._write(key, descriptor)
        self._notify(key, descriptor)
        return descriptor

    def update(self, room_id: str, **fields) -> RoundDescriptor:
        key = normalize_room_id(room_id)
        current = self._read(key)
        if current is None:
            raise RoundNotFound(key)
        return self.put(key, current.with_changes(**fields))

    def delete(self, room_id: str) -> None:
        key = normalize_room_id(room_id)
        self._remove(key)
        self._notify(key, None)

    def subscribe(self, room_id: str, on_update: OnUpdate, on_error: OnError = None) -> Callable[[], None]:
        key = normalize_room_id(room_id)
        entry = (on_update, on_error)
        self._subscribers[key].append(entry)

        def unsubscribe():
            try:
                self._subscribers[key].remove(entry)
            except ValueError:
                pass

        try:
            current = self._read(key)
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)
        else:
            on_update(current)
        return unsubscribe

    def _notify(self, room_id: str, descriptor: Optional[RoundDescriptor]) -> None:
        # One failing subscriber must not starve the rest of the room
        for on_update, on_error in list(self._subscribers.get(room_id, ())):
            try:
                on_update(descriptor)
            except Exception as exc:
                if on_error is None:
                    logger.exception(f"[round-notify] room={room_id} subscriber failed")
                else:
                    on_error(exc)


class MemoryRoundStore(RoundStore):
    def __init__(self):
        super().__init__()
        self._rounds: Dict[str, RoundDescriptor] = {}

    def _read(self, room_id):
        return self._rounds.get(room_id)

    def _write(self, room_id, descriptor):
        self._rounds[room_id] = descriptor

    def _remove(self, room_id):
        self._rounds.pop(room_id, None)


class SqlRoundStore(RoundStore):
    """Round rows in the app database, pushed to Socket.IO subscribers on change."""

    def _read(self, room_id):
        from compsync.models import Round
        row = Round.query.filter_by(room_id=room_id).first()
        return row.to_descriptor() if row else None

    def _write(self, room_id, descriptor):
        from compsync import db
        from compsync.models import Round
        row = Round.query.filter_by(room_id=room_id).first()
        if row is None:
            row = Round(room_id=room_id)
        row.apply(descriptor)
        db.session.add(row)
        db.session.commit()

    def _remove(self, room_id):
        from compsync import db
        from compsync.models import Round
        Round.query.filter_by(room_id=room_id).delete()
        db.session.commit()

    def _notify(self, room_id, descriptor):
        from compsync import socketio
        super()._notify(room_id, descriptor)
        socketio.emit(
            'round',
            {'roomId': room_id, 'round': descriptor.to_dict() if descriptor else None},
            to=socket_room(room_id),
            namespace='/ws',
        )
