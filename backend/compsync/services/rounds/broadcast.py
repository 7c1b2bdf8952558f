import logging
from typing import Callable, Optional

from compsync.timeutil import now_ms
from .descriptor import RoundConfig, RoundDescriptor
from .store import RoundStore, normalize_room_id

DEFAULT_LEAD_MS = 3000


class BroadcastController:
    """Turns operator START/STOP/RESET into descriptor mutations.

    START schedules the round ``lead_ms`` into the future so every display
    has the new descriptor before the scheduled instant and never flashes the
    previous round's state. Writes are not transactional: two operators on the
    same room race and the last write wins.
    """

    def __init__(
        self,
        store: RoundStore,
        lead_ms: int = DEFAULT_LEAD_MS,
        clock: Callable[[], int] = now_ms,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.lead_ms = lead_ms
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def start(self, room_id: str, config: RoundConfig) -> RoundDescriptor:
        now = self.clock()
        descriptor = RoundDescriptor.scheduled(config, start_time=now + self.lead_ms, updated_at=now)
        self.store.put(room_id, descriptor)
        self.logger.info(
            f"[round-start] room={normalize_room_id(room_id)} start={descriptor.start_time} "
            f"climb={config.climbing_duration_ms}ms prep={config.preparation_duration_ms if config.preparation_enabled else 0}ms "
            f"recurring={config.recurring}"
        )
        return descriptor

    def stop(self, room_id: str) -> RoundDescriptor:
        """Mark the live round stopped; schedule and durations are left alone."""
        descriptor = self.store.update(room_id, stopped=True, updated_at=self.clock())
        self.logger.info(f"[round-stop] room={normalize_room_id(room_id)} start={descriptor.start_time}")
        return descriptor

    def reset(self, room_id: str) -> None:
        """Delete the room's descriptor. Safe to repeat."""
        self.store.delete(room_id)
        self.logger.info(f"[round-reset] room={normalize_room_id(room_id)}")
