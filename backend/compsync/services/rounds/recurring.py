import logging
from typing import Callable, Optional

from .descriptor import RoundConfig, RoundDescriptor
from .phase import TimerPhase, TimerState, is_natural_end

logger = logging.getLogger(__name__)


class RecurringController:
    """Restarts a recurring round exactly once when it ends naturally.

    Only the operator side runs this; plain displays never restart rounds.
    The guard is checked and set in the same step that decides to restart, so
    a second tick that still sees the climb -> idle edge (the restart has not
    produced a new descriptor yet) cannot fire again. The guard clears only
    when a round with a different start time shows up.
    """

    def __init__(self, restart: Callable[[RoundConfig], object]):
        self._restart = restart
        self.start_time: Optional[int] = None
        self.restarted = False

    def observe(
        self,
        descriptor: Optional[RoundDescriptor],
        previous_phase: Optional[TimerPhase],
        timer: TimerState,
    ) -> bool:
        if descriptor is None:
            return False
        if descriptor.start_time != self.start_time:
            self.start_time = descriptor.start_time
            self.restarted = False

        if not descriptor.recurring or self.restarted:
            return False
        if not is_natural_end(previous_phase, timer.phase, descriptor.stopped):
            return False

        self.restarted = True
        logger.info(f"[recurring-restart] previous_start={descriptor.start_time}")
        self._restart(descriptor.config())
        return True
