"""Timer phase engine.

Maps an absolute round schedule plus "now" to the displayed phase and the
time remaining in the whole round. Every display evaluates this on its own
adjusted clock, so the function reads no clock and keeps no state.
"""

from enum import Enum
from typing import NamedTuple, Optional

from .descriptor import RoundDescriptor


class TimerPhase(str, Enum):
    IDLE = 'idle'
    PREP = 'prep'
    CLIMB = 'climb'
    STOPPED = 'stopped'


class TimerState(NamedTuple):
    phase: TimerPhase
    remaining_ms: float

    @property
    def live(self) -> bool:
        """True while the display loop has something left to count down."""
        return self.phase != TimerPhase.STOPPED and self.remaining_ms > 0


def compute_timer_state(
    start_time: float,
    climbing_ms: float,
    preparation_ms: float,
    preparation_enabled: bool,
    stopped: bool,
    now: float,
) -> TimerState:
    # Stop wins regardless of elapsed time
    if stopped:
        return TimerState(TimerPhase.STOPPED, 0)

    total_ms = preparation_ms + climbing_ms if preparation_enabled else climbing_ms
    elapsed = now - start_time

    # Scheduled in the future: show the full duration while waiting
    if elapsed < 0:
        return TimerState(TimerPhase.IDLE, total_ms)

    # Ran its course; idle without needing a RESET
    if elapsed >= total_ms:
        return TimerState(TimerPhase.IDLE, 0)

    if preparation_enabled and elapsed < preparation_ms:
        return TimerState(TimerPhase.PREP, total_ms - elapsed)

    return TimerState(TimerPhase.CLIMB, total_ms - elapsed)


def evaluate_round(descriptor: Optional[RoundDescriptor], now: float) -> TimerState:
    """Phase for a room's descriptor. No descriptor is the same as idle, never started."""
    if descriptor is None:
        return TimerState(TimerPhase.IDLE, 0)
    return compute_timer_state(
        descriptor.start_time,
        descriptor.climbing_duration_ms,
        descriptor.preparation_duration_ms,
        descriptor.preparation_enabled,
        descriptor.stopped,
        now,
    )


def is_natural_end(previous: Optional[TimerPhase], current: TimerPhase, stopped: bool) -> bool:
    """climb -> idle without an operator STOP."""
    return previous == TimerPhase.CLIMB and current == TimerPhase.IDLE and not stopped
