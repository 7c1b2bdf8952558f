"""Audio cue engine.

Cues are derived purely from the stream of phase evaluations a display
produces on each tick. There is no server-side event log, so every cue is an
edge detected between the previous and the current tick, gated so it fires at
most once per round. A round is identified by its start time; seeing a new
start time throws the per-round state away.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from .descriptor import RoundDescriptor
from .phase import TimerPhase, TimerState, is_natural_end

ONE_MINUTE_MS = 60_000
FIVE_SECONDS_MS = 5_000
LAST_SECONDS = 10


class Cue(str, Enum):
    ROUND_START = 'round_start'
    ONE_MINUTE = 'one_minute'
    FIVE_SECONDS = 'five_seconds'
    LAST_SECONDS = 'last_seconds'
    ROUND_END = 'round_end'


class CueEvent(NamedTuple):
    cue: Cue
    seconds_left: Optional[int] = None


@dataclass(frozen=True)
class CueEngineState:
    start_time: Optional[int] = None
    previous_phase: Optional[TimerPhase] = None
    previous_remaining_ms: Optional[float] = None
    round_start_fired: bool = False
    one_minute_fired: bool = False
    five_seconds_fired: bool = False
    # The train repeats, so it is guarded by the last second it beeped for
    last_second_fired: Optional[int] = None
    round_end_fired: bool = False


def _crossed_down(previous: Optional[float], current: float, threshold: float) -> bool:
    return previous is not None and previous > threshold >= current


def step_cues(
    state: CueEngineState,
    start_time: Optional[int],
    stopped: bool,
    timer: TimerState,
    muted: bool = False,
) -> Tuple[CueEngineState, List[CueEvent]]:
    """Advance the cue state by one tick.

    Returns the new state and the cues to play. While muted the fired flags
    still advance, so nothing is queued up and replayed on unmute.
    """
    if start_time != state.start_time:
        state = CueEngineState(start_time=start_time)

    phase, remaining = timer.phase, timer.remaining_ms
    previous_phase = state.previous_phase
    previous_remaining = state.previous_remaining_ms
    due: List[CueEvent] = []
    changes = {}

    if not state.round_start_fired and previous_phase == TimerPhase.PREP and phase == TimerPhase.CLIMB:
        due.append(CueEvent(Cue.ROUND_START))
        changes['round_start_fired'] = True

    if phase == TimerPhase.CLIMB:
        if not state.one_minute_fired and _crossed_down(previous_remaining, remaining, ONE_MINUTE_MS):
            due.append(CueEvent(Cue.ONE_MINUTE))
            changes['one_minute_fired'] = True

        if not state.five_seconds_fired and _crossed_down(previous_remaining, remaining, FIVE_SECONDS_MS):
            due.append(CueEvent(Cue.FIVE_SECONDS))
            changes['five_seconds_fired'] = True

        secs_left = math.ceil(remaining / 1000)
        last = state.last_second_fired
        if 1 <= secs_left <= LAST_SECONDS and (last is None or secs_left < last):
            due.append(CueEvent(Cue.LAST_SECONDS, secs_left))
            changes['last_second_fired'] = secs_left

    if not state.round_end_fired and is_natural_end(previous_phase, phase, stopped):
        due.append(CueEvent(Cue.ROUND_END))
        changes['round_end_fired'] = True

    changes['previous_phase'] = phase
    changes['previous_remaining_ms'] = remaining
    return replace(state, **changes), ([] if muted else due)


class AudioCueEngine:
    """Keeps a display's cue state and hands due cues to a tone emitter.

    The emitter decides how a cue sounds; anything with a ``play(event)``
    method will do.
    """

    def __init__(self, emitter=None, muted: bool = False):
        self.emitter = emitter
        self.muted = muted
        self.state = CueEngineState()

    def observe(self, descriptor: Optional[RoundDescriptor], timer: TimerState) -> List[CueEvent]:
        start_time = descriptor.start_time if descriptor else None
        stopped = descriptor.stopped if descriptor else False
        self.state, fired = step_cues(self.state, start_time, stopped, timer, self.muted)
        if self.emitter is not None:
            for event in fired:
                self.emitter.play(event)
        return fired
