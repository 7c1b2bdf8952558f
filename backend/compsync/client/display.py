import logging
import threading
from enum import Enum
from typing import Callable, NamedTuple, Optional

from compsync.errors import ConfigError
from compsync.services.rounds.cues import AudioCueEngine
from compsync.services.rounds.descriptor import RoundDescriptor
from compsync.services.rounds.phase import TimerPhase, TimerState, evaluate_round
from compsync.services.rounds.recurring import RecurringController
from compsync.timeutil import format_remaining, now_ms
from .clock import ClockCalibrator

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    RECONNECTING = 'reconnecting'
    OFFLINE = 'offline'


PHASE_LABELS = {
    TimerPhase.IDLE: '',
    TimerPhase.PREP: 'GET READY',
    TimerPhase.CLIMB: 'CLIMB',
    TimerPhase.STOPPED: 'STOPPED',
}


class DisplayFrame(NamedTuple):
    phase: TimerPhase
    remaining_ms: float
    label: str
    text: str
    live: bool


def render_frame(descriptor: Optional[RoundDescriptor], timer: TimerState, error: str = None) -> DisplayFrame:
    if error:
        return DisplayFrame(timer.phase, timer.remaining_ms, 'ERROR', error, False)
    # No round at all shows a placeholder, an expired one shows 0:00
    text = '--:--' if descriptor is None else format_remaining(timer.remaining_ms)
    return DisplayFrame(timer.phase, timer.remaining_ms, PHASE_LABELS[timer.phase], text, timer.live)


class DisplaySession:
    """One display's view of a room.

    Calibrates once, subscribes to the room's descriptor and re-derives the
    phase every tick from a snapshot of the latest descriptor and the adjusted
    clock. The loop ticks every ``frame_interval`` seconds while there is time
    left to count and sleeps until the next descriptor arrives otherwise.
    """

    def __init__(
        self,
        room_id: str,
        store,
        calibrator: Optional[ClockCalibrator] = None,
        cue_engine: Optional[AudioCueEngine] = None,
        recurring: Optional[RecurringController] = None,
        clock: Optional[Callable[[], float]] = None,
        frame_interval: float = 0.05,
        on_frame: Optional[Callable[[DisplayFrame], None]] = None,
    ):
        self.room_id = room_id
        self.store = store
        self.calibrator = calibrator
        self.cue_engine = cue_engine or AudioCueEngine()
        self.recurring = recurring
        self._clock = clock
        self.frame_interval = frame_interval
        self.on_frame = on_frame

        self.connection_state = ConnectionState.CONNECTING
        self.descriptor: Optional[RoundDescriptor] = None
        self.error: Optional[str] = None
        self.frame: Optional[DisplayFrame] = None
        self._previous_phase: Optional[TimerPhase] = None
        self._previous_start: Optional[int] = None
        self._unsubscribe = None
        self._wake = threading.Event()
        self._running = False

    def now(self) -> float:
        if self._clock is not None:
            return self._clock()
        if self.calibrator is not None:
            return self.calibrator.adjusted_now()
        return now_ms()

    def start(self) -> None:
        if self.calibrator is not None:
            # Never blocks the loop on failure: degrades to offset 0
            self.calibrator.calibrate_or_zero()
        self.connection_state = ConnectionState.CONNECTING
        self._unsubscribe = self.store.subscribe(self.room_id, self._on_update, self._on_error)

    def _on_update(self, descriptor: Optional[RoundDescriptor]) -> None:
        self.connection_state = ConnectionState.CONNECTED
        self.error = None
        self.descriptor = descriptor
        self._wake.set()

    def _on_error(self, exc: Exception) -> None:
        if isinstance(exc, ConfigError):
            # Fatal to this round's display; showing a made-up time would be worse
            logger.error(f"[display-invalid-round] room={self.room_id} {exc}")
            self.descriptor = None
            self.error = str(exc)
            self._wake.set()
            return
        # Keep the last known descriptor and carry on counting
        if getattr(exc, 'reconnecting', False):
            self.connection_state = ConnectionState.RECONNECTING
        else:
            self.connection_state = ConnectionState.OFFLINE
        logger.warning(f"[display-{self.connection_state.value}] room={self.room_id} {exc}")

    def tick(self) -> DisplayFrame:
        descriptor = self.descriptor
        timer = evaluate_round(descriptor, self.now())
        start_time = descriptor.start_time if descriptor else None
        previous = self._previous_phase if start_time == self._previous_start else None

        self.cue_engine.observe(descriptor, timer)
        if self.recurring is not None:
            self.recurring.observe(descriptor, previous, timer)

        self._previous_phase = timer.phase
        self._previous_start = start_time
        self.frame = render_frame(descriptor, timer, self.error)
        if self.on_frame is not None:
            self.on_frame(self.frame)
        return self.frame

    def run(self) -> None:
        self._running = True
        while self._running:
            self._wake.clear()
            frame = self.tick()
            if frame.live:
                self._wake.wait(self.frame_interval)
            else:
                # Dormant until a new descriptor re-arms the loop
                self._wake.wait()

    def stop(self) -> None:
        self._running = False
        self._wake.set()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
