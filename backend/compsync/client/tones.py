import logging
from typing import List, NamedTuple

from compsync.services.rounds.cues import Cue, CueEvent

logger = logging.getLogger(__name__)


class Tone(NamedTuple):
    freq: float
    duration_ms: int
    offset_sec: float
    gain: float = 0.4
    wave: str = 'sine'


def last_seconds_gain(secs_left: int) -> float:
    # Louder as the end approaches
    return 0.4 + (10 - secs_left) * 0.06


def tones_for(event: CueEvent) -> List[Tone]:
    """Tone schedule for a cue, offsets relative to the moment it fires."""
    if event.cue == Cue.ROUND_START:
        # Ascending three-tone burst
        return [Tone(freq, 120, i * 0.12) for i, freq in enumerate((440, 660, 880))]
    if event.cue == Cue.ONE_MINUTE:
        return [Tone(880, 300, 0)]
    if event.cue == Cue.FIVE_SECONDS:
        return [Tone(600, 100, 0, 0.6), Tone(900, 100, 0.12, 0.8)]
    if event.cue == Cue.LAST_SECONDS:
        return [Tone(880, 80, 0, last_seconds_gain(event.seconds_left or 10))]
    if event.cue == Cue.ROUND_END:
        clicks = [Tone(1000, 20, offset, 0.9, 'square') for offset in (0, 0.08, 0.16, 0.24)]
        return clicks + [Tone(180, 700, 0.38, 0.7, 'sawtooth')]
    return []


class ToneEmitter:
    """Plays cue tones. This one only logs the schedule; subclass to drive a sound device."""

    def play(self, event: CueEvent) -> None:
        for tone in tones_for(event):
            self.emit(tone)

    def emit(self, tone: Tone) -> None:
        logger.info(
            f"[tone] {tone.wave} {tone.freq:.0f}Hz {tone.duration_ms}ms at +{tone.offset_sec:.2f}s gain={tone.gain:.2f}"
        )
