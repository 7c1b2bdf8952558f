from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from compsync.errors import ConfigError
from compsync.timeutil import parse_iso, to_iso

# Durations are stored in 32-bit integer columns
MAX_DURATION_MS = 2 ** 31 - 1


@dataclass(frozen=True)
class RoundConfig:
    """What an operator chooses before pressing START."""

    climbing_duration_ms: int
    preparation_duration_ms: int = 0
    preparation_enabled: bool = False
    recurring: bool = False

    def __post_init__(self):
        _require_duration('climbingDurationMs', self.climbing_duration_ms)
        _require_duration('preparationDurationMs', self.preparation_duration_ms)
        _require_bool('preparationEnabled', self.preparation_enabled)
        _require_bool('recurring', self.recurring)

    @property
    def total_ms(self) -> int:
        if self.preparation_enabled:
            return self.preparation_duration_ms + self.climbing_duration_ms
        return self.climbing_duration_ms


@dataclass(frozen=True)
class RoundDescriptor:
    """The single live record for a room. Replaced wholesale on every mutation."""

    start_time: int
    climbing_duration_ms: int
    preparation_duration_ms: int
    preparation_enabled: bool
    stopped: bool = False
    recurring: bool = False
    updated_at: Optional[int] = None

    @classmethod
    def scheduled(cls, config: RoundConfig, start_time: int, updated_at: int = None) -> 'RoundDescriptor':
        return cls(
            start_time=start_time,
            climbing_duration_ms=config.climbing_duration_ms,
            preparation_duration_ms=config.preparation_duration_ms,
            preparation_enabled=config.preparation_enabled,
            stopped=False,
            recurring=config.recurring,
            updated_at=updated_at,
        )

    @property
    def total_ms(self) -> int:
        return self.config().total_ms

    def config(self) -> RoundConfig:
        return RoundConfig(
            climbing_duration_ms=self.climbing_duration_ms,
            preparation_duration_ms=self.preparation_duration_ms,
            preparation_enabled=self.preparation_enabled,
            recurring=self.recurring,
        )

    def with_changes(self, **fields) -> 'RoundDescriptor':
        return replace(self, **fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startTime': to_iso(self.start_time),
            'climbingDurationMs': self.climbing_duration_ms,
            'preparationDurationMs': self.preparation_duration_ms,
            'preparationEnabled': self.preparation_enabled,
            'stopped': self.stopped,
            'recurring': self.recurring,
            'updatedAt': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoundDescriptor':
        """Build a descriptor from its wire shape.

        Absent or mistyped fields raise ConfigError rather than falling back to
        defaults: a display showing the wrong time is worse than one showing an error.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Round descriptor must be an object, got {type(data).__name__}")
        raw_start = data.get('startTime')
        if isinstance(raw_start, str):
            try:
                start_time = parse_iso(raw_start)
            except ValueError as exc:
                raise ConfigError(f"startTime is not a valid timestamp: {raw_start!r}") from exc
        elif isinstance(raw_start, (int, float)) and not isinstance(raw_start, bool):
            start_time = int(raw_start)
        else:
            raise ConfigError('startTime is required')

        for key in ('climbingDurationMs', 'preparationDurationMs'):
            if key not in data:
                raise ConfigError(f"{key} is required")
        for key in ('preparationEnabled', 'stopped'):
            if key not in data:
                raise ConfigError(f"{key} is required")

        climbing = data['climbingDurationMs']
        preparation = data['preparationDurationMs']
        _require_duration('climbingDurationMs', climbing)
        _require_duration('preparationDurationMs', preparation)
        _require_bool('preparationEnabled', data['preparationEnabled'])
        _require_bool('stopped', data['stopped'])
        recurring = data.get('recurring', False)
        _require_bool('recurring', recurring)
        updated_at = data.get('updatedAt')

        return cls(
            start_time=start_time,
            climbing_duration_ms=int(climbing),
            preparation_duration_ms=int(preparation),
            preparation_enabled=data['preparationEnabled'],
            stopped=data['stopped'],
            recurring=recurring,
            updated_at=int(updated_at) if isinstance(updated_at, (int, float)) else None,
        )


def _require_duration(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be a whole number of milliseconds")
    if value < 0:
        raise ConfigError(f"{name} must not be negative")
    if value > MAX_DURATION_MS:
        raise ConfigError(f"{name} must be at most {MAX_DURATION_MS}")


def _require_bool(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false")
