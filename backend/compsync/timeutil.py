import math
import time
from datetime import datetime, timezone
from typing import Dict


def now_ms() -> int:
    return int(time.time() * 1000)


def to_iso(epoch_ms: int) -> str:
    """Render an epoch-ms instant as ISO-8601 UTC, e.g. 2024-05-01T10:00:03.000Z."""
    dt = datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_iso(value: str) -> int:
    """Parse an ISO-8601 timestamp into epoch ms. Naive values are taken as UTC."""
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def format_remaining(ms: float) -> str:
    """M:SS countdown text, rounding up to the next whole second."""
    if ms <= 0:
        return '0:00'
    total_seconds = math.ceil(ms / 1000)
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    return f"{minutes}:{seconds:02d}"


def seconds_to_hms(total_sec: int) -> Dict[str, int]:
    return {
        'h': total_sec // 3600,
        'm': (total_sec % 3600) // 60,
        's': total_sec % 60,
    }


def hms_to_seconds(h: int, m: int, s: int) -> int:
    return h * 3600 + m * 60 + s
