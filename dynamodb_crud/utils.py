"""
Time and number helpers shared by the entity models and the row key generator.

All timestamps handled by the store are UTC. Naive datetimes are assumed to
already be in UTC.
"""

import struct
import time
from datetime import datetime, timezone
from typing import Optional

# .NET-style ticks: 100ns intervals since 0001-01-01T00:00:00Z
TICKS_PER_SECOND = 10_000_000
UNIX_EPOCH_TICKS = 621_355_968_000_000_000
MAX_TICKS = 3_155_378_975_999_999_999

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert datetime to UTC.

    Handles both timezone-aware and naive datetimes. Naive datetimes are
    assumed to already be in UTC.

    Args:
        dt: Datetime to convert to UTC

    Returns:
        Datetime in UTC timezone, or None if input is None

    Examples:
        >>> dt = datetime(2024, 1, 1, 10, 0, tzinfo=ZoneInfo('America/New_York'))
        >>> to_utc(dt)  # -> 2024-01-01 15:00:00+00:00

        >>> dt = datetime(2024, 1, 1, 10, 0)
        >>> to_utc(dt)  # -> 2024-01-01 10:00:00+00:00
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_utc(value: str) -> datetime:
    """Parse an ISO-8601 string into a UTC datetime (accepts a trailing 'Z')."""
    return to_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))


def utc_ticks() -> int:
    """Current UTC time in 100ns ticks since 0001-01-01."""
    return UNIX_EPOCH_TICKS + time.time_ns() // 100


def to_single(value: float) -> float:
    """Round a float to IEEE-754 single precision."""
    return struct.unpack('f', struct.pack('f', value))[0]


def is_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX
