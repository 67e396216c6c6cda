"""Descending, time-based row keys.

Keys are ``MAX_TICKS - now_ticks`` as 19-digit zero-padded decimal strings,
so a key generated later sorts before every earlier one. Scanning a
partition in ascending RowKey order therefore returns the newest rows first.
"""

import threading
from typing import Callable, Optional

from ..utils import MAX_TICKS, utc_ticks

KEY_WIDTH = len(str(MAX_TICKS))


class RowKeyGenerator:
    """Strictly decreasing row key source.

    Two calls never return the same key: when the clock has not advanced
    past the previous call (same tick, or a clock step backwards) the new key
    is one below the previous one.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or utc_ticks
        self._lock = threading.Lock()
        self._last: Optional[int] = None

    def next_descending_key(self) -> str:
        with self._lock:
            value = MAX_TICKS - self._clock()
            if self._last is not None and value >= self._last:
                value = self._last - 1
            self._last = value
        return str(value).zfill(KEY_WIDTH)


default_row_key_generator = RowKeyGenerator()


def next_descending_key() -> str:
    """Next key from the process-wide generator."""
    return default_row_key_generator.next_descending_key()
