"""
Injectable time source.

Timestamps throughout the app are integer milliseconds since the epoch.
Engines never call time.time() directly; they ask their clock.
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int:
        ...


class SystemClock:
    """Wall-clock time."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """
    Test clock: returns a fixed timestamp until advanced.

    Usage:
        clock = FixedClock(1_700_000_000_000)
        clock.advance(hours=5)
    """

    def __init__(self, now_ms: int) -> None:
        self._now_ms = now_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, ms: int = 0, seconds: float = 0, hours: float = 0) -> None:
        self._now_ms += int(ms + seconds * 1000 + hours * 3_600_000)
