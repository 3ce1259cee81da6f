from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic millisecond clock.

    Trial timing and reaction times are measured against this interface so
    headless runs can drive time by hand.
    """

    def now_ms(self) -> float:
        """Return monotonic milliseconds."""


class RealClock:
    """High-resolution clock backed by time.perf_counter()."""

    def now_ms(self) -> float:
        return time.perf_counter() * 1000.0
