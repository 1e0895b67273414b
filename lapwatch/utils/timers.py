"""Millisecond time sources used by the timer engine."""

from __future__ import annotations

import threading
import time
from typing import Callable

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current wall-clock time in integer milliseconds."""

    return time.time_ns() // 1_000_000


class ManualClock:
    """A clock that only moves when told to.

    Instances are callable, so they can be passed wherever a :data:`Clock`
    is expected.
    """

    def __init__(self, start_ms: int = 1_000_000):
        self._now = int(start_ms)
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return self._now

    def advance(self, millis: int) -> int:
        if millis < 0:
            raise ValueError(f"cannot move a clock backwards by {millis} ms")
        with self._lock:
            self._now += int(millis)
            return self._now


__all__ = ["Clock", "ManualClock", "wall_clock_ms"]
