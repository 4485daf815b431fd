"""Minimum-interval gate for periodic recomputation passes."""

from __future__ import annotations

import time
from typing import Callable


class IntervalThrottle:
    """Allow an action at most once per ``interval`` seconds.

    The first call is allowed. A non-positive interval disables the action.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self._clock = clock
        self._last: float | None = None

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    def due(self) -> bool:
        if not self.enabled:
            return False
        return self._last is None or self._clock() - self._last >= self.interval

    def mark(self) -> None:
        self._last = self._clock()

    def try_acquire(self) -> bool:
        """Record a run and return True when the interval has elapsed."""
        if not self.due():
            return False
        self.mark()
        return True
