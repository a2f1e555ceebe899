"""
Write Rate Limiting

Sliding-window pacing for batch commits. History is kept on the instance
and expired entries are removed by ``sweep()``; there is no background
timer.
"""

import time
import logging
from collections import deque
from threading import Lock
from typing import Callable, Dict, Deque, Tuple

logger = logging.getLogger(__name__)


class WriteRateLimiter:
    """
    Caps document writes per second over a sliding window.

    A commit larger than the window allowance is let through once the
    window is empty, so a single oversized chunk never blocks forever.

    Args:
        writes_per_second: Sustained write budget
        window: Window length in seconds
        clock: Monotonic time source
        sleep: Sleep function (tests pass a fake)
    """

    def __init__(
        self,
        writes_per_second: float,
        window: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if writes_per_second <= 0:
            raise ValueError("writes_per_second must be positive")
        self.writes_per_second = writes_per_second
        self.window = window
        self.capacity = writes_per_second * window
        self.clock = clock
        self.sleep = sleep

        self.history: Deque[Tuple[float, int]] = deque()
        self.total_waited = 0.0
        self._lock = Lock()

    def sweep(self) -> int:
        """Drop history entries older than the window. Returns entries removed."""
        with self._lock:
            return self._sweep(self.clock())

    def _sweep(self, now: float) -> int:
        removed = 0
        while self.history and now - self.history[0][0] >= self.window:
            self.history.popleft()
            removed += 1
        return removed

    def _in_window(self) -> int:
        return sum(count for _, count in self.history)

    def acquire(self, writes: int) -> float:
        """
        Wait until ``writes`` more writes fit in the window, then record them.
        Returns the time spent waiting.
        """
        waited = 0.0
        with self._lock:
            while True:
                now = self.clock()
                self._sweep(now)
                used = self._in_window()
                if not self.history or used + writes <= self.capacity:
                    self.history.append((now, writes))
                    break

                wait_time = self.window - (now - self.history[0][0])
                logger.debug(f"Write budget used ({used}/{self.capacity:.0f}), waiting {wait_time:.2f}s")
                self.sleep(wait_time)
                waited += wait_time

            self.total_waited += waited
        return waited

    @property
    def status(self) -> Dict:
        with self._lock:
            return {
                'writes_per_second': self.writes_per_second,
                'writes_in_window': self._in_window(),
                'history_entries': len(self.history),
                'total_waited': self.total_waited,
            }
