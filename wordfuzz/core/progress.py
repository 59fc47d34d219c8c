import math
import time

from dataclasses import dataclass
from typing import Callable

from wordfuzz.config.constants import Constants

"""
Progress tracking and admission rate limiting
"""

Clock = Callable[[], float]


@dataclass
class ProgressState:
    total_requests: int = 0
    completed: int = 0
    errors: int = 0
    window_start: float = 0.0
    window_completed: int = 0


class ProgressTracker:
    """
    Completion counters plus a sliding window for the request rate

    The window restarts once it is older than window seconds; the rate of
    the last full window is kept so a freshly reset window never reads as 0.

    Args:
    - total_requests (int): Planned number of requests for the whole run
    - window (float): Measurement window in seconds
    - clock (Callable[[], float]): Monotonic time source
    """

    def __init__(
        self,
        total_requests: int,
        window: float = Constants.PROGRESS_WINDOW,
        clock: Clock = time.monotonic,
    ) -> None:
        self.clock = clock
        self.window = window
        self.started_at = clock()
        self.state = ProgressState(total_requests=total_requests, window_start=self.started_at)
        self._last_rate = 0.0

    def _roll(self, now: float) -> None:
        elapsed = now - self.state.window_start
        if elapsed >= self.window:
            self._last_rate = self.state.window_completed / elapsed
            self.state.window_start = now
            self.state.window_completed = 0

    def record(self, error: bool = False) -> None:
        now = self.clock()
        self._roll(now)
        self.state.completed += 1
        self.state.window_completed += 1
        if error:
            self.state.errors += 1

    def rate(self) -> float:
        """
        Returns:
        - float: Completions per second
        """

        now = self.clock()
        self._roll(now)
        elapsed = now - self.state.window_start
        if elapsed <= 0 or self.state.window_completed == 0:
            return self._last_rate
        return self.state.window_completed / elapsed

    def percentage(self) -> float:
        if self.state.total_requests <= 0:
            return 100.0
        return self.state.completed / self.state.total_requests * 100

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def status_line(self) -> str:
        return (
            f"Progress: [{self.state.completed}/{self.state.total_requests}] "
            f"({self.percentage():.1f}%) :: {self.rate():.0f} req/sec :: "
            f"Duration: {self.elapsed():.0f}s :: Errors: {self.state.errors}"
        )


class RateLimiter:
    """
    Caps admissions per second

    Args:
    - ceiling (float): Requests per second, 0 or less disables the limit
    - window (float): Window the ceiling is measured over, in seconds
    """

    def __init__(
        self,
        ceiling: float,
        window: float = Constants.RATE_WINDOW,
        clock: Clock = time.monotonic,
    ) -> None:
        self.ceiling = ceiling
        self.window = window
        self.budget = 0
        if ceiling > 0:
            # whole requests per window; the window shrinks or stretches to match
            self.budget = max(1, math.floor(ceiling * window))
            self.window = self.budget / ceiling
        self.clock = clock
        self.window_start = clock()
        self.admitted = 0

    def allow(self) -> bool:
        if self.ceiling <= 0:
            return True

        now = self.clock()
        if now - self.window_start >= self.window:
            self.window_start = now
            self.admitted = 0
        return self.admitted < self.budget

    def admit(self) -> None:
        self.admitted += 1

    def remaining(self) -> float:
        """
        Returns:
        - float: Seconds until the current window closes
        """

        return max(0.0, self.window - (self.clock() - self.window_start))
