"""
Token bucket rate limiter for suggestion requests.

One token refills every ``interval`` seconds up to ``burst`` tokens. Callers
that find the bucket empty reserve a future token and sleep until it is due,
so under load they see a delay rather than a rejection. Sleeps are done on a
cancellation event so shutdown never waits out a full interval.
"""

import threading
import time
from typing import Callable, Optional

from loguru import logger


class RateLimiterCancelled(Exception):
    """Wait was interrupted by the cancellation event."""


class RateLimiter:
    """Allows ``burst`` requests at once and one more every ``interval`` seconds."""

    def __init__(
        self,
        interval: float = 3.0,
        burst: int = 1,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.interval = interval
        self.burst = burst
        self.cancel_event = cancel_event or threading.Event()
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = clock()

    def reserve(self) -> float:
        """
        Take a token, possibly one that is not available yet.

        Returns:
            Seconds the caller must wait before acting on the token
        """
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed / self.interval)
            self._last = now
            self._tokens -= 1.0

            if self._tokens >= 0:
                return 0.0
            return -self._tokens * self.interval

    def cancel_reservation(self) -> None:
        """Return a reserved token to the bucket."""
        with self._lock:
            self._tokens = min(float(self.burst), self._tokens + 1.0)

    def wait(self) -> None:
        """
        Block until a permit is available.

        Raises:
            RateLimiterCancelled: If cancelled before or during the wait
        """
        if self.cancel_event.is_set():
            raise RateLimiterCancelled("rate limiter cancelled")

        delay = self.reserve()
        if delay <= 0:
            return

        logger.debug(f"Rate limited, waiting {delay:.2f}s")
        if self.cancel_event.wait(delay):
            self.cancel_reservation()
            raise RateLimiterCancelled("rate limiter cancelled while waiting")
