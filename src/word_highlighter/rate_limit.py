from __future__ import annotations

import logging
import math
import time
from typing import Callable

from .errors import RateLimitExceeded

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class RateLimiter:
    """
    Fixed-window request counter with a lockout.

    Exceeding the limit locks requests out for one full window measured
    from the violating call, not from the start of the current window.
    check_limit never suspends, so concurrent callers on one event loop
    cannot interleave inside it.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_ms: int = 60_000,
        clock: Clock | None = None,
    ) -> None:
        self._max_requests = max_requests
        self._window_ms = window_ms
        self._clock = clock or monotonic_ms
        self.request_count = 0
        self.window_start = self._clock()
        self.lockout_until: float | None = None

    def check_limit(self) -> None:
        """Count one request or raise RateLimitExceeded."""
        now = self._clock()

        if self.lockout_until is not None and now < self.lockout_until:
            remaining = math.ceil((self.lockout_until - now) / 1000)
            raise RateLimitExceeded(remaining)

        if now - self.window_start > self._window_ms:
            self.request_count = 0
            self.window_start = now
            self.lockout_until = None

        if self.request_count >= self._max_requests:
            self.lockout_until = now + self._window_ms
            logger.warning(
                "Rate limit of %s requests reached; locked out for %s ms",
                self._max_requests,
                self._window_ms,
            )
            raise RateLimitExceeded(math.ceil(self._window_ms / 1000))

        self.request_count += 1
