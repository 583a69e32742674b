"""Token-bucket limiter for sequential elevation queries."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

_TOLERANCE = 1e-9


class AsyncRateLimiter:
    """Async token bucket; `rate_per_s` of None or 0 disables limiting.

    With the default burst of 1 consecutive acquisitions are spaced by
    1 / rate_per_s seconds, the first one passes immediately.
    """

    def __init__(
        self,
        rate_per_s: float | None = 1.0,
        burst: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if rate_per_s is not None and rate_per_s < 0.0:
            raise ValueError("rate_per_s must be non-negative")
        if burst <= 0:
            raise ValueError("burst must be positive")
        self._rate = rate_per_s or None
        self._burst = float(burst)
        self._tokens = float(burst)
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = asyncio.Lock()
        self.wait_count = 0

    @property
    def enabled(self) -> bool:
        """Whether acquisitions are throttled."""
        return self._rate is not None

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._updated = now
        assert self._rate is not None
        self._tokens = min(self._burst, self._tokens + elapsed * self._rate)

    async def acquire(self) -> None:
        """Wait until one token is available and consume it."""
        if self._rate is None:
            return
        async with self._lock:
            self._refill()
            while self._tokens < 1.0 - _TOLERANCE:
                delay = (1.0 - self._tokens) / self._rate
                self.wait_count += 1
                logger.debug("Rate limit: waiting %.3fs", delay)
                await self._sleep(delay)
                self._refill()
            self._tokens = max(0.0, self._tokens - 1.0)
