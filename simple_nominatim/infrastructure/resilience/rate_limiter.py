"""Implementation of a rate limiter.

Controls the frequency of outgoing requests to respect the upstream usage
policy. Uses a fixed-window counter: at most ``limit`` permits are handed out
per window of ``interval`` seconds, and the counter resets when the window
elapses. Bursts of up to ``limit`` requests can occur right at a reset.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from simple_nominatim.domain.errors import RateLimitInternalError
from simple_nominatim.domain.models.request import (
    DEFAULT_RATE_LIMIT, DEFAULT_RATE_LIMIT_INTERVAL_MS, RateLimiterStats,
)

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Fixed-window rate limiter for asyncio tasks."""

    def __init__(
        self,
        limit: int = DEFAULT_RATE_LIMIT,
        interval_ms: int = DEFAULT_RATE_LIMIT_INTERVAL_MS,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initializes the rate limiter.

        Args:
            limit: Maximum number of permits granted per window.
            interval_ms: The window length in milliseconds.
            enabled: When False, ``acquire`` never waits and the limits are
                not checked.
            clock: Monotonic time source in seconds.
            sleep: Coroutine used to suspend the calling task.
        """
        if enabled and (limit < 1 or interval_ms <= 0):
            raise ValueError("Rate limit and interval must be positive.")

        self.limit = limit
        self.interval = interval_ms / 1000.0
        self.enabled = enabled
        self._clock = clock
        self._sleep = sleep
        self.window_start = clock()
        self.count = 0
        self._request_count = 0
        self._queued_count = 0
        self._lock = asyncio.Lock()
        logger.debug(f"RateLimiter initialized: {limit} requests / {interval_ms} ms, enabled={enabled}")

    async def acquire(self) -> float:
        """Waits until a permit is available and consumes it.

        Returns:
            The total number of seconds the caller was suspended.

        Raises:
            RateLimitInternalError: The window start lies in the future,
                which only a clock running backwards can cause.
        """
        if not self.enabled:
            return 0.0

        self._queued_count += 1
        try:
            return await self._wait_for_permit()
        finally:
            # reset_stats() may have zeroed the counter while we waited
            self._queued_count = max(0, self._queued_count - 1)

    async def _wait_for_permit(self) -> float:
        waited = 0.0
        while True:
            async with self._lock:
                now = self._clock()
                if now - self.window_start >= self.interval:
                    self.window_start = now
                    self.count = 0
                if self.count < self.limit:
                    self.count += 1
                    self._request_count += 1
                    logger.debug(f"Rate limit permit granted ({self.count}/{self.limit}).")
                    return waited
                wait_time = self.window_start + self.interval - now

            if wait_time > self.interval:
                raise RateLimitInternalError(
                    f"Window started {self.window_start - now:.4f}s in the future; the clock is not monotonic."
                )
            logger.debug(f"Rate limit reached. Waiting for {wait_time:.3f} seconds.")
            await self._sleep(wait_time)
            waited += wait_time
            # Loop again to re-check condition after waiting

    def stats(self) -> RateLimiterStats:
        return RateLimiterStats(request_count=self._request_count, queued_count=self._queued_count)

    def reset_stats(self) -> None:
        self._request_count = 0
        self._queued_count = 0
