"""Service for executing API calls with automatic retries.

Implements exponential backoff for transient errors such as rate limits (429),
timeouts or temporary server issues (5xx). The decision to retry is taken from
the ``retryable`` flag of the raised ClassifiedError.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from simple_nominatim.domain.errors import ClassifiedError
from simple_nominatim.domain.events.api_events import EventListener, RetryScheduled
from simple_nominatim.domain.models.request import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")
SleepFunc = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Runs a single-attempt coroutine factory up to ``max_attempts`` times."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the RetryExecutor.

        Args:
            policy: Retry configuration. Defaults to RetryPolicy().
            sleep: Coroutine used to wait out backoff delays.
            event_listener: Optional callback receiving RetryScheduled events.
        """
        self.policy = policy or RetryPolicy()
        if self.policy.enabled and self.policy.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.policy.enabled and self.policy.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must not be negative.")
        self._sleep = sleep
        self._event_listener = event_listener

        logger.debug(
            f"RetryExecutor initialized: enabled={self.policy.enabled}, "
            f"max_attempts={self.policy.max_attempts}, initial_delay={self.policy.initial_delay_ms}ms"
        )

    async def run(self, attempt_fn: Callable[[], Awaitable[T]], endpoint: str = "") -> T:
        """Executes ``attempt_fn`` with retries.

        Args:
            attempt_fn: Zero-argument callable returning a fresh awaitable for
                every attempt.
            endpoint: Name used in logs and events.

        Returns:
            The result of the first successful attempt.

        Raises:
            ClassifiedError: The last attempt's error, unchanged, once it is
                terminal or attempts are exhausted.
            Exception: Any unclassified error, on the attempt it occurs.
        """
        max_attempts = self.policy.effective_max_attempts

        for attempt in range(max_attempts):
            try:
                return await attempt_fn()
            except ClassifiedError as e:
                if not e.retryable:
                    logger.debug(f"Non-retryable error calling {endpoint} on attempt {attempt + 1}: {e}")
                    raise
                if attempt + 1 >= max_attempts:
                    logger.warning(f"Giving up on {endpoint} after {attempt + 1} attempt(s). Last error: {e}")
                    raise

                delay = self.policy.delay_seconds(attempt)
                logger.warning(
                    f"Retryable error calling {endpoint} on attempt {attempt + 1}/{max_attempts}: {e}. "
                    f"Waiting {delay:.2f}s..."
                )
                if self._event_listener:
                    self._event_listener(RetryScheduled(
                        endpoint=endpoint,
                        attempt_number=attempt + 1,
                        delay_seconds=delay,
                        error_message=e.message,
                    ))
                await self._sleep(delay)

        # max_attempts >= 1 guarantees the loop either returns or raises
        raise AssertionError("unreachable")
