"""Request pipeline composing the cache, the rate limiter and the retry
executor around an injected transport.

Every API call issued by the command handlers goes through
``RequestPipeline.execute``. One pipeline is created per CLI invocation and
owns its cache and rate window for that invocation only.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from simple_nominatim.domain.errors import ClassifiedError
from simple_nominatim.domain.events.api_events import (
    ApiCallDeferred, ApiCallFailed, ApiCallInitiated, ApiCallSucceeded,
    CacheHit, DomainEvent, EventListener,
)
from simple_nominatim.domain.interfaces.cache import CacheService
from simple_nominatim.domain.interfaces.transport import Transport
from simple_nominatim.domain.models.request import ApiResponse, PipelineConfig, RequestDescriptor
from simple_nominatim.infrastructure.cache.caching_service import InMemoryCacheService
from simple_nominatim.infrastructure.resilience.api_retry import RetryExecutor
from simple_nominatim.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class RequestPipeline:
    """Cache → rate limit → retry → transport."""

    def __init__(
        self,
        transport: Transport,
        config: Optional[PipelineConfig] = None,
        cache: Optional[CacheService] = None,
        rate_limiter: Optional[RateLimiter] = None,
        retry_executor: Optional[RetryExecutor] = None,
        event_listener: Optional[EventListener] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Builds the pipeline, creating any component not supplied.

        Args:
            transport: Performs one request attempt.
            config: Pipeline tunables. Defaults to PipelineConfig().
            cache: Overrides the cache built from ``config.cache``.
            rate_limiter: Overrides the limiter built from ``config.rate_limit``.
            retry_executor: Overrides the executor built from ``config.retry``.
            event_listener: Optional callback receiving every domain event.
            clock: Monotonic time source shared by the default components.
            sleep: Suspension coroutine shared by the default components.
        """
        self.config = config or PipelineConfig()
        self.transport = transport
        self._event_listener = event_listener

        self.cache = cache or InMemoryCacheService(
            max_entries=self.config.cache.max_entries,
            enabled=self.config.cache.enabled,
            clock=clock,
        )
        self.rate_limiter = rate_limiter or RateLimiter(
            limit=self.config.rate_limit.limit,
            interval_ms=self.config.rate_limit.interval_ms,
            enabled=self.config.rate_limit.enabled,
            clock=clock,
            sleep=sleep,
        )
        self.retry_executor = retry_executor or RetryExecutor(
            policy=self.config.retry,
            sleep=sleep,
            event_listener=self._dispatch_event,
        )
        self._cache_cleared_on_start = not self.config.cache.enabled

        logger.debug(f"RequestPipeline initialized with {self.config}")

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._event_listener:
            self._event_listener(event)

    async def execute(self, descriptor: RequestDescriptor) -> ApiResponse:
        """Returns the response for ``descriptor``, from cache when possible.

        Raises:
            ClassifiedError: The transport's error, unchanged, once retries
                are exhausted or the error is terminal.
        """
        if self._cache_cleared_on_start:
            # Guarantees a disabled cache never serves anything
            await self.cache.clear()
            self._cache_cleared_on_start = False

        endpoint = str(descriptor.path)
        key = descriptor.cache_key

        cached = await self.cache.get(key)
        if cached is not None:
            self._dispatch_event(CacheHit(endpoint=endpoint, cache_key=key))
            return cached

        waited = await self.rate_limiter.acquire()
        if waited > 0:
            self._dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=waited))

        attempts = 0

        async def attempt() -> ApiResponse:
            nonlocal attempts
            attempts += 1
            self._dispatch_event(ApiCallInitiated(endpoint=endpoint, attempt_number=attempts))
            start_time = time.perf_counter()
            response = await self.transport.send(descriptor)
            latency_ms = (time.perf_counter() - start_time) * 1000
            self._dispatch_event(ApiCallSucceeded(
                endpoint=endpoint, latency_ms=latency_ms, status_code=response.status_code,
            ))
            return response

        try:
            response = await self.retry_executor.run(attempt, endpoint=endpoint)
        except ClassifiedError as e:
            self._dispatch_event(ApiCallFailed(
                endpoint=endpoint,
                error_type=type(e).__name__,
                error_message=e.message,
                status_code=e.status_code,
            ))
            raise

        await self.cache.put(key, response, self.config.cache.ttl_ms)
        return response

    async def close(self) -> None:
        logger.debug(f"Cache stats: {self.cache.stats()}")
        logger.debug(f"Rate limiter stats: {self.rate_limiter.stats()}")
        await self.transport.close()

    async def __aenter__(self) -> "RequestPipeline":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
