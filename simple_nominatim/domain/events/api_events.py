"""Domain Events related to API calls and resilience.

Examples include events for when calls are served from cache, deferred by
the rate limiter, retried, fail, or succeed.
"""

from dataclasses import dataclass, field
import time
from typing import Callable, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


EventListener = Callable[[DomainEvent], None]


# --- Specific API Events ---

@dataclass
class CacheHit(DomainEvent):
    """Event triggered when a response is served from the cache."""
    endpoint: str
    cache_key: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when an API call waited for a rate-limit permit."""
    endpoint: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a request attempt is about to be sent."""
    endpoint: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed attempt."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    error_message: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an API call succeeds."""
    endpoint: str
    latency_ms: float
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively (after retries)."""
    endpoint: str
    error_type: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)
