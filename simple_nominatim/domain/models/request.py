"""Domain models describing one API call and the configuration of the
resilience pipeline it travels through.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlencode

from .common import CacheKey, EndpointPath

QueryParams = Tuple[Tuple[str, str], ...]


def _stringify(value: Any) -> str:
    """Converts a query value into its wire representation."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if hasattr(value, "value"):  # Enum members
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one logical API call."""
    path: EndpointPath
    params: QueryParams = ()
    method: str = "GET"

    @classmethod
    def create(cls, path: str, params: Optional[Mapping[str, Any]] = None) -> "RequestDescriptor":
        """Builds a descriptor, dropping parameters whose value is None.

        Insertion order of ``params`` is preserved for the wire request.
        """
        items = tuple(
            (name, _stringify(value))
            for name, value in (params or {}).items()
            if value is not None
        )
        return cls(path=EndpointPath(path), params=items)

    @property
    def cache_key(self) -> CacheKey:
        """Method + path + parameters sorted by name."""
        query = urlencode(sorted(self.params))
        return CacheKey(f"{self.method.upper()} {self.path}?{query}")

    def params_dict(self) -> dict:
        return dict(self.params)


@dataclass(frozen=True)
class ApiResponse:
    """Payload returned by the transport and stored in the cache."""
    body: str
    content_type: str = "application/json"
    status_code: int = 200

    def json(self) -> Any:
        return json.loads(self.body)


# --- Pipeline configuration ---

DEFAULT_CACHE_TTL_MS = 5 * 60 * 1000
DEFAULT_CACHE_MAX_ENTRIES = 500
# Nominatim usage policy: an absolute maximum of 1 request per second
DEFAULT_RATE_LIMIT = 1
DEFAULT_RATE_LIMIT_INTERVAL_MS = 1000
DEFAULT_RETRY_MAX_ATTEMPTS = 3
DEFAULT_RETRY_INITIAL_DELAY_MS = 1000


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool = True
    ttl_ms: int = DEFAULT_CACHE_TTL_MS
    max_entries: int = DEFAULT_CACHE_MAX_ENTRIES


@dataclass(frozen=True)
class RateLimitConfig:
    enabled: bool = True
    limit: int = DEFAULT_RATE_LIMIT
    interval_ms: int = DEFAULT_RATE_LIMIT_INTERVAL_MS


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration. The delay doubles after every failed attempt."""
    enabled: bool = True
    max_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS
    initial_delay_ms: int = DEFAULT_RETRY_INITIAL_DELAY_MS

    @property
    def effective_max_attempts(self) -> int:
        return self.max_attempts if self.enabled else 1

    def delay_seconds(self, retry_index: int) -> float:
        """Backoff before the retry with the given zero-based index."""
        return (self.initial_delay_ms * (2 ** retry_index)) / 1000.0


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for one RequestPipeline, built once from command-line flags."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)


# --- Runtime statistics ---

@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    hit_rate: float  # hits / (hits + misses), rounded to two decimals
    size: int


@dataclass(frozen=True)
class RateLimiterStats:
    request_count: int  # Permits granted since creation or the last reset
    queued_count: int   # Callers currently inside acquire()
