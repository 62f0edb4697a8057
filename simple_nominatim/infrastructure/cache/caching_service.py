"""Concrete implementation of the in-memory Caching Service.

Entries expire after their TTL and the store is bounded: inserting a new key
into a full store evicts the least-recently-used entry first. The store lives
only as long as the process; nothing is written to disk.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from simple_nominatim.domain.interfaces.cache import CacheService
from simple_nominatim.domain.models.common import CacheKey
from simple_nominatim.domain.models.request import ApiResponse, CacheStats, DEFAULT_CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    value: ApiResponse
    created_at: float  # Clock reading in seconds
    ttl: float         # Seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.created_at + self.ttl


class InMemoryCacheService(CacheService):
    """Bounded LRU cache with per-entry TTL.

    When ``enabled`` is False the cache behaves as a null object: ``get``
    always misses and ``put`` does nothing.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the caching service.

        Args:
            max_entries: Maximum number of entries kept at once.
            enabled: Whether caching is active. A disabled cache does not
                check ``max_entries``.
            clock: Monotonic time source in seconds.
        """
        if enabled and max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self.max_entries = max_entries
        self.enabled = enabled
        self._clock = clock
        # Ordered from least to most recently used; ties keep insertion order
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._lock = asyncio.Lock()
        logger.debug(f"CachingService initialized: enabled={enabled}, max_entries={max_entries}")

    @property
    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _evict_expired(self, now: float) -> None:
        expired_keys = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for k in expired_keys:
            del self._entries[k]
        if expired_keys:
            logger.debug(f"Evicted {len(expired_keys)} expired cache entries.")

    # --- CacheService Interface Implementation ---

    async def get(self, key: CacheKey) -> Optional[ApiResponse]:
        """Returns the live entry for ``key`` and marks it most recently used."""
        if not self.enabled:
            return None

        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss for key: {key}")
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache entry expired for key: {key}")
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            logger.debug(f"Cache hit for key: {key}")
            return entry.value

    async def put(self, key: CacheKey, value: ApiResponse, ttl_ms: int) -> None:
        """Inserts or replaces ``key``. A non-positive TTL is never cached."""
        if not self.enabled or ttl_ms <= 0:
            return

        async with self._lock:
            now = self._clock()
            if key in self._entries:
                del self._entries[key]
            else:
                self._evict_expired(now)
                while len(self._entries) >= self.max_entries:
                    evicted_key, _ = self._entries.popitem(last=False)
                    logger.debug(f"Cache full, evicted least recently used key: {evicted_key}")
            self._entries[key] = CacheEntry(value=value, created_at=now, ttl=ttl_ms / 1000.0)
            logger.debug(f"Stored item in cache: key={key}, ttl={ttl_ms}ms")

    async def delete(self, key: CacheKey) -> None:
        async with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug(f"Deleted item from cache: key={key}")

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        logger.debug("Cleared in-memory cache.")

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        hit_rate = round(self._hits / total, 2) if total else 0.0
        return CacheStats(hits=self._hits, misses=self._misses, hit_rate=hit_rate, size=len(self._entries))
