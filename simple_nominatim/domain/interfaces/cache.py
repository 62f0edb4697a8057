"""Interface for response caching.

Defines the contract for storing, retrieving and evicting cached API
responses with a per-entry time-to-live.
"""

import abc
from typing import Optional

from ..models.common import CacheKey
from ..models.request import ApiResponse, CacheStats


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def get(self, key: CacheKey) -> Optional[ApiResponse]:
        """Retrieves a response from the cache.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached response if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def put(self, key: CacheKey, value: ApiResponse, ttl_ms: int) -> None:
        """Stores a response under ``key``.

        Args:
            key: The cache key to store the response under.
            value: The response to store.
            ttl_ms: Time-to-live in milliseconds. Values <= 0 are not cached.
        """
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey) -> None:
        """Deletes the entry for ``key`` if present."""
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Removes every entry."""
        pass

    @abc.abstractmethod
    def stats(self) -> CacheStats:
        """Returns hit and miss counters since creation or the last clear."""
        pass
