"""Caching Service Implementation.

Provides an in-memory implementation of the CacheService interface with
per-entry TTL and least-recently-used eviction.
Bounded Context: Cache Management
"""
