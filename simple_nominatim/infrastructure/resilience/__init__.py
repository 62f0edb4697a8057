"""API Resilience Implementations.

Contains the rate limiter, the retry executor with exponential backoff and
the request pipeline that composes them with the response cache.
Bounded Context: API Resilience
"""
