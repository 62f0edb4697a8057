"""Builds the PipelineConfig for one invocation from validated flags.

Flags win over configured defaults, which win over built-in defaults.
Configured values pass the same bounds as the flags they stand in for; a
component switched off by its ``--no-*`` flag ignores its configured values.
"""

import logging
from typing import Any, Dict

from simple_nominatim.core.validation import ResilienceArgs, validate_args
from simple_nominatim.domain.errors import ValidationError
from simple_nominatim.domain.models.request import (
    DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_MS, DEFAULT_RATE_LIMIT,
    DEFAULT_RATE_LIMIT_INTERVAL_MS, DEFAULT_RETRY_INITIAL_DELAY_MS,
    DEFAULT_RETRY_MAX_ATTEMPTS, CacheConfig, PipelineConfig, RateLimitConfig,
    RetryPolicy,
)
from simple_nominatim.infrastructure.config.settings import get_config

logger = logging.getLogger(__name__)

# flag field -> (config key, built-in default, flag that disables the component)
_TUNABLES = {
    "cache_ttl": ("cache.ttl_ms", DEFAULT_CACHE_TTL_MS, "no_cache"),
    "cache_max_size": ("cache.max_entries", DEFAULT_CACHE_MAX_ENTRIES, "no_cache"),
    "rate_limit": ("rate_limit.limit", DEFAULT_RATE_LIMIT, "no_rate_limit"),
    "rate_limit_interval": ("rate_limit.interval_ms", DEFAULT_RATE_LIMIT_INTERVAL_MS, "no_rate_limit"),
    "retry_max_attempts": ("retry.max_attempts", DEFAULT_RETRY_MAX_ATTEMPTS, "no_retry"),
    "retry_initial_delay": ("retry.initial_delay_ms", DEFAULT_RETRY_INITIAL_DELAY_MS, "no_retry"),
}


def resolve_resilience(flags: ResilienceArgs) -> ResilienceArgs:
    """Fills every unset tunable from configuration or the built-in default.

    Raises:
        ValidationError: A configured value is out of bounds. The issue names
            the configuration key rather than the flag.
    """
    values: Dict[str, Any] = flags.model_dump()
    sources: Dict[str, str] = {}
    for field, (key, default, disabled_by) in _TUNABLES.items():
        if values[field] is not None:
            continue
        if values[disabled_by]:
            values[field] = default
        else:
            values[field] = get_config(key, default)
            sources[field] = key

    try:
        return validate_args(ResilienceArgs, values)
    except ValidationError as e:
        raise ValidationError([(sources.get(field, field), message) for field, message in e.issues]) from e


def build_pipeline_config(flags: ResilienceArgs) -> PipelineConfig:
    resolved = resolve_resilience(flags)
    config = PipelineConfig(
        cache=CacheConfig(
            enabled=not resolved.no_cache,
            ttl_ms=resolved.cache_ttl,
            max_entries=resolved.cache_max_size,
        ),
        rate_limit=RateLimitConfig(
            enabled=not resolved.no_rate_limit,
            limit=resolved.rate_limit,
            interval_ms=resolved.rate_limit_interval,
        ),
        retry=RetryPolicy(
            enabled=not resolved.no_retry,
            max_attempts=resolved.retry_max_attempts,
            initial_delay_ms=resolved.retry_initial_delay,
        ),
    )
    logger.debug(f"Pipeline configuration: {config}")
    return config
