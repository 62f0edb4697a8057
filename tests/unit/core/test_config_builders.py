import pytest

from simple_nominatim.core.config_builders import build_pipeline_config
from simple_nominatim.core.validation import ResilienceArgs
from simple_nominatim.domain.errors import ValidationError
from simple_nominatim.domain.models.request import CacheConfig, PipelineConfig, RateLimitConfig, RetryPolicy
from simple_nominatim.infrastructure.config.settings import set_config_for_testing


def test_defaults_without_flags():
    assert build_pipeline_config(ResilienceArgs()) == PipelineConfig()


def test_flags_override_defaults():
    config = build_pipeline_config(ResilienceArgs(
        no_cache=True, cache_ttl=1000, cache_max_size=10,
        no_rate_limit=True, rate_limit=5, rate_limit_interval=2000,
        no_retry=True, retry_max_attempts=7, retry_initial_delay=250,
    ))

    assert config.cache == CacheConfig(enabled=False, ttl_ms=1000, max_entries=10)
    assert config.rate_limit == RateLimitConfig(enabled=False, limit=5, interval_ms=2000)
    assert config.retry == RetryPolicy(enabled=False, max_attempts=7, initial_delay_ms=250)


def test_configured_values_replace_builtin_defaults():
    set_config_for_testing({"cache.ttl_ms": 1234, "retry.max_attempts": 5, "rate_limit.interval_ms": "1500"})

    config = build_pipeline_config(ResilienceArgs())

    assert config.cache.ttl_ms == 1234
    assert config.retry.max_attempts == 5
    assert config.rate_limit.interval_ms == 1500


def test_flags_win_over_configured_values(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_LIMIT", "3")

    assert build_pipeline_config(ResilienceArgs()).rate_limit.limit == 3
    assert build_pipeline_config(ResilienceArgs(rate_limit=2)).rate_limit.limit == 2


@pytest.mark.parametrize("key, value", [
    ("rate_limit.limit", 0),
    ("rate_limit.interval_ms", -5),
    ("cache.max_entries", 0),
    ("cache.ttl_ms", -1),
    ("retry.max_attempts", 0),
    ("retry.initial_delay_ms", "soon"),
])
def test_out_of_bounds_configured_value_is_a_validation_error(key, value):
    set_config_for_testing({key: value})

    with pytest.raises(ValidationError) as excinfo:
        build_pipeline_config(ResilienceArgs())

    assert [field for field, _ in excinfo.value.issues] == [key]


def test_disabled_components_ignore_configured_values():
    set_config_for_testing({"rate_limit.limit": 0, "retry.max_attempts": 0, "cache.max_entries": 0})

    config = build_pipeline_config(ResilienceArgs(no_cache=True, no_rate_limit=True, no_retry=True))

    assert config.cache == CacheConfig(enabled=False)
    assert config.rate_limit == RateLimitConfig(enabled=False)
    assert config.retry == RetryPolicy(enabled=False)


def test_disabling_one_component_still_checks_the_others():
    set_config_for_testing({"rate_limit.limit": 0, "retry.max_attempts": 0})

    with pytest.raises(ValidationError) as excinfo:
        build_pipeline_config(ResilienceArgs(no_rate_limit=True))

    assert excinfo.value.issues[0][0] == "retry.max_attempts"
