import asyncio
import os
from typing import List, Optional, Union

import pytest
from typer.testing import CliRunner

from simple_nominatim.domain.errors import ClassifiedError
from simple_nominatim.domain.interfaces.transport import Transport
from simple_nominatim.domain.models.request import ApiResponse, RequestDescriptor
from simple_nominatim.infrastructure.config import settings


class FakeClock:
    """Deterministic time source whose sleep advances the clock instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        # Still yield so concurrent tasks interleave as they would for real
        await asyncio.sleep(0)


class ScriptedTransport(Transport):
    """Transport replaying a script of responses and errors, one per send."""

    def __init__(self, *outcomes: Union[ApiResponse, Exception], default: Optional[ApiResponse] = None):
        self.outcomes = list(outcomes)
        self.default = default or ApiResponse(body='{"ok":true}')
        self.sent: List[RequestDescriptor] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.sent)

    async def send(self, descriptor: RequestDescriptor) -> ApiResponse:
        self.sent.append(descriptor)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_clock():
    """Provides a FakeClock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def transport_factory():
    """Builds ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def retryable_error():
    return ClassifiedError("HTTP 503: Service Unavailable", retryable=True, status_code=503)


@pytest.fixture
def terminal_error():
    return ClassifiedError("HTTP 400: Bad Request", retryable=False, status_code=400)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keeps user config files and NOMINATIM_/CACHE_/... env vars out of every test."""
    for name in list(os.environ):
        if name.split("_", 1)[0] in {"NOMINATIM", "CACHE", "RATE", "RETRY", "LOGGING"}:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", True)
    settings.clear_test_config()
    yield
    settings.clear_test_config()
