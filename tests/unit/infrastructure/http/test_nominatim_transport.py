import httpx
import pytest

from simple_nominatim.domain.errors import TransportError
from simple_nominatim.domain.models.request import RequestDescriptor
from simple_nominatim.infrastructure.http.nominatim_transport import NominatimTransport

BASE_URL = "https://nominatim.example.org"


def _transport(handler) -> NominatimTransport:
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        headers={"User-Agent": "simple-nominatim-tests"},
    )
    return NominatimTransport(base_url=BASE_URL, client=client)


@pytest.mark.asyncio
async def test_send_builds_get_request_with_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["user_agent"] = request.headers["User-Agent"]
        return httpx.Response(200, json={"place_id": 123}, headers={"content-type": "application/json"})

    transport = _transport(handler)
    descriptor = RequestDescriptor.create("/reverse", {"lat": "48.85", "lon": "2.29", "format": "json"})

    response = await transport.send(descriptor)
    await transport.close()

    assert seen == {
        "method": "GET",
        "path": "/reverse",
        "params": {"lat": "48.85", "lon": "2.29", "format": "json"},
        "user_agent": "simple-nominatim-tests",
    }
    assert response.status_code == 200
    assert response.json() == {"place_id": 123}
    assert response.content_type.startswith("application/json")


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code, retryable", [
    (429, True),
    (500, True),
    (503, True),
    (400, False),
    (404, False),
])
async def test_http_errors_are_classified(status_code, retryable):
    transport = _transport(lambda request: httpx.Response(status_code, text="upstream said no"))

    with pytest.raises(TransportError) as exc_info:
        await transport.send(RequestDescriptor.create("/search", {"q": "paris"}))

    error = exc_info.value
    assert error.retryable is retryable
    assert error.status_code == status_code
    assert f"HTTP {status_code}" in error.message


@pytest.mark.asyncio
async def test_network_errors_are_retryable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as exc_info:
        await _transport(handler).send(RequestDescriptor.create("/status"))

    assert exc_info.value.retryable is True
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_timeouts_are_retryable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(TransportError) as exc_info:
        await _transport(handler).send(RequestDescriptor.create("/status"))

    assert exc_info.value.retryable is True
    assert "timed out" in exc_info.value.message


def test_default_client_carries_user_agent_and_base_url():
    transport = NominatimTransport(base_url=f"{BASE_URL}/", user_agent="agent/1.0", timeout=2.5)
    client = transport._get_http_client()

    assert transport.base_url == BASE_URL
    assert client.headers["User-Agent"] == "agent/1.0"
    assert str(client.base_url).rstrip("/") == BASE_URL
    assert client.timeout.read == 2.5


@pytest.mark.asyncio
async def test_close_releases_client():
    transport = NominatimTransport(base_url=BASE_URL)
    transport._get_http_client()
    async with transport:
        pass
    assert transport._http_client is None
