"""Concrete implementation of the Transport interface using httpx.

Sends one GET request per call to the Nominatim API and translates
transport-level failures into classified TransportErrors.
"""

import logging
from typing import Optional

import httpx

from simple_nominatim import __version__
from simple_nominatim.domain.errors import TransportError
from simple_nominatim.domain.interfaces.transport import Transport
from simple_nominatim.domain.models.request import ApiResponse, RequestDescriptor

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = f"simple-nominatim/{__version__}"
DEFAULT_TIMEOUT_SECONDS = 10.0


class NominatimTransport(Transport):
    """httpx-backed transport for the Nominatim API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the transport.

        Args:
            base_url: Root URL of the Nominatim instance.
            user_agent: Value of the User-Agent header required by the usage policy.
            timeout: Per-request timeout in seconds.
            client: Pre-built client, mainly for tests. Created lazily otherwise.
        """
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._http_client = client
        logger.debug(f"NominatimTransport initialized for {self.base_url}")

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
        return self._http_client

    async def send(self, descriptor: RequestDescriptor) -> ApiResponse:
        client = self._get_http_client()
        logger.debug(f"{descriptor.method} {descriptor.path} params={descriptor.params_dict()}")

        try:
            response = await client.request(
                method=descriptor.method,
                url=descriptor.path,
                params=list(descriptor.params),
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request to {descriptor.path} timed out after {self.timeout}s", retryable=True,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}", retryable=True) from e

        if response.is_error:
            message = f"HTTP {response.status_code}: {response.text[:200]}"
            raise TransportError.from_status(response.status_code, message)

        return ApiResponse(
            body=response.text,
            content_type=response.headers.get("content-type", ""),
            status_code=response.status_code,
        )

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "NominatimTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
