"""
HttpxTransport - Default request function backed by httpx.AsyncClient.

By default it returns the raw response for every HTTP status and leaves
turning statuses into errors to ResponseNormalizer or the caller. With
``raise_for_status=True`` a non-2xx status raises httpx.HTTPStatusError, which
lets a RefreshGate wrap the transport directly.
"""

from typing import Any

import httpx
from loguru import logger

from refresh_fetch.errors import RequestTimeoutError, TransportError
from refresh_fetch.settings import Settings, global_settings

# Options keys forwarded to httpx.AsyncClient.request
REQUEST_OPTIONS = frozenset(
    {"method", "headers", "params", "content", "json", "data", "cookies", "timeout"}
)


class HttpxTransport:
    """
    Async HTTP transport with the ``request(target, options)`` signature.

    Usage:
        async with HttpxTransport(raise_for_status=True) as transport:
            gate = RefreshGate(transport.request, refresh, refresh_on_status(401))
            fetch_json = ResponseNormalizer(gate)
            result = await fetch_json("https://api.example.com/me")

        # Without raise_for_status, put the gate outside the normalizer
        async with HttpxTransport() as transport:
            fetch_json = RefreshGate(
                ResponseNormalizer(transport), refresh, refresh_on_status(401)
            )
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        raise_for_status: bool = False,
    ):
        self._settings = settings or global_settings
        self._transport = transport
        self._raise_for_status = raise_for_status

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = client
        self._owns_client = client is None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            kwargs: dict[str, Any] = {
                "timeout": httpx.Timeout(self._settings.request_timeout),
                "follow_redirects": self._settings.follow_redirects,
            }
            if self._settings.base_url:
                kwargs["base_url"] = self._settings.base_url
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._http_client = httpx.AsyncClient(**kwargs)
            logger.debug("HttpxTransport client created")
        return self._http_client

    async def request(
        self, target: str, options: dict[str, Any] | None = None
    ) -> httpx.Response:
        """
        Execute an HTTP request and return the fully read response.

        Raises:
            ValueError: If options contains an unsupported key
            RequestTimeoutError: If the request times out
            TransportError: For connection and protocol failures
            httpx.HTTPStatusError: For a non-2xx status, only with
                ``raise_for_status``
        """
        options = options or {}
        unknown = set(options) - REQUEST_OPTIONS
        if unknown:
            raise ValueError(f"Unsupported request options: {sorted(unknown)}")

        kwargs = dict(options)
        method = kwargs.pop("method", "GET")
        client = await self._get_http_client()

        try:
            response = await client.request(method, target, **kwargs)

        except httpx.TimeoutException as e:
            timeout = options.get("timeout", self._settings.request_timeout)
            raise RequestTimeoutError(target, timeout) from e

        except httpx.RequestError as e:
            raise TransportError(str(e) or type(e).__name__, target=target) from e

        if self._raise_for_status:
            response.raise_for_status()
        return response

    async def __call__(
        self, target: str, options: dict[str, Any] | None = None
    ) -> httpx.Response:
        return await self.request(target, options)

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
            logger.debug("HttpxTransport closed")

    async def __aenter__(self) -> "HttpxTransport":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
