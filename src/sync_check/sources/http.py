"""
HTTP capability shared by the consensus and explorer sources.

Wraps an httpx.AsyncClient and translates its failures into the sync-check
error taxonomy at the edge, so sources never see httpx exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from sync_check.config import DEFAULT_TIMEOUT
from sync_check.types import ConnectivityError, ParseError, UpstreamError

_MAX_ERROR_BODY = 200
"""Characters of an error response body kept in exception messages."""


@dataclass(slots=True)
class HttpClient:
    """
    Minimal JSON-over-HTTP client.

    The underlying connection pool is created lazily and reused across
    collection cycles until close() is called.
    """

    timeout: float = DEFAULT_TIMEOUT
    """Per-request timeout in seconds."""

    transport: httpx.AsyncBaseTransport | None = None
    """Optional transport override (injectable for testing)."""

    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)
    """The pooled httpx client."""

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self._client

    async def get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        """
        GET a URL and decode its JSON body.

        Query parameters are passed separately so that secrets such as API
        keys never appear in error messages.

        Args:
            url: The URL to fetch, without query string.
            params: Optional query parameters.

        Returns:
            The decoded JSON body.

        Raises:
            ConnectivityError: If the request could not be completed.
            UpstreamError: If the response status is not 2xx.
            ParseError: If the body is not valid JSON.
        """
        client = self._ensure_client()
        try:
            response = await client.get(url, params=params)
        except httpx.TransportError as exc:
            raise ConnectivityError(url, str(exc) or type(exc).__name__) from exc

        if response.is_error:
            raise UpstreamError(
                url,
                response.text[:_MAX_ERROR_BODY],
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(url, f"invalid JSON body: {exc}") from exc

    async def get_status_code(self, url: str) -> int:
        """
        Probe a URL with HEAD and return its status code.

        Every status code is a valid answer here. Health endpoints signal
        state through the code itself (e.g. 206 while syncing).

        Raises:
            ConnectivityError: If the request could not be completed.
        """
        client = self._ensure_client()
        try:
            response = await client.head(url)
        except httpx.TransportError as exc:
            raise ConnectivityError(url, str(exc) or type(exc).__name__) from exc

        return response.status_code

    async def close(self) -> None:
        """Release pooled connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
