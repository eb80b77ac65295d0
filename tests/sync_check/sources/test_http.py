"""Tests for the shared HTTP capability."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest

from sync_check.sources import HttpClient
from sync_check.types import ConnectivityError, ParseError, UpstreamError

HttpFactory = Callable[[Callable[[httpx.Request], httpx.Response]], HttpClient]


class TestGetJson:
    """JSON fetching and error translation."""

    def test_decodes_body_and_passes_params(self, http_client_factory: HttpFactory) -> None:
        """The body is decoded and query parameters are sent."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async def run_test() -> None:
            http = http_client_factory(handler)
            try:
                body = await http.get_json("http://example/api", params={"a": "1"})
            finally:
                await http.close()
            assert body == {"ok": True}

        asyncio.run(run_test())

        assert seen[0].url.params["a"] == "1"

    def test_non_2xx_is_upstream_error(self, http_client_factory: HttpFactory) -> None:
        """Error statuses become UpstreamError with the status code."""
        http = http_client_factory(lambda request: httpx.Response(503, text="not ready"))

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(http.get_json("http://example/api"))

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail == "not ready"

    def test_invalid_json_is_parse_error(self, http_client_factory: HttpFactory) -> None:
        """A 200 with a non-JSON body is malformed."""
        http = http_client_factory(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ParseError, match="invalid JSON"):
            asyncio.run(http.get_json("http://example/api"))

    def test_transport_failure_is_connectivity_error(
        self, http_client_factory: HttpFactory
    ) -> None:
        """Transport failures become ConnectivityError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http = http_client_factory(handler)

        with pytest.raises(ConnectivityError, match="connection refused"):
            asyncio.run(http.get_json("http://example/api"))

    def test_timeout_is_connectivity_error(self, http_client_factory: HttpFactory) -> None:
        """Timeouts count as connectivity failures."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        http = http_client_factory(handler)

        with pytest.raises(ConnectivityError):
            asyncio.run(http.get_json("http://example/api"))


class TestGetStatusCode:
    """HEAD probes report any status code."""

    @pytest.mark.parametrize("status", [200, 206, 503])
    def test_returns_status(self, http_client_factory: HttpFactory, status: int) -> None:
        """Every status code is an answer, including errors."""
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(status)

        http = http_client_factory(handler)

        assert asyncio.run(http.get_status_code("http://example/health")) == status
        assert methods == ["HEAD"]

    def test_transport_failure(self, http_client_factory: HttpFactory) -> None:
        """An unreachable endpoint is still a connectivity failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        http = http_client_factory(handler)

        with pytest.raises(ConnectivityError):
            asyncio.run(http.get_status_code("http://example/health"))


class TestClose:
    """Closing releases the pooled client."""

    def test_close_is_idempotent(self, http_client_factory: HttpFactory) -> None:
        """Closing twice, or before any request, is harmless."""

        async def run_test() -> None:
            http = http_client_factory(lambda request: httpx.Response(200, json={}))
            await http.close()
            await http.get_json("http://example/api")
            await http.close()
            await http.close()

        asyncio.run(run_test())
