"""Tests for the Beacon API and Heimdall consensus sources."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from sync_check.chain import ChainProfile
from sync_check.sources import (
    AlternateConsensusSource,
    HttpClient,
    StandardConsensusSource,
    select_consensus_source,
)
from sync_check.sources.consensus import parse_rfc3339
from sync_check.state import AlternateConsensusState, StandardConsensusState
from sync_check.types import ConnectivityError, ParseError, UpstreamError

HttpFactory = Callable[[Callable[[httpx.Request], httpx.Response]], HttpClient]


def _beacon_handler(
    syncing: Any, health_status: int = 200
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/eth/v1/node/syncing":
            if isinstance(syncing, httpx.Response):
                return syncing
            return httpx.Response(200, json=syncing)
        if request.url.path == "/eth/v1/node/health":
            assert request.method == "HEAD"
            return httpx.Response(health_status)
        return httpx.Response(404)

    return handler


def _heimdall_body(height: str = "5000", time: str = "2024-01-01T00:00:00.123456789Z") -> Any:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "node_info": {"network": "heimdall-137"},
            "sync_info": {
                "latest_block_hash": "ABCDEF",
                "latest_block_height": height,
                "latest_block_time": time,
                "catching_up": False,
            },
        },
    }


class TestStandardConsensusSource:
    """Beacon API syncing status and health."""

    def test_reads_syncing_and_health(self, http_client_factory: HttpFactory) -> None:
        """Numeric strings are decoded and the health code is captured."""
        body = {
            "data": {
                "head_slot": "123",
                "sync_distance": "4",
                "is_syncing": False,
                "is_optimistic": False,
                "el_offline": False,
            }
        }
        http = http_client_factory(_beacon_handler(body, health_status=206))

        state = asyncio.run(StandardConsensusSource(http, "http://cl:5052/").read())

        assert state == StandardConsensusState(
            current_slot=123,
            sync_distance=4,
            is_syncing=False,
            is_optimistic=False,
            health_status=206,
        )

    def test_optimistic_defaults_to_false(self, http_client_factory: HttpFactory) -> None:
        """Older clients omit is_optimistic."""
        body = {"data": {"head_slot": "1", "sync_distance": "0", "is_syncing": True}}
        http = http_client_factory(_beacon_handler(body))

        state = asyncio.run(StandardConsensusSource(http, "http://cl").read())

        assert state.is_optimistic is False
        assert state.is_syncing is True

    def test_non_numeric_slot(self, http_client_factory: HttpFactory) -> None:
        """A non-numeric head slot is malformed."""
        body = {"data": {"head_slot": "abc", "sync_distance": "4", "is_syncing": False}}
        http = http_client_factory(_beacon_handler(body))

        with pytest.raises(ParseError) as exc_info:
            asyncio.run(StandardConsensusSource(http, "http://cl").read())

        assert exc_info.value.field == "head_slot"

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"data": None},
            {"data": {"head_slot": 123, "sync_distance": "4", "is_syncing": False}},
            {"data": {"head_slot": "1", "sync_distance": "4", "is_syncing": "false"}},
            [],
        ],
    )
    def test_malformed_body(self, http_client_factory: HttpFactory, body: Any) -> None:
        """Missing or mistyped fields are malformed."""
        http = http_client_factory(_beacon_handler(body))

        with pytest.raises(ParseError):
            asyncio.run(StandardConsensusSource(http, "http://cl").read())

    def test_syncing_http_error(self, http_client_factory: HttpFactory) -> None:
        """A failing syncing endpoint fails the read."""
        http = http_client_factory(_beacon_handler(httpx.Response(500, text="boom")))

        with pytest.raises(UpstreamError):
            asyncio.run(StandardConsensusSource(http, "http://cl").read())

    def test_health_unreachable(self, http_client_factory: HttpFactory) -> None:
        """An unreachable health endpoint fails the whole read."""
        body = {"data": {"head_slot": "1", "sync_distance": "0", "is_syncing": False}}
        syncing = _beacon_handler(body)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "HEAD":
                raise httpx.ConnectError("refused", request=request)
            return syncing(request)

        http = http_client_factory(handler)

        with pytest.raises(ConnectivityError):
            asyncio.run(StandardConsensusSource(http, "http://cl").read())


class TestAlternateConsensusSource:
    """Heimdall status."""

    def test_reads_height_and_age(self, http_client_factory: HttpFactory) -> None:
        """The sync distance is the age of the latest block in seconds."""
        http = http_client_factory(lambda request: httpx.Response(200, json=_heimdall_body()))
        block_time = datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=UTC).timestamp()

        source = AlternateConsensusSource(http, "http://heimdall", time_fn=lambda: block_time + 2.5)
        state = asyncio.run(source.read())

        assert isinstance(state, AlternateConsensusState)
        assert state.current_slot == 5000
        assert state.sync_distance == pytest.approx(2.5)
        assert state.is_syncing is False

    def test_future_block_has_zero_age(self, http_client_factory: HttpFactory) -> None:
        """Clock skew never yields a negative age."""
        http = http_client_factory(lambda request: httpx.Response(200, json=_heimdall_body()))

        source = AlternateConsensusSource(http, "http://heimdall", time_fn=lambda: 0.0)
        state = asyncio.run(source.read())

        assert state.sync_distance == 0.0

    def test_requests_status_path(self, http_client_factory: HttpFactory) -> None:
        """Heimdall is queried on /status."""
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json=_heimdall_body())

        http = http_client_factory(handler)
        asyncio.run(AlternateConsensusSource(http, "http://heimdall/", time_fn=lambda: 0.0).read())

        assert paths == ["/status"]

    @pytest.mark.parametrize(
        "body",
        [
            _heimdall_body(height="12x"),
            _heimdall_body(time="yesterday"),
            {"result": {}},
        ],
    )
    def test_malformed_status(self, http_client_factory: HttpFactory, body: Any) -> None:
        """Malformed heights, timestamps and bodies fail the read."""
        http = http_client_factory(lambda request: httpx.Response(200, json=body))

        with pytest.raises(ParseError):
            asyncio.run(AlternateConsensusSource(http, "http://heimdall").read())


class TestParseRfc3339:
    """Timestamp parsing for Heimdall."""

    def test_nanoseconds_truncated(self) -> None:
        """Digits beyond microseconds are dropped."""
        parsed = parse_rfc3339("2024-01-01T00:00:00.123456789Z", source="s", field="f")

        assert parsed == datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=UTC)

    def test_offset(self) -> None:
        """Explicit offsets are honored."""
        parsed = parse_rfc3339("2024-01-01T02:00:00+02:00", source="s", field="f")

        assert parsed == datetime(2024, 1, 1, 0, 0, 0, tzinfo=UTC)

    @pytest.mark.parametrize("raw", ["2024-01-01", "2024-01-01T00:00:00", "2024-13-01T00:00:00Z"])
    def test_invalid(self, raw: str) -> None:
        """Dates without a time, zone or valid month are rejected."""
        with pytest.raises(ParseError):
            parse_rfc3339(raw, source="s", field="f")


class TestSelectConsensusSource:
    """Source selection by chain profile."""

    def test_standard(self) -> None:
        """Standard chains use the Beacon API source."""
        source = select_consensus_source(ChainProfile.from_chain_id(1), HttpClient(), "http://cl")

        assert isinstance(source, StandardConsensusSource)

    def test_alternate(self) -> None:
        """Polygon chains use the Heimdall source."""
        source = select_consensus_source(
            ChainProfile.from_chain_id(80001), HttpClient(), "http://cl"
        )

        assert isinstance(source, AlternateConsensusSource)
