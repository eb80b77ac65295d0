"""
Shared pytest fixtures for all sync_check tests.

Provides fake transports and canned records used across test modules.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from sync_check.chain import ChainProfile
from sync_check.sources import ExecutionClient, HttpClient
from sync_check.state import (
    AlternateConsensusState,
    ExecutionSyncState,
    StandardConsensusState,
    SyncSnapshot,
)


class FakeRpcTransport:
    """
    RPC transport answering from a table of canned results.

    A result that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses: dict[str, Any], endpoint: str = "fake://execution") -> None:
        """Initialize with canned results keyed by method name."""
        self.endpoint = endpoint
        self.responses = responses
        self.calls: list[tuple[str, list[Any]]] = []
        self.closed = False

    async def request(self, method: str, params: list[Any]) -> Any:
        """Return the canned result for a method."""
        self.calls.append((method, params))
        result = self.responses[method]
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        """Mark the transport as closed."""
        self.closed = True


@pytest.fixture
def rpc_client_factory() -> Callable[..., ExecutionClient]:
    """Factory for execution clients backed by canned JSON-RPC results."""

    def _create(**responses: Any) -> ExecutionClient:
        return ExecutionClient(FakeRpcTransport(responses))

    return _create


@pytest.fixture
def http_client_factory() -> Callable[[Callable[[httpx.Request], httpx.Response]], HttpClient]:
    """Factory for HTTP clients whose requests are answered by a handler."""

    def _create(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClient:
        return HttpClient(transport=httpx.MockTransport(handler))

    return _create


@pytest.fixture
def mainnet_profile() -> ChainProfile:
    """Profile of a standard (Beacon API) chain."""
    return ChainProfile.from_chain_id(1)


@pytest.fixture
def polygon_profile() -> ChainProfile:
    """Profile of an alternate (Heimdall) chain."""
    return ChainProfile.from_chain_id(137)


@pytest.fixture
def standard_consensus() -> StandardConsensusState:
    """A synced Beacon API consensus state."""
    return StandardConsensusState(
        current_slot=123,
        sync_distance=4,
        is_syncing=False,
        is_optimistic=False,
        health_status=200,
    )


@pytest.fixture
def alternate_consensus() -> AlternateConsensusState:
    """A Heimdall consensus state with a 2.5 second old head."""
    return AlternateConsensusState(current_slot=5000, sync_distance=2.5, is_syncing=True)


@pytest.fixture
def standard_snapshot(
    mainnet_profile: ChainProfile,
    standard_consensus: StandardConsensusState,
) -> SyncSnapshot:
    """Snapshot of a standard chain with the node 10 blocks behind the explorer."""
    return SyncSnapshot(
        profile=mainnet_profile,
        execution=ExecutionSyncState(
            current_block=100,
            local_highest_block=150,
            network_highest_block=110,
        ),
        consensus=standard_consensus,
    )


@pytest.fixture
def alternate_snapshot(
    polygon_profile: ChainProfile,
    alternate_consensus: AlternateConsensusState,
) -> SyncSnapshot:
    """Snapshot of an alternate chain with no explorer height."""
    return SyncSnapshot(
        profile=polygon_profile,
        execution=ExecutionSyncState(current_block=100, local_highest_block=100),
        consensus=alternate_consensus,
    )
