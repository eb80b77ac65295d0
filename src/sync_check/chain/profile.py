"""
Chain profile: the per-run classification of the connected chain.

Most chains expose the standard Beacon API on their consensus client.
Polygon PoS runs Heimdall instead, which reports sync progress as the age
of its latest block and has no optimistic-sync or health endpoint. The
profile decides once, at startup, which consensus source and which table
layout apply for the lifetime of the process.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from sync_check.types import StrictBaseModel, SyncCheckError

if TYPE_CHECKING:
    from sync_check.sources.execution import ExecutionClient

logger = logging.getLogger(__name__)

UNKNOWN_CHAIN_ID: Final = 0
"""Chain identifier used when the execution client cannot report one."""

ALTERNATE_CHAIN_IDS: Final = frozenset({137, 80001})
"""Chains whose consensus layer is Heimdall (Polygon PoS mainnet and Mumbai)."""

CHAIN_NAMES: Final[dict[int, str]] = {
    1: "mainnet",
    5: "goerli",
    137: "polygon",
    80001: "mumbai",
    11155111: "sepolia",
}
"""Human-readable names for chains we know about. Used for logging only."""


class ChainProfile(StrictBaseModel):
    """Immutable classification of the chain the node pair follows."""

    chain_id: int
    """Numeric chain identifier reported by the execution client."""

    alternate: bool
    """Whether the consensus layer uses the alternate (Heimdall) shape."""

    @classmethod
    def from_chain_id(cls, chain_id: int) -> ChainProfile:
        """Classify a chain identifier."""
        return cls(chain_id=chain_id, alternate=chain_id in ALTERNATE_CHAIN_IDS)

    @classmethod
    def unknown(cls) -> ChainProfile:
        """Profile used when the chain identifier could not be determined."""
        return cls.from_chain_id(UNKNOWN_CHAIN_ID)

    @property
    def name(self) -> str:
        """Human-readable chain name, or the bare identifier."""
        return CHAIN_NAMES.get(self.chain_id, f"chain-{self.chain_id}")


async def detect_chain_profile(client: ExecutionClient) -> ChainProfile:
    """
    Build the chain profile from a single chain-id call.

    A failure here is not fatal. The node may still be starting up, and the
    collection loop will surface persistent connectivity problems on every
    tick. We fall back to the unknown chain, which selects the standard
    consensus source and disables the explorer cross-check.

    Args:
        client: Connected execution client.

    Returns:
        The profile for the connected chain.
    """
    try:
        chain_id = await client.chain_id()
    except SyncCheckError as e:
        logger.warning("Failed to get chain id: %s", e)
        return ChainProfile.unknown()

    profile = ChainProfile.from_chain_id(chain_id)
    logger.info(
        "Detected chain %s (id=%d, alternate=%s)",
        profile.name,
        profile.chain_id,
        profile.alternate,
    )
    return profile
