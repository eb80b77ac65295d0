"""
Metric reconciler.

One call to collect() is one collection cycle:

1. Read the execution head (current block, local view of the tip)
2. Ask the explorer for the network tip
3. Read the consensus source chosen by the chain profile
4. Assemble the snapshot

Failure Policy
--------------
The explorer is a cross-check, not a dependency. Any explorer failure
degrades the network height to the sentinel 0 and the cycle continues.
Chains the explorer does not index are expected and logged quietly.

Execution and consensus failures abort the cycle. No partial snapshot is
ever produced; the caller decides whether to log and retry on the next tick
(daemon mode) or exit non-zero (one-shot mode).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sync_check.chain import ChainProfile
from sync_check.sources import ConsensusSource, ExecutionSource, Explorer
from sync_check.state import NETWORK_HEIGHT_UNAVAILABLE, ExecutionSyncState, SyncSnapshot
from sync_check.types import SyncCheckError, UnsupportedChainError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncCollector:
    """Runs the source adapters for one cycle and merges their results."""

    profile: ChainProfile
    """Chain profile fixed at startup."""

    execution: ExecutionSource
    """Execution client source."""

    consensus: ConsensusSource
    """Consensus source matching the profile."""

    explorer: Explorer
    """Block explorer used as ground truth."""

    async def collect(self) -> SyncSnapshot:
        """
        Run one collection cycle.

        Returns:
            The reconciled snapshot.

        Raises:
            SyncCheckError: Any execution or consensus failure, untouched.
        """
        head = await self.execution.read()
        network_highest_block = await self._network_highest_block()
        consensus = await self.consensus.read()

        snapshot = SyncSnapshot(
            profile=self.profile,
            execution=ExecutionSyncState.from_head(head, network_highest_block),
            consensus=consensus,
        )
        logger.debug(
            "Collected: block=%d local_diff=%d network_diff=%d slot=%d",
            snapshot.execution.current_block,
            snapshot.execution.local_diff,
            snapshot.execution.network_diff,
            snapshot.consensus.current_slot,
        )
        return snapshot

    async def _network_highest_block(self) -> int:
        """Ask the explorer for the network tip, degrading to the sentinel."""
        try:
            return await self.explorer.current_block_number(self.profile.chain_id)
        except UnsupportedChainError as e:
            logger.debug("Explorer cross-check skipped: %s", e)
        except SyncCheckError as e:
            logger.warning("Explorer unavailable, network height unknown: %s", e)
        return NETWORK_HEIGHT_UNAVAILABLE
