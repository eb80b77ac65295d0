"""
Sync state records produced by one collection cycle.

Each cycle yields exactly one SyncSnapshot:

- ExecutionSyncState: local head, local view of the tip, explorer view of the tip
- ConsensusSyncState: head slot and sync distance, in one of two shapes
- ChainProfile: the classification that chose the consensus shape

Snapshots are immutable. A sink consumes one and discards it.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, model_validator

from sync_check.chain import ChainProfile
from sync_check.types import StrictBaseModel, Uint64

NETWORK_HEIGHT_UNAVAILABLE = 0
"""Sentinel for network_highest_block when the explorer could not answer."""


class SyncProgress(StrictBaseModel):
    """Sync progress reported by an execution client that is catching up."""

    current_block: Uint64
    """Block the client is currently importing."""

    highest_block: Uint64
    """Block the client believes is the chain tip."""


class ExecutionHead(StrictBaseModel):
    """The execution client's own view of its head and the chain tip."""

    current_block: Uint64
    """Height of the local canonical head."""

    local_highest_block: Uint64
    """Height the node believes is the chain tip."""

    @model_validator(mode="after")
    def _check_tip_not_behind_head(self) -> ExecutionHead:
        if self.local_highest_block < self.current_block:
            raise ValueError(
                f"local_highest_block {self.local_highest_block} is below "
                f"current_block {self.current_block}"
            )
        return self


class ExecutionSyncState(StrictBaseModel):
    """
    Execution-layer sync state, reconciled with the explorer.

    The lag values are derived on access, never stored.
    """

    current_block: Uint64
    """Height of the local canonical head."""

    local_highest_block: Uint64
    """Height the node believes is the chain tip."""

    network_highest_block: Uint64 = NETWORK_HEIGHT_UNAVAILABLE
    """Height reported by the block explorer, or 0 if unavailable."""

    @model_validator(mode="after")
    def _check_tip_not_behind_head(self) -> ExecutionSyncState:
        if self.local_highest_block < self.current_block:
            raise ValueError(
                f"local_highest_block {self.local_highest_block} is below "
                f"current_block {self.current_block}"
            )
        return self

    @classmethod
    def from_head(cls, head: ExecutionHead, network_highest_block: int) -> ExecutionSyncState:
        """Combine the execution client's view with the explorer height."""
        return cls(
            current_block=head.current_block,
            local_highest_block=head.local_highest_block,
            network_highest_block=network_highest_block,
        )

    @property
    def local_diff(self) -> int:
        """Blocks between the local head and the node's own view of the tip."""
        return self.local_highest_block - self.current_block

    @property
    def network_diff(self) -> int:
        """
        Blocks between the local head and the explorer's tip.

        Zero when the node is at or ahead of the explorer, including when
        the explorer height is the unavailable sentinel.
        """
        return max(0, self.network_highest_block - self.current_block)


class StandardConsensusState(StrictBaseModel):
    """Consensus sync state from a Beacon API client."""

    kind: Literal["standard"] = "standard"

    current_slot: Uint64
    """Head slot of the consensus client."""

    sync_distance: Uint64
    """Slots between the head slot and the current wall-clock slot."""

    is_syncing: bool
    """Whether the client reports it is syncing."""

    is_optimistic: bool
    """Whether the head was imported optimistically."""

    health_status: int
    """HTTP status code of the node health probe."""


class AlternateConsensusState(StrictBaseModel):
    """
    Consensus sync state from a Heimdall client.

    Heimdall has no slot-based sync distance. We report the age of the
    latest block in seconds instead. There is no optimistic-sync concept
    and no health endpoint.
    """

    kind: Literal["alternate"] = "alternate"

    current_slot: Uint64
    """Latest block height of the consensus client."""

    sync_distance: float = Field(ge=0.0)
    """Seconds elapsed since the latest consensus block."""

    is_syncing: bool
    """Whether the client reports it is catching up."""


ConsensusSyncState = Annotated[
    StandardConsensusState | AlternateConsensusState,
    Field(discriminator="kind"),
]
"""Consensus sync state, tagged by the shape of the consensus client."""


class SyncSnapshot(StrictBaseModel):
    """The reconciled result of one collection cycle."""

    profile: ChainProfile
    """Chain profile used to produce this snapshot."""

    execution: ExecutionSyncState
    """Execution-layer state."""

    consensus: ConsensusSyncState
    """Consensus-layer state, shaped by the profile."""

    @model_validator(mode="after")
    def _check_consensus_shape(self) -> SyncSnapshot:
        expected = "alternate" if self.profile.alternate else "standard"
        if self.consensus.kind != expected:
            raise ValueError(
                f"chain {self.profile.chain_id} expects {expected} consensus state, "
                f"got {self.consensus.kind}"
            )
        return self
