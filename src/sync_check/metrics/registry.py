"""
Metric registry using prometheus_client.

The registry is created once at startup and handed to every component that
records or exposes metrics. prometheus_client metrics are safe to update
from the collection loop while the server renders them for a scrape.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from sync_check import __version__
from sync_check.state import SyncSnapshot


def create_registry(version: str = __version__) -> CollectorRegistry:
    """
    Create a dedicated registry for sync-check metrics.

    Using a dedicated registry avoids pollution from default Python process metrics.
    The build info metric is registered up front.
    """
    registry = CollectorRegistry()
    build_info = Info(
        "sync_check_build",
        "Build information of sync-check",
        registry=registry,
    )
    build_info.info({"version": version})
    return registry


def generate_metrics(registry: CollectorRegistry) -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(registry)


class SyncGauges:
    """
    Gauge sink: one gauge per numeric field of a snapshot.

    Boolean flags and the health status are shown by the table renderer but
    deliberately not exported here.
    """

    __slots__ = (
        "execution_current_block",
        "execution_local_highest_block",
        "execution_network_highest_block",
        "execution_local_diff",
        "execution_network_diff",
        "consensus_current_slot",
        "consensus_sync_distance",
    )

    def __init__(self, registry: CollectorRegistry) -> None:
        # ---------------------------------------------------------------------
        # Execution Layer
        # ---------------------------------------------------------------------

        self.execution_current_block = Gauge(
            "sync_execution_current_block",
            "Current block number in the execution node",
            registry=registry,
        )
        self.execution_local_highest_block = Gauge(
            "sync_execution_local_highest_block",
            "Local highest block number in the execution node",
            registry=registry,
        )
        self.execution_network_highest_block = Gauge(
            "sync_execution_network_highest_block",
            "Network highest block number in the execution node",
            registry=registry,
        )
        self.execution_local_diff = Gauge(
            "sync_execution_local_diff",
            "Difference between current block vs node's highest known block",
            registry=registry,
        )
        self.execution_network_diff = Gauge(
            "sync_execution_network_diff",
            "Difference between current block and etherscan block",
            registry=registry,
        )

        # ---------------------------------------------------------------------
        # Consensus Layer
        # ---------------------------------------------------------------------

        self.consensus_current_slot = Gauge(
            "sync_consensus_current_slot",
            "Current slot number in the consensus node",
            registry=registry,
        )
        self.consensus_sync_distance = Gauge(
            "sync_consensus_sync_distance",
            "Sync distance in the consensus node (for polygon, this is time in seconds)",
            registry=registry,
        )

    def update(self, snapshot: SyncSnapshot) -> None:
        """Set every gauge to the snapshot's value."""
        execution = snapshot.execution
        self.execution_current_block.set(execution.current_block)
        self.execution_local_highest_block.set(execution.local_highest_block)
        self.execution_network_highest_block.set(execution.network_highest_block)
        self.execution_local_diff.set(execution.local_diff)
        self.execution_network_diff.set(execution.network_diff)

        consensus = snapshot.consensus
        self.consensus_current_slot.set(consensus.current_slot)
        self.consensus_sync_distance.set(consensus.sync_distance)


class CollectionMetrics:
    """Instrumentation of the collection loop itself."""

    __slots__ = ("collections", "failures", "duration")

    def __init__(self, registry: CollectorRegistry) -> None:
        self.collections = Counter(
            "sync_check_collections_total",
            "Total collection cycles attempted",
            registry=registry,
        )
        self.failures = Counter(
            "sync_check_collection_failures_total",
            "Collection cycles that failed",
            registry=registry,
        )
        self.duration = Histogram(
            "sync_check_collection_seconds",
            "Collection cycle duration",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=registry,
        )
