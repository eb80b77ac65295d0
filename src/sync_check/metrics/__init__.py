"""
Metrics module for observability.

Provides the sync gauges updated from each snapshot, plus counters and a
histogram describing the collection loop itself. Exposes metrics in
Prometheus text format.
"""

from .registry import (
    CollectionMetrics,
    SyncGauges,
    create_registry,
    generate_metrics,
)

__all__ = [
    "CollectionMetrics",
    "SyncGauges",
    "create_registry",
    "generate_metrics",
]
