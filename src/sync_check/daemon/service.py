"""
Collection service that drives periodic sync checks.

How It Works
------------
1. Run one collection cycle
2. On success, push the snapshot into the gauges
3. On failure, log it and keep the previous gauge values
4. Wait a fixed delay after the cycle completes
5. Repeat until stopped

Cycles never overlap. The delay is measured from the end of one cycle, not
on a wall-clock cadence, so a slow upstream stretches the period rather than
piling up cycles.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from sync_check.collector import SyncCollector
from sync_check.config import COLLECTION_INTERVAL
from sync_check.metrics import CollectionMetrics, SyncGauges
from sync_check.types import SyncCheckError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CollectionService:
    """Fixed-interval loop feeding snapshots into the gauge sink."""

    collector: SyncCollector
    """Reconciler producing one snapshot per cycle."""

    gauges: SyncGauges
    """Gauge sink receiving successful snapshots."""

    metrics: CollectionMetrics | None = None
    """Optional instrumentation of the loop itself."""

    interval: float = COLLECTION_INTERVAL
    """Seconds to wait after each cycle."""

    _stopped: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Set when the service has been asked to stop."""

    async def run(self) -> None:
        """
        Main loop - collect, publish, wait.

        Returns once stop() is called. A stop request interrupts the wait
        but never a cycle in flight.
        """
        logger.info("Collection loop started (interval=%.1fs)", self.interval)

        while not self._stopped.is_set():
            await self.run_cycle()

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except TimeoutError:
                pass

        logger.info("Collection loop stopped")

    async def run_cycle(self) -> bool:
        """
        Run one collection cycle.

        Returns:
            True if the gauges were updated, False if the cycle failed.
        """
        started = time.perf_counter()
        try:
            snapshot = await self.collector.collect()
        except SyncCheckError as e:
            logger.error("Encountered error when collecting metrics: %s", e)
            if self.metrics is not None:
                self.metrics.collections.inc()
                self.metrics.failures.inc()
            return False

        self.gauges.update(snapshot)

        if self.metrics is not None:
            self.metrics.collections.inc()
            self.metrics.duration.observe(time.perf_counter() - started)
        return True

    def stop(self) -> None:
        """Request the loop to exit after the current cycle."""
        self._stopped.set()

    @property
    def is_running(self) -> bool:
        """Check if the loop has not been asked to stop."""
        return not self._stopped.is_set()
