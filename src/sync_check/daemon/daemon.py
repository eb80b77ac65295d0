"""
Daemon orchestrator.

Runs the collection loop and the metrics server side by side on one event
loop, with structured concurrency. SIGINT and SIGTERM stop both.
"""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry

from sync_check.api import MetricsServer, MetricsServerConfig
from sync_check.collector import SyncCollector
from sync_check.config import SyncCheckConfig
from sync_check.metrics import CollectionMetrics, SyncGauges

from .service import CollectionService


@dataclass(slots=True)
class SyncCheckDaemon:
    """Collection loop plus the metrics server that exposes its gauges."""

    service: CollectionService
    """Collection loop writing the gauges."""

    server: MetricsServer
    """Metrics server reading the gauges."""

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Event signaling shutdown request."""

    @classmethod
    def create(
        cls,
        config: SyncCheckConfig,
        collector: SyncCollector,
        registry: CollectorRegistry,
    ) -> SyncCheckDaemon:
        """
        Wire the loop and the server around a shared registry.

        Args:
            config: Runtime configuration.
            collector: Reconciler for the configured node pair.
            registry: Registry the gauges are declared in and served from.

        Returns:
            A daemon ready to run.
        """
        service = CollectionService(
            collector=collector,
            gauges=SyncGauges(registry),
            metrics=CollectionMetrics(registry),
            interval=config.interval,
        )
        server = MetricsServer(
            config=MetricsServerConfig(host=config.metrics_host, port=config.metrics_port),
            registry=registry,
        )
        return cls(service=service, server=server)

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Run the loop and the server until shutdown.

        Args:
            install_signal_handlers: Whether to handle SIGINT/SIGTERM.
                Disable for testing or non-main threads.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        # The server starts first so scrapes succeed before the first cycle ends.
        await self.server.start()

        # The finally block ensures the listening socket is released on shutdown.
        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self.service.run())
                tg.create_task(self._wait_shutdown())
        finally:
            await self.server.shutdown()

    def _install_signal_handlers(self) -> None:
        """
        Install signal handlers for graceful shutdown.

        Silently ignores errors if handlers cannot be installed.
        This happens in non-main threads or embedded contexts.
        """
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._shutdown.set)
        except (ValueError, RuntimeError, NotImplementedError):
            # Cannot add handlers outside main thread.
            pass

    async def _wait_shutdown(self) -> None:
        """Wait for shutdown signal then stop the collection loop."""
        await self._shutdown.wait()
        self.service.stop()

    def stop(self) -> None:
        """Request graceful shutdown."""
        self._shutdown.set()

    @property
    def is_running(self) -> bool:
        """Check if the daemon is currently running."""
        return not self._shutdown.is_set()
