"""
Metrics server exposing the sync gauges for scraping.

Provides HTTP endpoints for:
- /metrics - Prometheus metrics endpoint
- /health - Health check endpoint

The server only reads the registry. The collection loop writes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Final

from aiohttp import web
from prometheus_client import CollectorRegistry

from sync_check.config import DEFAULT_METRICS_PORT
from sync_check.metrics import generate_metrics

logger = logging.getLogger(__name__)

SERVICE_NAME: Final = "sync-check"
"""Fixed service identifier returned by the health endpoint."""

REGISTRY_KEY: Final = web.AppKey("registry", CollectorRegistry)
"""Application key under which the metrics registry is stored."""


async def _handle_health(_request: web.Request) -> web.Response:
    """Handle health check endpoint."""
    return web.json_response({"status": "healthy", "service": SERVICE_NAME})


async def _handle_metrics(request: web.Request) -> web.Response:
    """Handle Prometheus metrics endpoint."""
    return web.Response(
        body=generate_metrics(request.app[REGISTRY_KEY]),
        content_type="text/plain; version=0.0.4",
        charset="utf-8",
    )


def create_app(registry: CollectorRegistry) -> web.Application:
    """Build the aiohttp application serving a registry."""
    app = web.Application()
    app[REGISTRY_KEY] = registry
    app.add_routes(
        [
            web.get("/health", _handle_health),
            web.get("/metrics", _handle_metrics),
        ]
    )
    return app


@dataclass(frozen=True, slots=True)
class MetricsServerConfig:
    """Configuration for the metrics server."""

    host: str = "0.0.0.0"
    """Host address to bind to."""

    port: int = DEFAULT_METRICS_PORT
    """Port to listen on."""


@dataclass(slots=True)
class MetricsServer:
    """
    HTTP server for Prometheus scrapes.

    Uses aiohttp to handle HTTP protocol details efficiently.
    """

    config: MetricsServerConfig
    """Server configuration."""

    registry: CollectorRegistry
    """Registry rendered on each scrape."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """The aiohttp application runner."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """The TCP site for the server."""

    async def start(self) -> None:
        """Start the metrics server in the background."""
        self._runner = web.AppRunner(create_app(self.registry))
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        logger.info("Metrics server listening on %s:%d", self.config.host, self.config.port)

    async def shutdown(self) -> None:
        """Gracefully stop the server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Metrics server stopped")
