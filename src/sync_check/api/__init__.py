"""
Metrics server module.

Provides HTTP endpoints for:
- /metrics - Prometheus metrics endpoint
- /health - Health check endpoint
"""

from .server import MetricsServer, MetricsServerConfig, create_app

__all__ = [
    "MetricsServer",
    "MetricsServerConfig",
    "create_app",
]
