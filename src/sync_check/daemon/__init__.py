"""Daemon mode: continuous collection plus the metrics server."""

from .daemon import SyncCheckDaemon
from .service import CollectionService

__all__ = ["CollectionService", "SyncCheckDaemon"]
