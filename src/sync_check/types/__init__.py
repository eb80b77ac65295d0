"""Reusable type definitions for sync-check."""

from .base import UINT64_MAX, StrictBaseModel, Uint64
from .exceptions import (
    ConnectivityError,
    ParseError,
    SyncCheckError,
    UnsupportedChainError,
    UpstreamError,
)

__all__ = [
    # Core types
    "UINT64_MAX",
    "StrictBaseModel",
    "Uint64",
    # Exceptions
    "ConnectivityError",
    "ParseError",
    "SyncCheckError",
    "UnsupportedChainError",
    "UpstreamError",
]
