"""Reconciles the source adapters into one sync snapshot per cycle."""

from .collector import SyncCollector

__all__ = ["SyncCollector"]
