"""Human-readable rendering of a sync snapshot."""

from .table import render_table, snapshot_rows

__all__ = ["render_table", "snapshot_rows"]
