"""
Tabular sink for one-shot mode.

Renders a snapshot as a boxed ASCII table with one header row and one value
row. The columns depend on the chain profile:

- Standard chains show the sync distance in slots, plus the health status
  and optimistic flag.
- Alternate chains show the sync distance as the age of the latest block
  and have no health or optimistic column.
"""

from __future__ import annotations

from sync_check.state import AlternateConsensusState, SyncSnapshot

_EXECUTION_HEADERS = (
    "Current Block",
    "Local Highest",
    "Network Highest",
    "Local Diff",
    "Network Diff",
)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def snapshot_rows(snapshot: SyncSnapshot) -> tuple[list[str], list[str]]:
    """
    Lay out a snapshot as table cells.

    Returns:
        The header row and the value row, of equal length.
    """
    execution = snapshot.execution
    consensus = snapshot.consensus

    headers = list(_EXECUTION_HEADERS)
    values = [
        str(execution.current_block),
        str(execution.local_highest_block),
        str(execution.network_highest_block),
        str(execution.local_diff),
        str(execution.network_diff),
    ]

    if isinstance(consensus, AlternateConsensusState):
        headers += ["CL Slot", "CL Slot Time", "CL Syncing"]
        values += [
            str(consensus.current_slot),
            f"{consensus.sync_distance:f} ago",
            _flag(consensus.is_syncing),
        ]
    else:
        headers += ["CL Slot", "CL Slot Distance", "CL Status", "CL Syncing", "CL Optimistic"]
        values += [
            str(consensus.current_slot),
            str(consensus.sync_distance),
            str(consensus.health_status),
            _flag(consensus.is_syncing),
            _flag(consensus.is_optimistic),
        ]

    return headers, values


def render_table(snapshot: SyncSnapshot) -> str:
    """
    Render a snapshot as a boxed table.

    Headers are upper-cased and centered. Values are right-aligned.
    """
    headers, values = snapshot_rows(snapshot)
    headers = [header.upper() for header in headers]
    widths = [max(len(h), len(v)) for h, v in zip(headers, values, strict=True)]

    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
    header_line = "|" + "|".join(f" {h:^{w}} " for h, w in zip(headers, widths)) + "|"
    value_line = "|" + "|".join(f" {v:>{w}} " for v, w in zip(values, widths)) + "|"

    return "\n".join([border, header_line, border, value_line, border])
