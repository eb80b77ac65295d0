"""
Sync-check: compare a local execution/consensus node pair against the network.

Collects sync state from the execution client, the consensus client and a
block explorer, then prints it as a table or exports it as Prometheus gauges.
"""

__version__ = "0.1.0"
