"""
Source adapters for the three external sync signals.

- Execution client (JSON-RPC over IPC or HTTP)
- Consensus client (Beacon API, or Heimdall on alternate chains)
- Block explorer (Etherscan proxy API)

Each adapter turns network calls into a typed record or a typed error.
"""

from .consensus import (
    AlternateConsensusSource,
    ConsensusSource,
    StandardConsensusSource,
    select_consensus_source,
)
from .encoding import parse_decimal, parse_hex_quantity
from .execution import (
    ExecutionClient,
    ExecutionSource,
    HttpRpcTransport,
    IpcRpcTransport,
    RpcTransport,
    connect_execution,
)
from .explorer import ETHERSCAN_BASE_URLS, EtherscanExplorer, Explorer, etherscan_base_url
from .http import HttpClient

__all__ = [
    # Transport
    "HttpClient",
    "HttpRpcTransport",
    "IpcRpcTransport",
    "RpcTransport",
    # Execution
    "ExecutionClient",
    "ExecutionSource",
    "connect_execution",
    # Consensus
    "AlternateConsensusSource",
    "ConsensusSource",
    "StandardConsensusSource",
    "select_consensus_source",
    # Explorer
    "ETHERSCAN_BASE_URLS",
    "EtherscanExplorer",
    "Explorer",
    "etherscan_base_url",
    # Encoding
    "parse_decimal",
    "parse_hex_quantity",
]
