"""
Block explorer source.

Asks Etherscan for the current block number through its JSON-RPC proxy. This
is the external ground truth the local node is compared against. Only the
networks Etherscan indexes are supported; everything else is reported as
UnsupportedChainError without touching the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Protocol

from sync_check.types import ParseError, UnsupportedChainError

from .encoding import parse_hex_quantity
from .http import HttpClient

ETHERSCAN_BASE_URLS: Final[dict[int, str]] = {
    1: "https://api.etherscan.io",
    5: "https://api-goerli.etherscan.io",
    11155111: "https://api-sepolia.etherscan.io",
}
"""Etherscan backend per supported chain identifier."""


class Explorer(Protocol):
    """Reports the chain height as seen by a third-party indexer."""

    async def current_block_number(self, chain_id: int) -> int:
        """Return the indexer's current block number for a chain."""
        ...


def etherscan_base_url(chain_id: int) -> str:
    """
    Look up the Etherscan backend for a chain.

    Raises:
        UnsupportedChainError: If the chain has no known backend.
    """
    try:
        return ETHERSCAN_BASE_URLS[chain_id]
    except KeyError:
        raise UnsupportedChainError(chain_id) from None


@dataclass(slots=True)
class EtherscanExplorer:
    """Explorer backed by the Etherscan proxy API."""

    http: HttpClient
    """Shared HTTP capability."""

    api_key: str
    """Etherscan API key. Sent as a query parameter, never logged."""

    async def current_block_number(self, chain_id: int) -> int:
        """
        Return Etherscan's current block number for a chain.

        The proxy answers with a JSON-RPC style body whose result is a hex
        quantity. On failure Etherscan still answers 200 and puts a message
        in the result field, which then fails to parse.

        Raises:
            UnsupportedChainError: If the chain has no known backend.
            ConnectivityError: If Etherscan cannot be reached.
            UpstreamError: If Etherscan answers non-2xx.
            ParseError: If the result is missing or not a hex quantity.
        """
        url = f"{etherscan_base_url(chain_id)}/api"
        params = {"module": "proxy", "action": "eth_blockNumber", "apikey": self.api_key}

        body = await self.http.get_json(url, params=params)
        if not isinstance(body, dict):
            raise ParseError(url, "response is not a JSON object")

        return parse_hex_quantity(body.get("result"), source=url, field="result")
