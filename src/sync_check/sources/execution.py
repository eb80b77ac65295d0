"""
Execution client source.

Talks JSON-RPC to the execution client over one of two transports:

- IPC: a Unix domain socket next to the node (preferred)
- HTTP: the node's RPC port (fallback)

The transport is chosen once at startup. If the IPC socket is configured but
cannot be opened, we log the failure and fall back to HTTP. After that, every
failure is reported to the collector for the current cycle.
"""

from __future__ import annotations

import asyncio
import codecs
import itertools
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from sync_check.config import DEFAULT_TIMEOUT
from sync_check.state import ExecutionHead, SyncProgress
from sync_check.types import ConnectivityError, ParseError, UpstreamError

from .encoding import parse_hex_quantity

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024
"""Bytes read from the IPC socket per call."""

_DECODER = json.JSONDecoder()

_INCOMPLETE: Any = object()
"""Marker for a buffer that does not yet hold a complete JSON value."""


def _unwrap_response(body: Any, endpoint: str, method: str) -> Any:
    """
    Extract the result of a JSON-RPC response envelope.

    Raises:
        UpstreamError: If the response carries an error object.
        ParseError: If the envelope is malformed.
    """
    if not isinstance(body, dict):
        raise ParseError(endpoint, f"{method} response is not a JSON object")

    error = body.get("error")
    if error is not None:
        if isinstance(error, dict):
            detail = f"{method}: {error.get('message', error)} (code {error.get('code')})"
        else:
            detail = f"{method}: {error}"
        raise UpstreamError(endpoint, detail)

    if "result" not in body:
        raise ParseError(endpoint, f"{method} response has no result")

    return body["result"]


class RpcTransport(Protocol):
    """A channel that carries JSON-RPC requests to the execution client."""

    endpoint: str

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one request and return its result."""
        ...

    async def close(self) -> None:
        """Release the channel."""
        ...


@dataclass(slots=True)
class HttpRpcTransport:
    """JSON-RPC over HTTP POST."""

    endpoint: str
    """URL of the execution client's RPC port."""

    timeout: float = DEFAULT_TIMEOUT
    """Per-request timeout in seconds."""

    transport: httpx.AsyncBaseTransport | None = None
    """Optional transport override (injectable for testing)."""

    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its result."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self._client.post(self.endpoint, json=payload)
        except httpx.TransportError as exc:
            raise ConnectivityError(self.endpoint, str(exc) or type(exc).__name__) from exc

        if response.is_error:
            raise UpstreamError(
                self.endpoint, f"{method}: {response.text[:200]}", status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ParseError(self.endpoint, f"{method} returned invalid JSON: {exc}") from exc

        return _unwrap_response(body, self.endpoint, method)

    async def close(self) -> None:
        """Release pooled connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass(slots=True)
class IpcRpcTransport:
    """
    JSON-RPC over a Unix domain socket.

    Requests are written as newline-terminated JSON objects. Responses are
    decoded from a stream buffer, since a single response may span several
    reads. Execution clients answer with compact JSON, so a buffer holding a
    newline but no decodable object is malformed rather than incomplete.

    A reply that arrives after its request timed out stays in the stream.
    Responses are matched to requests by id, and stale ones are discarded.
    """

    endpoint: str
    """Path of the IPC socket."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter

    timeout: float = DEFAULT_TIMEOUT
    """Per-request timeout in seconds."""

    _buffer: str = field(default="", repr=False)
    _utf8: codecs.IncrementalDecoder = field(
        default_factory=lambda: codecs.getincrementaldecoder("utf-8")(), repr=False
    )
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    @classmethod
    async def connect(cls, path: str, timeout: float = DEFAULT_TIMEOUT) -> IpcRpcTransport:
        """
        Open the IPC socket.

        Raises:
            ConnectivityError: If the socket cannot be opened in time.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(path), timeout=timeout
            )
        except (OSError, TimeoutError) as exc:
            raise ConnectivityError(path, str(exc) or type(exc).__name__) from exc
        return cls(endpoint=path, reader=reader, writer=writer, timeout=timeout)

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its result."""
        request_id = next(self._ids)
        payload = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
        try:
            body = await asyncio.wait_for(self._roundtrip(payload), timeout=self.timeout)
        except (OSError, TimeoutError) as exc:
            raise ConnectivityError(self.endpoint, str(exc) or type(exc).__name__) from exc

        return _unwrap_response(body, self.endpoint, method)

    async def _roundtrip(self, payload: dict[str, Any]) -> Any:
        self.writer.write(json.dumps(payload).encode() + b"\n")
        await self.writer.drain()

        while True:
            body = self._next_object()
            if body is _INCOMPLETE:
                await self._fill()
                continue

            response_id = body.get("id") if isinstance(body, dict) else None
            if response_id is not None and response_id != payload["id"]:
                logger.debug("Discarding stale IPC response id=%s", response_id)
                continue
            return body

    def _next_object(self) -> Any:
        """
        Pop the next complete JSON value off the buffer.

        Returns:
            The decoded value, or _INCOMPLETE if more bytes are needed.

        Raises:
            ParseError: If a complete line does not hold valid JSON.
        """
        text = self._buffer.lstrip()
        self._buffer = text
        if not text:
            return _INCOMPLETE

        try:
            body, end = _DECODER.raw_decode(text)
        except json.JSONDecodeError as exc:
            line, newline, rest = text.partition("\n")
            if not newline:
                return _INCOMPLETE
            # Drop the bad line so the next response can still be read.
            self._buffer = rest
            raise ParseError(self.endpoint, f"invalid JSON-RPC response {line[:200]!r}") from exc

        self._buffer = text[end:]
        return body

    async def _fill(self) -> None:
        chunk = await self.reader.read(_READ_CHUNK)
        if not chunk:
            raise ConnectionResetError("IPC socket closed by peer")
        try:
            self._buffer += self._utf8.decode(chunk)
        except UnicodeDecodeError as exc:
            self._buffer = ""
            self._utf8.reset()
            raise ParseError(self.endpoint, f"response is not valid UTF-8: {exc}") from exc

    async def close(self) -> None:
        """Close the socket."""
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError:
            pass


@dataclass(slots=True)
class ExecutionClient:
    """
    Typed view over the execution client's JSON-RPC methods.

    Only the three calls sync-check needs are exposed.
    """

    transport: RpcTransport
    """Channel to the execution client."""

    @property
    def endpoint(self) -> str:
        """The endpoint this client talks to."""
        return self.transport.endpoint

    async def latest_block_number(self) -> int:
        """Return the height of the latest canonical header."""
        header = await self.transport.request("eth_getBlockByNumber", ["latest", False])
        if not isinstance(header, dict):
            raise ParseError(self.endpoint, "eth_getBlockByNumber returned no header")
        return parse_hex_quantity(header.get("number"), source=self.endpoint, field="number")

    async def sync_progress(self) -> SyncProgress | None:
        """
        Return the client's sync progress.

        Returns:
            None when the client is not syncing, else its progress.
        """
        result = await self.transport.request("eth_syncing", [])
        if result is False:
            return None
        if not isinstance(result, dict):
            raise ParseError(self.endpoint, f"eth_syncing returned {result!r}")

        return SyncProgress(
            current_block=parse_hex_quantity(
                result.get("currentBlock"), source=self.endpoint, field="currentBlock"
            ),
            highest_block=parse_hex_quantity(
                result.get("highestBlock"), source=self.endpoint, field="highestBlock"
            ),
        )

    async def chain_id(self) -> int:
        """Return the chain identifier."""
        result = await self.transport.request("eth_chainId", [])
        return parse_hex_quantity(result, source=self.endpoint, field="chainId")

    async def close(self) -> None:
        """Release the underlying transport."""
        await self.transport.close()


async def connect_execution(
    ipc_path: str,
    http_url: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> ExecutionClient:
    """
    Connect to the execution client, preferring IPC over HTTP.

    Args:
        ipc_path: IPC socket path, or empty to skip IPC.
        http_url: HTTP RPC endpoint used when IPC is unset or unreachable.
        timeout: Per-request timeout in seconds.

    Returns:
        A client bound to the first usable transport.

    Raises:
        ConnectivityError: If no endpoint is configured.
    """
    if ipc_path:
        try:
            transport = await IpcRpcTransport.connect(ipc_path, timeout=timeout)
        except ConnectivityError as e:
            logger.error("Failed to connect to IPC, falling back to http: %s", e)
        else:
            logger.info("Connected to execution client over IPC at %s", ipc_path)
            return ExecutionClient(transport)

    if not http_url:
        raise ConnectivityError("execution client", "no IPC or HTTP endpoint configured")

    logger.info("Using execution client over HTTP at %s", http_url)
    return ExecutionClient(HttpRpcTransport(http_url, timeout=timeout))


@dataclass(slots=True)
class ExecutionSource:
    """Reads the execution client's head and its view of the chain tip."""

    client: ExecutionClient
    """Connected execution client."""

    async def read(self) -> ExecutionHead:
        """
        Read the execution head for the current moment.

        When the client reports no sync in progress it considers itself at
        the tip, so the local highest block is the current block. A client
        that is syncing may briefly report a highest block below its head
        while the two values race; the head wins so that the local tip is
        never behind it.

        Raises:
            ConnectivityError: If the client cannot be reached.
            UpstreamError: If the client answers with an RPC error.
            ParseError: If a quantity is malformed.
        """
        current_block = await self.client.latest_block_number()

        progress = await self.client.sync_progress()
        if progress is None:
            local_highest_block = current_block
        else:
            local_highest_block = max(progress.highest_block, current_block)

        return ExecutionHead(current_block=current_block, local_highest_block=local_highest_block)
