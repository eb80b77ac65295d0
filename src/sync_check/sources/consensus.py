"""
Consensus client sources.

Two shapes of consensus client are supported, selected once by the chain
profile and never mixed:

Standard (Beacon API)
---------------------
- GET  /eth/v1/node/syncing   head slot and sync distance in slots
- HEAD /eth/v1/node/health    status code only (200 ready, 206 syncing, 503 not ready)

Alternate (Heimdall)
--------------------
- GET  /status                latest block height and time, catching-up flag

Heimdall has no notion of slots behind the head. Its sync distance is the
age of its latest block in seconds.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final, Protocol

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError

from sync_check.chain import ChainProfile
from sync_check.state import AlternateConsensusState, ConsensusSyncState, StandardConsensusState
from sync_check.types import ParseError

from .encoding import parse_decimal
from .http import HttpClient

logger = logging.getLogger(__name__)

SYNCING_ENDPOINT: Final = "/eth/v1/node/syncing"
"""Beacon API node syncing status."""

HEALTH_ENDPOINT: Final = "/eth/v1/node/health"
"""Beacon API node health probe."""

STATUS_ENDPOINT: Final = "/status"
"""Heimdall (Tendermint) node status."""

_RFC3339: Final = re.compile(
    r"(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})"
)


class _ResponseModel(BaseModel):
    """Lenient about extra fields, strict about the types of known ones."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class _SyncingData(_ResponseModel):
    head_slot: StrictStr
    sync_distance: StrictStr
    is_syncing: StrictBool
    is_optimistic: StrictBool = False


class _SyncingResponse(_ResponseModel):
    data: _SyncingData


class _HeimdallSyncInfo(_ResponseModel):
    latest_block_height: StrictStr
    latest_block_time: StrictStr
    catching_up: StrictBool


class _HeimdallStatus(_ResponseModel):
    sync_info: _HeimdallSyncInfo


class _HeimdallStatusResponse(_ResponseModel):
    result: _HeimdallStatus


def parse_rfc3339(raw: str, *, source: str, field: str) -> datetime:
    """
    Parse an RFC 3339 timestamp.

    Tendermint reports nanosecond precision. Digits beyond microseconds
    are truncated.

    Raises:
        ParseError: If the value is not an RFC 3339 timestamp.
    """
    match = _RFC3339.fullmatch(raw)
    if match is None:
        raise ParseError(source, f"{raw!r} is not an RFC 3339 timestamp", field=field)

    fraction = (match["fraction"] or "")[:6].ljust(6, "0")
    tz = "+00:00" if match["tz"] == "Z" else match["tz"]
    try:
        return datetime.fromisoformat(f"{match['base']}.{fraction}{tz}")
    except ValueError as exc:
        raise ParseError(source, str(exc), field=field) from exc


class ConsensusSource(Protocol):
    """Produces the consensus sync state for one collection cycle."""

    async def read(self) -> ConsensusSyncState:
        """Read the consensus sync state for the current moment."""
        ...


@dataclass(slots=True)
class StandardConsensusSource:
    """Consensus source for Beacon API clients."""

    http: HttpClient
    """Shared HTTP capability."""

    base_url: str
    """Base URL of the consensus client REST API."""

    async def read(self) -> StandardConsensusState:
        """
        Read syncing status and health.

        Both calls belong to the same cycle. Either failing fails the read.

        Raises:
            ConnectivityError: If the client cannot be reached.
            UpstreamError: If the syncing endpoint answers non-2xx.
            ParseError: If the syncing body or its numeric fields are malformed.
        """
        base = self.base_url.rstrip("/")
        syncing_url = f"{base}{SYNCING_ENDPOINT}"

        body = await self.http.get_json(syncing_url)
        try:
            data = _SyncingResponse.model_validate(body).data
        except ValidationError as exc:
            raise ParseError(syncing_url, _summarize(exc)) from exc

        # Slots arrive as strings and must be validated as integers.
        current_slot = parse_decimal(data.head_slot, source=syncing_url, field="head_slot")
        sync_distance = parse_decimal(
            data.sync_distance, source=syncing_url, field="sync_distance"
        )

        health_status = await self.http.get_status_code(f"{base}{HEALTH_ENDPOINT}")

        return StandardConsensusState(
            current_slot=current_slot,
            sync_distance=sync_distance,
            is_syncing=data.is_syncing,
            is_optimistic=data.is_optimistic,
            health_status=health_status,
        )


@dataclass(slots=True)
class AlternateConsensusSource:
    """Consensus source for Heimdall clients."""

    http: HttpClient
    """Shared HTTP capability."""

    base_url: str
    """Base URL of the Heimdall node."""

    time_fn: Callable[[], float] = field(default=time.time)
    """Wall-clock source (injectable for deterministic testing)."""

    async def read(self) -> AlternateConsensusState:
        """
        Read the latest block height and its age.

        Raises:
            ConnectivityError: If the client cannot be reached.
            UpstreamError: If the status endpoint answers non-2xx.
            ParseError: If the status body is malformed.
        """
        status_url = f"{self.base_url.rstrip('/')}{STATUS_ENDPOINT}"

        body = await self.http.get_json(status_url)
        try:
            sync_info = _HeimdallStatusResponse.model_validate(body).result.sync_info
        except ValidationError as exc:
            raise ParseError(status_url, _summarize(exc)) from exc

        current_slot = parse_decimal(
            sync_info.latest_block_height, source=status_url, field="latest_block_height"
        )
        latest_block_time = parse_rfc3339(
            sync_info.latest_block_time, source=status_url, field="latest_block_time"
        )

        # Clock skew can put the latest block slightly in the future.
        age = max(0.0, self.time_fn() - latest_block_time.timestamp())

        return AlternateConsensusState(
            current_slot=current_slot,
            sync_distance=age,
            is_syncing=sync_info.catching_up,
        )


def select_consensus_source(
    profile: ChainProfile,
    http: HttpClient,
    base_url: str,
) -> ConsensusSource:
    """Pick the consensus source matching the chain profile."""
    if profile.alternate:
        logger.info("Using Heimdall consensus source at %s", base_url)
        return AlternateConsensusSource(http=http, base_url=base_url)

    logger.info("Using Beacon API consensus source at %s", base_url)
    return StandardConsensusSource(http=http, base_url=base_url)


def _summarize(exc: ValidationError) -> str:
    """Condense a pydantic validation error into one line."""
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}"
