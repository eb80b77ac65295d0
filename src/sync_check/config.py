"""
Global configuration for sync-check.

Values come from command-line flags, falling back to SYNC_CHECK_* environment
variables, falling back to the defaults below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

ENV_PREFIX: Final = "SYNC_CHECK_"
"""Prefix shared by all environment variables read by sync-check."""

DEFAULT_EXECUTION_HTTP: Final = "http://localhost:8545"
"""Default execution client JSON-RPC endpoint."""

DEFAULT_CONSENSUS_HTTP: Final = "http://localhost:5052"
"""Default consensus client REST endpoint."""

DEFAULT_METRICS_PORT: Final = 3737
"""Default port of the Prometheus metrics server."""

COLLECTION_INTERVAL: Final = 2.0
"""Seconds between the end of one collection cycle and the start of the next."""

DEFAULT_TIMEOUT: Final = 10.0
"""Timeout in seconds for each upstream request."""

_TRUE_VALUES: Final = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final = frozenset({"0", "false", "no", "off"})


def env_name(key: str) -> str:
    """Map a flag name such as 'execution-ipc' to its environment variable."""
    return ENV_PREFIX + key.upper().replace("-", "_")


def env_str(key: str, default: str) -> str:
    """Read a string setting from the environment."""
    return os.environ.get(env_name(key), default)


def env_int(key: str, default: int) -> int:
    """
    Read an integer setting from the environment.

    Raises:
        ValueError: If the variable is set but not an integer.
    """
    raw = os.environ.get(env_name(key))
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {env_name(key)} environment variable: '{raw}'. Expected an integer."
        ) from None


def env_bool(key: str, default: bool) -> bool:
    """
    Read a boolean setting from the environment.

    Raises:
        ValueError: If the variable is set to an unrecognized value.
    """
    raw = os.environ.get(env_name(key))
    if raw is None or raw == "":
        return default

    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False

    raise ValueError(
        f"Invalid {env_name(key)} environment variable: '{raw}'. "
        f"Supported values: {sorted(_TRUE_VALUES | _FALSE_VALUES)}"
    )


@dataclass(frozen=True, slots=True)
class SyncCheckConfig:
    """Runtime configuration for one sync-check process."""

    execution_ipc: str = ""
    """Execution client IPC socket path. Preferred over HTTP when set."""

    execution_http: str = DEFAULT_EXECUTION_HTTP
    """Execution client JSON-RPC endpoint."""

    consensus_http: str = DEFAULT_CONSENSUS_HTTP
    """Consensus client REST endpoint."""

    etherscan_api_key: str = ""
    """API key for the block explorer."""

    daemon: bool = False
    """Collect continuously and expose metrics instead of printing once."""

    metrics_host: str = "0.0.0.0"
    """Address the metrics server binds to."""

    metrics_port: int = DEFAULT_METRICS_PORT
    """Port the metrics server listens on."""

    interval: float = COLLECTION_INTERVAL
    """Delay between collection cycles in daemon mode."""

    timeout: float = DEFAULT_TIMEOUT
    """Timeout for each upstream request."""
