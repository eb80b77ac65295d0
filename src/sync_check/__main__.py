"""
Sync-check CLI entry point.

Check the synchronization of a local execution/consensus node pair against
the network, once or continuously.

Usage::

    python -m sync_check
    python -m sync_check --execution-ipc /data/geth.ipc --etherscan-api-key KEY
    python -m sync_check --daemon --metrics-port 3737

Options:
    --execution-ipc       Execution IPC endpoint (preferred over HTTP when set)
    --execution-http      Execution HTTP endpoint (default: http://localhost:8545)
    --consensus-http      Consensus HTTP endpoint (default: http://localhost:5052)
    --etherscan-api-key   Etherscan API key
    --daemon              Continuously collect and expose metrics via Prometheus
    --metrics-port        Prometheus port (default: 3737)

Every option can also be set through a SYNC_CHECK_* environment variable,
e.g. SYNC_CHECK_EXECUTION_IPC or SYNC_CHECK_DAEMON=true.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sync_check import __version__
from sync_check.chain import detect_chain_profile
from sync_check.collector import SyncCollector
from sync_check.config import (
    DEFAULT_CONSENSUS_HTTP,
    DEFAULT_EXECUTION_HTTP,
    DEFAULT_METRICS_PORT,
    SyncCheckConfig,
    env_bool,
    env_int,
    env_str,
)
from sync_check.daemon import SyncCheckDaemon
from sync_check.metrics import create_registry
from sync_check.render import render_table
from sync_check.sources import (
    EtherscanExplorer,
    ExecutionSource,
    HttpClient,
    connect_execution,
    select_consensus_source,
)
from sync_check.types import SyncCheckError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        return f"{timestamp} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging with optional colors. Logs go to stderr."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter: logging.Formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO. Once per second is too chatty.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_once(collector: SyncCollector) -> int:
    """
    Run one collection cycle and print the result as a table.

    Returns:
        The process exit code.
    """
    try:
        snapshot = await collector.collect()
    except SyncCheckError as e:
        logger.error("Failed collecting metrics: %s", e)
        return EXIT_FAILURE

    print(render_table(snapshot))
    return EXIT_OK


async def run(config: SyncCheckConfig) -> int:
    """
    Connect to the node pair and run in the configured mode.

    Startup:

    1. Connect to the execution client (IPC preferred, HTTP fallback)
    2. Classify the chain from its identifier
    3. Pick the consensus source for that chain
    4. Collect once, or loop and serve metrics until interrupted

    Returns:
        The process exit code.
    """
    try:
        client = await connect_execution(
            config.execution_ipc, config.execution_http, timeout=config.timeout
        )
    except SyncCheckError as e:
        logger.error("Failed to connect to execution client: %s", e)
        return EXIT_FAILURE

    http = HttpClient(timeout=config.timeout)
    try:
        profile = await detect_chain_profile(client)
        collector = SyncCollector(
            profile=profile,
            execution=ExecutionSource(client),
            consensus=select_consensus_source(profile, http, config.consensus_http),
            explorer=EtherscanExplorer(http=http, api_key=config.etherscan_api_key),
        )

        if not config.daemon:
            return await run_once(collector)

        logger.info("Starting prometheus server...")
        daemon = SyncCheckDaemon.create(config, collector, create_registry())
        await daemon.run()
        return EXIT_OK
    finally:
        await http.close()
        await client.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Defaults come from the environment."""
    parser = argparse.ArgumentParser(
        prog="sync-check",
        description="Sync-check is a tool for checking the synchronization of a blockchain node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execution-ipc",
        default=env_str("execution-ipc", ""),
        help="Execution IPC endpoint",
    )
    parser.add_argument(
        "--execution-http",
        default=env_str("execution-http", DEFAULT_EXECUTION_HTTP),
        help=f"Execution HTTP endpoint (default: {DEFAULT_EXECUTION_HTTP})",
    )
    parser.add_argument(
        "--consensus-http",
        default=env_str("consensus-http", DEFAULT_CONSENSUS_HTTP),
        help=f"Consensus HTTP endpoint (default: {DEFAULT_CONSENSUS_HTTP})",
    )
    parser.add_argument(
        "--etherscan-api-key",
        default=env_str("etherscan-api-key", ""),
        help="Etherscan API key",
    )
    parser.add_argument(
        "--daemon",
        action="store_true",
        default=env_bool("daemon", False),
        help="Continuously collect and expose metrics via Prometheus",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=env_int("metrics-port", DEFAULT_METRICS_PORT),
        help=f"Prometheus port (default: {DEFAULT_METRICS_PORT})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SyncCheckConfig:
    """Translate parsed arguments into the runtime configuration."""
    return SyncCheckConfig(
        execution_ipc=args.execution_ipc,
        execution_http=args.execution_http,
        consensus_http=args.consensus_http,
        etherscan_api_key=args.etherscan_api_key,
        daemon=args.daemon,
        metrics_port=args.metrics_port,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    try:
        parser = build_parser()
    except ValueError as e:
        # Invalid SYNC_CHECK_* environment variable.
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.no_color)

    try:
        exit_code = asyncio.run(run(config_from_args(args)))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        exit_code = EXIT_OK

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
