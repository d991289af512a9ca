"""Command line entry point.

Usage:
    ledger-exporter --listen-addr 0.0.0.0:9100 \\
        --ledger-tail-args "--ledger-path=/opt/monad/ledger" \\
        --known-identity 02ab...:validator-1

The exporter spawns ``monad-ledger-tail``, turns its output into counters
and serves them until the tail exits. The exit status is then always 1 so
the service manager restarts both. With ``--stdin`` the records are read
from standard input instead and end of input exits with status 0.
"""

import argparse
import logging
import sys
from collections.abc import Sequence

from ledger_exporter import __version__
from ledger_exporter.adapters.source import LedgerTailProcess, TailProcessError, iter_lines
from ledger_exporter.config import (
    DEFAULT_LEDGER_TAIL_BIN,
    DEFAULT_LOG_BUFFER_SIZE,
    ExporterConfig,
    configure_logging,
)
from ledger_exporter.core.errors import ConfigurationError
from ledger_exporter.runtime import ExporterRuntime

logger = logging.getLogger(__name__)

# Options whose value may itself start with a hyphen.
_HYPHEN_VALUE_OPTIONS = ("--ledger-tail-args",)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ledger-exporter",
        description="Prometheus exporter for monad-ledger-tail block events",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--listen-addr",
        required=True,
        help="Address for the Prometheus exporter to listen on, e.g. 0.0.0.0:9100",
    )
    parser.add_argument(
        "--ledger-tail-bin",
        default=DEFAULT_LEDGER_TAIL_BIN,
        help="Path to the monad-ledger-tail binary",
    )
    parser.add_argument(
        "--ledger-tail-args",
        default="",
        help="Extra args to pass to monad-ledger-tail (space-separated)",
    )
    parser.add_argument(
        "--known-identity",
        action="append",
        default=[],
        dest="known_identities",
        metavar="ADDR:NAME",
        help="Map a secp pubkey to a human-friendly name (repeatable)",
    )
    parser.add_argument(
        "--stdin",
        action="store_true",
        dest="read_stdin",
        help="Read ledger records from standard input instead of spawning the tail",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-buffer-size",
        type=int,
        default=DEFAULT_LOG_BUFFER_SIZE,
        help="Number of log entries served on /logs, 0 disables capture",
    )
    return parser


def _join_hyphen_values(argv: Sequence[str]) -> list[str]:
    """Rewrite ``--opt -value`` as ``--opt=-value`` so argparse accepts it."""
    joined: list[str] = []
    args = iter(argv)
    for arg in args:
        if arg in _HYPHEN_VALUE_OPTIONS:
            value = next(args, None)
            joined.append(arg if value is None else f"{arg}={value}")
        else:
            joined.append(arg)
    return joined


def parse_config(
    argv: Sequence[str] | None = None,
    parser: argparse.ArgumentParser | None = None,
) -> ExporterConfig:
    """Parse and validate command line options.

    Invalid values are reported through ``parser.error`` (exit status 2).
    """
    parser = parser or create_parser()
    args = parser.parse_args(_join_hyphen_values(sys.argv[1:] if argv is None else argv))
    try:
        return ExporterConfig.build(
            listen_addr=args.listen_addr,
            known_identities=args.known_identities,
            ledger_tail_bin=args.ledger_tail_bin,
            ledger_tail_args=args.ledger_tail_args,
            read_stdin=args.read_stdin,
            log_level=args.log_level,
            log_buffer_size=args.log_buffer_size,
        )
    except ConfigurationError as e:
        parser.error(str(e))


def _run_stdin(runtime: ExporterRuntime) -> int:
    stats = runtime.ingest(iter_lines(sys.stdin.buffer))
    logger.info(
        "End of input: %d parsed, %d failed, %d blank",
        stats.success,
        stats.failure,
        stats.skipped,
    )
    return 0


def _run_tail(runtime: ExporterRuntime, config: ExporterConfig) -> int:
    process = LedgerTailProcess(config.ledger_tail_bin, config.ledger_tail_args)
    try:
        process.start()
    except TailProcessError as e:
        logger.error("%s", e)
        process.terminate()
        return 1

    worker = runtime.start_ingestion(process.lines())
    try:
        status = process.wait()
    except KeyboardInterrupt:
        process.terminate()
        raise
    worker.join()
    if status != 0:
        logger.error("monad-ledger-tail exited with status %d", status)
    else:
        logger.error("monad-ledger-tail exited; shutting down exporter")
    return 1


def run(config: ExporterConfig) -> int:
    """Run the exporter until its source is exhausted.

    Returns:
        Process exit status.
    """
    log_storage = configure_logging(config.log_level, config.log_buffer_size)
    runtime = ExporterRuntime(
        config.identities, config.host, config.port, log_storage=log_storage
    )
    try:
        runtime.start_server()
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1
    try:
        if config.read_stdin:
            return _run_stdin(runtime)
        return _run_tail(runtime, config)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down exporter")
        return 130
    finally:
        runtime.stop()


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    return run(parse_config(argv))
