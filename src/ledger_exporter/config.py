"""Startup configuration for the exporter."""

import ipaddress
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ledger_exporter.adapters.logging import LogBufferHandler
from ledger_exporter.adapters.storage.ring_buffer import RingBufferLogStorage
from ledger_exporter.core.errors import ConfigurationError
from ledger_exporter.core.identity import IdentityTable

DEFAULT_LEDGER_TAIL_BIN = "monad-ledger-tail"
DEFAULT_LOG_BUFFER_SIZE = 1000
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_listen_addr(value: str) -> tuple[str, int]:
    """Parse a socket address such as ``0.0.0.0:9100`` or ``[::1]:9100``.

    Raises:
        ConfigurationError: If the host is not an IP literal or the port is
            out of range.
    """
    host, sep, port_text = value.rpartition(":")
    if not sep or not host:
        raise ConfigurationError(f"Invalid listen-addr {value!r}, expected IP:PORT")
    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    try:
        address = ipaddress.ip_address(host)
    except ValueError as e:
        raise ConfigurationError(f"Invalid listen-addr {value!r}: {e}") from e
    if address.version == 6 and not bracketed:
        raise ConfigurationError(
            f"Invalid listen-addr {value!r}, IPv6 hosts must be in brackets"
        )
    if not port_text.isdigit() or not 0 <= int(port_text) <= 65535:
        raise ConfigurationError(f"Invalid listen-addr {value!r}, bad port")
    return str(address), int(port_text)


@dataclass(frozen=True)
class ExporterConfig:
    """Validated exporter settings.

    Attributes:
        host: IP address the metrics server binds to.
        port: TCP port the metrics server binds to.
        ledger_tail_bin: Path of the tail binary to supervise.
        ledger_tail_args: Extra arguments passed to the tail binary.
        identities: Known validator identities.
        read_stdin: Read records from stdin instead of spawning the tail.
        log_level: Level name for the exporter's own logging.
        log_buffer_size: Entries kept for /logs; 0 disables capture.
    """

    host: str
    port: int
    ledger_tail_bin: str = DEFAULT_LEDGER_TAIL_BIN
    ledger_tail_args: tuple[str, ...] = ()
    identities: IdentityTable = field(default_factory=IdentityTable)
    read_stdin: bool = False
    log_level: str = "INFO"
    log_buffer_size: int = DEFAULT_LOG_BUFFER_SIZE

    @classmethod
    def build(
        cls,
        listen_addr: str,
        known_identities: Sequence[str] = (),
        ledger_tail_bin: str = DEFAULT_LEDGER_TAIL_BIN,
        ledger_tail_args: str = "",
        read_stdin: bool = False,
        log_level: str = "INFO",
        log_buffer_size: int = DEFAULT_LOG_BUFFER_SIZE,
    ) -> "ExporterConfig":
        """Validate raw option values into a config.

        ``ledger_tail_args`` is split on whitespace.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        host, port = parse_listen_addr(listen_addr)
        level = log_level.upper()
        if level not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"Unknown log level {log_level!r}")
        if log_buffer_size < 0:
            raise ConfigurationError("log-buffer-size must not be negative")
        if not ledger_tail_bin:
            raise ConfigurationError("ledger-tail-bin must not be empty")
        return cls(
            host=host,
            port=port,
            ledger_tail_bin=ledger_tail_bin,
            ledger_tail_args=tuple(ledger_tail_args.split()),
            identities=IdentityTable.from_strings(known_identities),
            read_stdin=read_stdin,
            log_level=level,
            log_buffer_size=log_buffer_size,
        )


def configure_logging(
    level: str = "INFO", buffer_size: int = DEFAULT_LOG_BUFFER_SIZE
) -> RingBufferLogStorage | None:
    """Configure process logging.

    Installs a stderr handler on the root logger and, when ``buffer_size`` is
    positive, a LogBufferHandler on the ``ledger_exporter`` logger.

    Returns:
        The ring buffer backing /logs, or None if capture is disabled.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    package_logger = logging.getLogger("ledger_exporter")
    package_logger.setLevel(level)
    if buffer_size <= 0:
        return None
    storage = RingBufferLogStorage(max_size=buffer_size)
    package_logger.addHandler(LogBufferHandler(storage))
    return storage
