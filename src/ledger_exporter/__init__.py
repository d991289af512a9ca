"""Prometheus exporter for block production events from monad-ledger-tail."""

from ledger_exporter.adapters.frameworks.asgi import create_asgi_app
from ledger_exporter.adapters.logging import LogBufferHandler
from ledger_exporter.adapters.storage.ring_buffer import RingBufferLogStorage
from ledger_exporter.core.aggregator import (
    Aggregator,
    ExporterMetrics,
    register_exporter_metrics,
)
from ledger_exporter.core.classifier import classify_line, parse_record
from ledger_exporter.core.encoding.prometheus import encode_families
from ledger_exporter.core.errors import (
    ClassificationError,
    ConfigurationError,
    RegistrationError,
)
from ledger_exporter.core.identity import IdentityTable, parse_identity
from ledger_exporter.core.models import (
    Event,
    FinalizedBlock,
    LogEntry,
    LogRecord,
    ProposedBlock,
    Resolution,
    SkippedBlock,
    Timeout,
)
from ledger_exporter.core.registry import CounterFamily, MetricRegistry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Aggregator",
    "ClassificationError",
    "ConfigurationError",
    "CounterFamily",
    "Event",
    "ExporterMetrics",
    "FinalizedBlock",
    "IdentityTable",
    "LogBufferHandler",
    "LogEntry",
    "LogRecord",
    "MetricRegistry",
    "ProposedBlock",
    "RegistrationError",
    "Resolution",
    "RingBufferLogStorage",
    "SkippedBlock",
    "Timeout",
    "classify_line",
    "create_asgi_app",
    "encode_families",
    "parse_identity",
    "parse_record",
    "register_exporter_metrics",
]
