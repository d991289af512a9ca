"""Text encoders for metrics exposition and captured logs."""

from ledger_exporter.core.encoding.ndjson import encode_logs
from ledger_exporter.core.encoding.prometheus import CONTENT_TYPE, encode_families

__all__ = [
    "CONTENT_TYPE",
    "encode_families",
    "encode_logs",
]
