"""NDJSON encoder for the exporter's captured diagnostic logs."""

import json
from collections.abc import Iterable
from typing import Any

from ledger_exporter.core.models import LogEntry


def _entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    return {
        "timestamp": entry.timestamp,
        "level": entry.level,
        "message": entry.message,
        "attributes": entry.attributes,
    }


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode captured log entries to newline-delimited JSON.

    Problematic lines echoed by parse warnings may hold arbitrary text, so
    non-ASCII is kept as-is rather than escaped.

    Returns:
        One JSON object per line with a trailing newline, or an empty
        string if there are no entries.
    """
    body = "\n".join(
        json.dumps(_entry_to_dict(entry), ensure_ascii=False) for entry in entries
    )
    return body + "\n" if body else ""
