"""Strict classification of ledger tail output lines into typed events.

Each non-blank line must be a JSON object with ``timestamp``, ``level``,
``target`` and ``fields`` keys. ``fields.message`` selects one of four
decoders; every other outcome is a ClassificationError. Unknown extra keys
are ignored, but a known key carrying the wrong JSON kind fails the whole
line.
"""

import json
from collections.abc import Callable
from typing import Any

from ledger_exporter.core.errors import ClassificationError
from ledger_exporter.core.models import (
    Event,
    FinalizedBlock,
    LogRecord,
    ProposedBlock,
    SkippedBlock,
    Timeout,
)


def _required(payload: dict[str, Any], key: str, line: str) -> str:
    """Return a mandatory string field or fail the line."""
    if key not in payload:
        raise ClassificationError(f"missing field `{key}`", line)
    value = payload[key]
    if not isinstance(value, str):
        raise ClassificationError(
            f"invalid type for `{key}`: expected a string, got {type(value).__name__}",
            line,
        )
    return value


def _optional(payload: dict[str, Any], key: str, line: str) -> str | None:
    """Return an optional string field; absent and null both map to None."""
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ClassificationError(
            f"invalid type for `{key}`: expected a string or null, "
            f"got {type(value).__name__}",
            line,
        )
    return value


def _common(payload: dict[str, Any], line: str) -> dict[str, Any]:
    return {
        "round": _required(payload, "round", line),
        "author": _required(payload, "author", line),
        "now_ts_ms": _required(payload, "now_ts_ms", line),
        "author_dns": _optional(payload, "author_dns", line),
        "author_address": _optional(payload, "author_address", line),
    }


def _decode_proposed_block(payload: dict[str, Any], line: str) -> ProposedBlock:
    return ProposedBlock(
        **_common(payload, line),
        epoch=_required(payload, "epoch", line),
        seq_num=_required(payload, "seq_num", line),
        num_tx=_required(payload, "num_tx", line),
        block_ts_ms=_required(payload, "block_ts_ms", line),
    )


def _decode_skipped_block(payload: dict[str, Any], line: str) -> SkippedBlock:
    return SkippedBlock(**_common(payload, line))


def _decode_finalized_block(payload: dict[str, Any], line: str) -> FinalizedBlock:
    return FinalizedBlock(
        **_common(payload, line),
        epoch=_required(payload, "epoch", line),
        seq_num=_required(payload, "seq_num", line),
        block_ts_ms=_required(payload, "block_ts_ms", line),
    )


def _decode_timeout(payload: dict[str, Any], line: str) -> Timeout:
    return Timeout(**_common(payload, line))


_DECODERS: dict[str, Callable[[dict[str, Any], str], Event]] = {
    "proposed_block": _decode_proposed_block,
    "skipped_block": _decode_skipped_block,
    "finalized_block": _decode_finalized_block,
    "timeout": _decode_timeout,
}

EVENT_TAGS = frozenset(_DECODERS)


def decode_fields(payload: Any, line: str) -> Event:
    """Decode the ``fields`` payload of a record into its event variant.

    Args:
        payload: The decoded JSON value found under ``fields``.
        line: The source line, carried into any error.

    Returns:
        The event selected by ``payload["message"]``.

    Raises:
        ClassificationError: If the payload is not an object, the tag is
            missing or unknown, or a field required by the tag is invalid.
    """
    if not isinstance(payload, dict):
        raise ClassificationError("invalid type for `fields`: expected an object", line)
    if "message" not in payload:
        raise ClassificationError("missing field `message`", line)
    tag = payload["message"]
    decoder = _DECODERS.get(tag) if isinstance(tag, str) else None
    if decoder is None:
        expected = ", ".join(f"`{name}`" for name in _DECODERS)
        raise ClassificationError(
            f"unknown variant `{tag}`, expected one of {expected}", line
        )
    return decoder(payload, line)


def _reject_constant(line: str) -> Callable[[str], Any]:
    def reject(name: str) -> Any:
        raise ClassificationError(f"invalid JSON: `{name}` is not a JSON value", line)

    return reject


def _check_unicode(value: Any, line: str) -> None:
    """Fail the line if any decoded string holds a lone surrogate.

    ``json`` decodes escapes such as ``\\ud800`` that have no UTF-8 form.
    """
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ClassificationError(
                f"invalid JSON: lone surrogate at position {e.start} of {value!r}",
                line,
            ) from e
    elif isinstance(value, dict):
        for key, item in value.items():
            _check_unicode(key, line)
            _check_unicode(item, line)
    elif isinstance(value, list):
        for item in value:
            _check_unicode(item, line)


def parse_record(line: str) -> LogRecord:
    """Decode one line into a LogRecord.

    Args:
        line: A single line of tail output, without batching.

    Returns:
        The decoded record.

    Raises:
        ClassificationError: If the line is not a well-formed record.
    """
    try:
        document = json.loads(line, parse_constant=_reject_constant(line))
        _check_unicode(document, line)
    except json.JSONDecodeError as e:
        raise ClassificationError(f"invalid JSON: {e}", line) from e
    except RecursionError as e:
        raise ClassificationError("invalid JSON: nesting too deep", line) from e
    if not isinstance(document, dict):
        raise ClassificationError(
            f"invalid type: expected a JSON object, got {type(document).__name__}",
            line,
        )
    # fields is decoded first so an unknown tag is reported ahead of
    # missing envelope keys.
    if "fields" not in document:
        raise ClassificationError("missing field `fields`", line)
    fields = decode_fields(document["fields"], line)
    return LogRecord(
        timestamp=_required(document, "timestamp", line),
        level=_required(document, "level", line),
        target=_required(document, "target", line),
        fields=fields,
    )


def classify_line(line: str) -> Event | None:
    """Classify one line of tail output.

    Returns:
        The decoded event, or None for blank and whitespace-only lines.

    Raises:
        ClassificationError: If a non-blank line is not a valid record.
    """
    if not line.strip():
        return None
    return parse_record(line).fields
