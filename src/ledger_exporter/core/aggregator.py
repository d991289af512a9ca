"""Routes classified ledger events into per-author counters."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ledger_exporter.core.classifier import classify_line
from ledger_exporter.core.errors import ClassificationError
from ledger_exporter.core.identity import IdentityTable
from ledger_exporter.core.models import (
    Event,
    FinalizedBlock,
    ProposedBlock,
    SkippedBlock,
    Timeout,
)
from ledger_exporter.core.registry import CounterFamily, MetricRegistry

logger = logging.getLogger(__name__)

PROPOSED_BLOCKS = "monad_proposed_blocks"
SKIPPED_BLOCKS = "monad_skipped_blocks"
LINES_PARSED = "monad_ledger_exporter_lines_parsed"

AUTHOR_LABELS = (
    "author",
    "author_dns",
    "author_address",
    "operated_by_us",
    "validator_name",
)

STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"
_SKIPPED = "skipped"


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ClassificationError(
            f"invalid UTF-8: {e}", raw.decode("utf-8", errors="replace")
        ) from e


@dataclass(frozen=True)
class ExporterMetrics:
    """The counter families the exporter writes to."""

    proposed_blocks: CounterFamily
    skipped_blocks: CounterFamily
    lines_parsed: CounterFamily


def register_exporter_metrics(registry: MetricRegistry) -> ExporterMetrics:
    """Register the exporter's counter families.

    Both ``lines_parsed`` statuses are reset so they are exposed at zero
    before the first line arrives.

    Raises:
        RegistrationError: If any family is already registered.
    """
    metrics = ExporterMetrics(
        proposed_blocks=registry.register_counter(
            PROPOSED_BLOCKS, "Number of proposed blocks by author.", AUTHOR_LABELS
        ),
        skipped_blocks=registry.register_counter(
            SKIPPED_BLOCKS, "Number of skipped blocks by author.", AUTHOR_LABELS
        ),
        lines_parsed=registry.register_counter(
            LINES_PARSED,
            "Number of lines parsed by the ledger exporter",
            ("status",),
        ),
    )
    metrics.lines_parsed.labels(STATUS_SUCCESS).reset()
    metrics.lines_parsed.labels(STATUS_FAILURE).reset()
    return metrics


@dataclass
class IngestStats:
    """Line outcomes counted by Aggregator.consume()."""

    success: int = 0
    failure: int = 0
    skipped: int = 0


class Aggregator:
    """Classifies lines and increments the matching counters.

    Only the ingestion thread calls into an Aggregator, so lines are
    processed one at a time in input order.
    """

    def __init__(self, metrics: ExporterMetrics, identities: IdentityTable) -> None:
        self._metrics = metrics
        self._identities = identities

    @property
    def metrics(self) -> ExporterMetrics:
        return self._metrics

    def process_line(self, line: str | bytes) -> Event | None:
        """Classify one line and update counters.

        Blank lines change nothing. A classification failure is logged and
        counted, never raised. Byte lines must be valid UTF-8.

        Returns:
            The classified event, or None if the line was blank or invalid.
        """
        return self._process(line)[1]

    def _process(self, line: str | bytes) -> tuple[str, Event | None]:
        """Return the line's outcome (a status or "skipped") and its event."""
        try:
            if isinstance(line, bytes):
                line = _decode(line)
            event = classify_line(line)
        except ClassificationError as e:
            self._metrics.lines_parsed.labels(STATUS_FAILURE).inc()
            logger.warning(
                "Error parsing line: %s. Problematic line: %s",
                e.reason,
                e.line,
                extra={"parse_error": e.reason, "problematic_line": e.line},
            )
            return STATUS_FAILURE, None
        if event is None:
            return _SKIPPED, None
        self._metrics.lines_parsed.labels(STATUS_SUCCESS).inc()
        self.record(event)
        return STATUS_SUCCESS, event

    def record(self, event: Event) -> None:
        """Increment the per-author counter for an already classified event."""
        match event:
            case ProposedBlock():
                family = self._metrics.proposed_blocks
            # Timeouts are counted as skipped blocks.
            case SkippedBlock() | Timeout():
                family = self._metrics.skipped_blocks
            case FinalizedBlock():
                return
            case _:
                raise TypeError(f"not a ledger event: {event!r}")
        family.labels(*self.author_labels(event)).inc()

    def author_labels(self, event: Event) -> tuple[str, str, str, str, str]:
        """Build the per-author label tuple for an event."""
        resolution = self._identities.resolve(event.author)
        return (
            event.author,
            event.author_dns or "",
            event.author_address or "",
            "true" if resolution.operated_by_us else "false",
            resolution.display_name,
        )

    def consume(self, lines: Iterable[str | bytes]) -> IngestStats:
        """Process lines until the iterable is exhausted."""
        stats = IngestStats()
        for line in lines:
            outcome, _ = self._process(line)
            if outcome == STATUS_SUCCESS:
                stats.success += 1
            elif outcome == STATUS_FAILURE:
                stats.failure += 1
            else:
                stats.skipped += 1
        return stats
