"""Core domain models for ledger events and exporter observability data."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProposedBlock:
    """A block proposal observed in the ledger tail.

    Attributes:
        round: Consensus round (opaque string).
        author: Public key of the proposing validator.
        now_ts_ms: Wall-clock time the tail observed the block.
        author_dns: Optional DNS-style endpoint of the author.
        author_address: Optional socket address of the author.
        epoch: Epoch the block belongs to.
        seq_num: Block sequence number.
        num_tx: Number of transactions in the block.
        block_ts_ms: Block timestamp in milliseconds.
    """

    round: str
    author: str
    now_ts_ms: str
    author_dns: str | None
    author_address: str | None
    epoch: str
    seq_num: str
    num_tx: str
    block_ts_ms: str


@dataclass(frozen=True)
class SkippedBlock:
    """A round in which the scheduled author produced no block."""

    round: str
    author: str
    now_ts_ms: str
    author_dns: str | None
    author_address: str | None


@dataclass(frozen=True)
class FinalizedBlock:
    """A block that reached finality."""

    round: str
    author: str
    now_ts_ms: str
    author_dns: str | None
    author_address: str | None
    epoch: str
    seq_num: str
    block_ts_ms: str


@dataclass(frozen=True)
class Timeout:
    """A round that timed out waiting on its author."""

    round: str
    author: str
    now_ts_ms: str
    author_dns: str | None
    author_address: str | None


Event = ProposedBlock | SkippedBlock | FinalizedBlock | Timeout


@dataclass(frozen=True)
class LogRecord:
    """One decoded line of ledger tail output.

    Attributes:
        timestamp: Emission time as written by the tail (informational).
        level: Log level of the line (informational).
        target: Emitting component (informational).
        fields: The classified event payload.
    """

    timestamp: str
    level: str
    target: str
    fields: Event


@dataclass(frozen=True)
class Resolution:
    """Outcome of looking up an author in the identity table."""

    operated_by_us: bool
    display_name: str = ""


@dataclass(frozen=True)
class Sample:
    """Current value of one label tuple in a counter family."""

    labels: tuple[str, ...]
    value: int


@dataclass(frozen=True)
class FamilySnapshot:
    """Point-in-time copy of a counter family.

    Attributes:
        name: Metric name (e.g., monad_proposed_blocks).
        help: Help text rendered on the HELP line.
        label_names: Ordered label schema of the family.
        samples: One entry per label tuple seen so far.
    """

    name: str
    help: str
    label_names: tuple[str, ...]
    samples: tuple[Sample, ...] = ()


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry captured from the exporter's own logging.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Log level (e.g., INFO, ERROR, DEBUG).
        message: The log message.
        attributes: Additional structured fields.
    """

    timestamp: float
    level: str
    message: str
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)
