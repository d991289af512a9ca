"""Port interfaces for log capture adapters.

The HTTP layer and the logging handler depend only on this protocol, not on
a concrete buffer.
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from ledger_exporter.core.models import LogEntry


@runtime_checkable
class LogStoragePort(Protocol):
    """Port for captured log storage.

    Implementations must be safe to call from several threads.
    Example: RingBufferLogStorage.
    """

    def write(self, entry: LogEntry) -> None:
        """Store a log entry."""
        ...

    def read(self, since: float = 0, level: str | None = None) -> Iterable[LogEntry]:
        """Read entries with timestamp > since, ordered by timestamp ascending.

        Args:
            since: Unix timestamp. Default 0 returns all entries.
            level: Optional level filter (e.g. "WARNING").
        """
        ...
