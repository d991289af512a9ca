"""Bounded in-memory storage for the exporter's captured log entries.

Entries are written from whichever thread logs (usually the ingestion
thread) and read by the HTTP server thread, so access is serialised with a
lock. When the buffer is full the oldest entry is evicted.
"""

import threading
from collections import deque
from collections.abc import Iterable

from ledger_exporter.core.models import LogEntry


class RingBufferLogStorage:
    """Fixed-size circular buffer of LogEntry objects.

    Args:
        max_size: Maximum number of entries to keep.
    """

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    def write(self, entry: LogEntry) -> None:
        """Append an entry, evicting the oldest if the buffer is full."""
        with self._lock:
            self._buffer.append(entry)

    def read(self, since: float = 0, level: str | None = None) -> Iterable[LogEntry]:
        """Read entries newer than ``since``, optionally of one level.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
            level: Case-insensitive level filter, e.g. "WARNING".

        Returns:
            Matching entries ordered by timestamp ascending.
        """
        with self._lock:
            entries = list(self._buffer)
        wanted = level.upper() if level else None
        filtered = [
            e
            for e in entries
            if e.timestamp > since and (wanted is None or e.level == wanted)
        ]
        return sorted(filtered, key=lambda e: e.timestamp)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
