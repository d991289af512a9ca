"""Storage adapters for captured log entries."""

from ledger_exporter.adapters.storage.ring_buffer import RingBufferLogStorage

__all__ = [
    "RingBufferLogStorage",
]
