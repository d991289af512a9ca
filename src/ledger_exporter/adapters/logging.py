"""Python logging handler that captures exporter diagnostics.

Records emitted through the ``ledger_exporter`` logger hierarchy (parse
failures, process lifecycle, server errors) are converted to LogEntry
objects and written to a LogStoragePort, which the /logs endpoint serves.
"""

import logging
import traceback
from types import TracebackType

from ledger_exporter.core.models import LogEntry
from ledger_exporter.core.ports import LogStoragePort

Scalar = str | int | float | bool

# Everything a bare LogRecord carries; anything else arrived via ``extra=``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime"}

# Where a record came from. The thread name tells ingestion apart from the
# metrics server.
_SOURCE_ATTRS = {
    "module": lambda record: record.name,
    "funcName": lambda record: record.funcName or "",
    "lineno": lambda record: record.lineno,
    "thread": lambda record: record.threadName or "",
}

_DEFAULT_INCLUDE_ATTRS = ("module", "funcName", "lineno")


def _exception_attributes(
    exc_info: tuple[type[BaseException] | None, BaseException | None, TracebackType | None],
) -> dict[str, Scalar]:
    exc_type, exc_value, exc_tb = exc_info
    found: dict[str, Scalar] = {}
    if exc_type is not None:
        found["exc_type"] = exc_type.__name__
    if exc_value is not None:
        found["exc_message"] = str(exc_value)
    if exc_tb is not None:
        found["exc_traceback"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )
    return found


class LogBufferHandler(logging.Handler):
    """Logging handler that writes log records to a LogStoragePort.

    Example:
        ```python
        storage = RingBufferLogStorage(max_size=1000)
        logging.getLogger("ledger_exporter").addHandler(LogBufferHandler(storage))
        ```
    """

    def __init__(
        self,
        storage: LogStoragePort,
        include_attrs: tuple[str, ...] | list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a log storage backend.

        Args:
            storage: Storage adapter implementing LogStoragePort.
            include_attrs: Source attributes copied into each entry, any of
                "module", "funcName", "lineno" and "thread". Defaults to
                ("module", "funcName", "lineno").
            level: Minimum level handled.
        """
        super().__init__(level)
        self._storage = storage
        self._include_attrs = tuple(include_attrs or _DEFAULT_INCLUDE_ATTRS)

    def _to_entry(self, record: logging.LogRecord) -> LogEntry:
        attributes: dict[str, Scalar] = {
            name: _SOURCE_ATTRS[name](record)
            for name in self._include_attrs
            if name in _SOURCE_ATTRS
        }
        attributes.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and isinstance(value, Scalar)
        )
        if record.exc_info:
            attributes.update(_exception_attributes(record.exc_info))
        return LogEntry(
            timestamp=record.created,
            level=record.levelname,
            message=record.getMessage(),
            attributes=attributes,
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._storage.write(self._to_entry(record))
        except Exception:
            self.handleError(record)
