"""In-memory counter registry shared by the ingestion and exposition threads.

A MetricRegistry owns every CounterFamily registered against it. One lock
guards all counter state, so increments are never lost and a snapshot never
sees a partially applied increment. Snapshots are copied under the lock and
rendered outside it.
"""

import re
import threading
from collections.abc import Sequence

from ledger_exporter.core.errors import RegistrationError
from ledger_exporter.core.models import FamilySnapshot, Sample

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class Counter:
    """A single label tuple of a CounterFamily."""

    def __init__(self, family: "CounterFamily", labels: tuple[str, ...]) -> None:
        self._family = family
        self._labels = labels

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    def inc(self, amount: int = 1) -> None:
        """Increment the counter.

        Raises:
            ValueError: If amount is negative.
        """
        if amount < 0:
            raise ValueError("counters can only be incremented by non-negative amounts")
        self._family._add(self._labels, amount)

    def reset(self) -> None:
        """Set the counter to zero, creating it if needed."""
        self._family._set(self._labels, 0)

    def get(self) -> int:
        return self._family._get(self._labels)


class CounterFamily:
    """A named counter with a fixed, ordered label schema."""

    def __init__(
        self,
        name: str,
        help: str,
        label_names: tuple[str, ...],
        lock: threading.Lock,
    ) -> None:
        self.name = name
        self.help = help
        self.label_names = label_names
        self._lock = lock
        self._values: dict[tuple[str, ...], int] = {}

    def labels(self, *values: str) -> Counter:
        """Return the counter for one label tuple, creating it at zero.

        Args:
            *values: Label values in schema order.

        Raises:
            ValueError: If the number of values does not match the schema.
        """
        if len(values) != len(self.label_names):
            raise ValueError(
                f"{self.name} expects {len(self.label_names)} label values "
                f"({', '.join(self.label_names)}), got {len(values)}"
            )
        key = tuple(str(v) for v in values)
        with self._lock:
            self._values.setdefault(key, 0)
        return Counter(self, key)

    def _add(self, key: tuple[str, ...], amount: int) -> None:
        with self._lock:
            self._values[key] = self._values.get(key, 0) + amount

    def _set(self, key: tuple[str, ...], value: int) -> None:
        with self._lock:
            self._values[key] = value

    def _get(self, key: tuple[str, ...]) -> int:
        with self._lock:
            return self._values.get(key, 0)

    def _snapshot(self) -> FamilySnapshot:
        # Caller holds the lock.
        return FamilySnapshot(
            name=self.name,
            help=self.help,
            label_names=self.label_names,
            samples=tuple(Sample(labels=k, value=v) for k, v in self._values.items()),
        )


class MetricRegistry:
    """Process-wide collection of counter families.

    Example:
        ```python
        registry = MetricRegistry()
        blocks = registry.register_counter("blocks", "Blocks seen.", ["author"])
        blocks.labels("02ab").inc()
        families = registry.snapshot()
        ```
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._families: dict[str, CounterFamily] = {}

    def register_counter(
        self,
        name: str,
        help: str,
        label_names: Sequence[str] = (),
    ) -> CounterFamily:
        """Register a new counter family.

        Args:
            name: Metric name, unique within this registry.
            help: Help text shown in the exposition output.
            label_names: Ordered label schema.

        Returns:
            The newly registered family.

        Raises:
            RegistrationError: If the name is taken or a name is invalid.
        """
        if not _METRIC_NAME_RE.match(name):
            raise RegistrationError(f"invalid metric name {name!r}")
        labels = tuple(label_names)
        for label in labels:
            if not _LABEL_NAME_RE.match(label) or label.startswith("__"):
                raise RegistrationError(f"invalid label name {label!r} for {name}")
        if len(set(labels)) != len(labels):
            raise RegistrationError(f"duplicate label names for {name}: {labels}")
        with self._lock:
            if name in self._families:
                raise RegistrationError(f"metric {name} is already registered")
            family = CounterFamily(name, help, labels, self._lock)
            self._families[name] = family
        return family

    def get(self, name: str) -> CounterFamily | None:
        with self._lock:
            return self._families.get(name)

    def snapshot(self) -> list[FamilySnapshot]:
        """Copy the current value of every label tuple in every family."""
        with self._lock:
            return [family._snapshot() for family in self._families.values()]
