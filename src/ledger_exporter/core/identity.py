"""Operator-supplied mapping from validator public keys to display names."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from ledger_exporter.core.errors import ConfigurationError
from ledger_exporter.core.models import Resolution

logger = logging.getLogger(__name__)

_UNKNOWN = Resolution(operated_by_us=False, display_name="")


def parse_identity(value: str) -> tuple[str, str]:
    """Parse an ``addr:name`` identity argument.

    The value is split on the first colon, so names may contain colons but
    identifiers may not.

    Args:
        value: Raw identity string, e.g. ``"02ab...:validator-1"``.

    Returns:
        Tuple of (identifier, display_name).

    Raises:
        ConfigurationError: If the separator is missing or either side is empty.
    """
    identifier, sep, name = value.partition(":")
    if not sep:
        raise ConfigurationError(f"invalid identity {value}, expected addr:name")
    if not identifier or not name:
        raise ConfigurationError(
            f"invalid identity {value}, name and addr must be non-empty"
        )
    return identifier, name


class IdentityTable(Mapping[str, str]):
    """Immutable author -> display name lookup.

    Built once at startup and shared read-only between the ingestion and
    exposition threads.
    """

    def __init__(self, names: Mapping[str, str] | None = None) -> None:
        self._names: Mapping[str, str] = MappingProxyType(dict(names or {}))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "IdentityTable":
        """Build a table from (identifier, display_name) pairs.

        A repeated identifier keeps the last name supplied.

        Raises:
            ConfigurationError: If an identifier or name is empty.
        """
        names: dict[str, str] = {}
        for identifier, name in pairs:
            if not identifier or not name:
                raise ConfigurationError(
                    f"invalid identity {identifier}:{name}, "
                    "name and addr must be non-empty"
                )
            if identifier in names and names[identifier] != name:
                logger.warning(
                    "Identity %s given twice, using name %r instead of %r",
                    identifier,
                    name,
                    names[identifier],
                )
            names[identifier] = name
        return cls(names)

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> "IdentityTable":
        """Build a table from raw ``addr:name`` strings."""
        return cls.from_pairs(parse_identity(value) for value in values)

    def resolve(self, author: str) -> Resolution:
        """Look up an author by exact identifier.

        Unknown authors resolve to ``Resolution(False, "")``.
        """
        name = self._names.get(author)
        if name is None:
            return _UNKNOWN
        return Resolution(operated_by_us=True, display_name=name)

    def __getitem__(self, key: str) -> str:
        return self._names[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"IdentityTable({dict(self._names)!r})"
