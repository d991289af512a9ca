"""Prometheus text format encoder for counter families."""

from collections.abc import Iterable

from ledger_exporter.core.models import FamilySnapshot

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(value: str) -> str:
    """Escape a label value per the Prometheus exposition format.

    Args:
        value: Raw label value.

    Returns:
        Value with backslash, double quote and newline escaped.
    """
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_labels(names: tuple[str, ...], values: tuple[str, ...]) -> str:
    if not names:
        return ""
    pairs = ",".join(
        f'{name}="{_escape_label_value(value)}"'
        for name, value in zip(names, values, strict=True)
    )
    return "{" + pairs + "}"


def encode_family(family: FamilySnapshot) -> str:
    """Encode one counter family, including its HELP and TYPE lines.

    Samples are ordered by label values so repeated scrapes are stable.
    """
    lines = [
        f"# HELP {family.name} {_escape_help(family.help)}",
        f"# TYPE {family.name} counter",
    ]
    for sample in sorted(family.samples, key=lambda s: s.labels):
        labels = _format_labels(family.label_names, sample.labels)
        lines.append(f"{family.name}{labels} {sample.value}")
    return "\n".join(lines) + "\n"


def encode_families(families: Iterable[FamilySnapshot]) -> str:
    """Encode a registry snapshot to Prometheus text format.

    Args:
        families: Snapshot as returned by MetricRegistry.snapshot().

    Returns:
        Exposition text with families ordered by name. A family with no
        label tuples yet still contributes its HELP and TYPE lines.
        Empty string if there are no families.
    """
    return "".join(
        encode_family(family) for family in sorted(families, key=lambda f: f.name)
    )
