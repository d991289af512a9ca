"""BDD step definitions for the ingestion pipeline features."""

import logging
from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from ledger_exporter.adapters.frameworks.asgi import render_metrics
from ledger_exporter.core.aggregator import (
    Aggregator,
    ExporterMetrics,
    register_exporter_metrics,
)
from ledger_exporter.core.identity import IdentityTable
from ledger_exporter.core.registry import MetricRegistry


@dataclass
class IngestionContext:
    """State shared between the steps of one scenario."""

    names: dict[str, str] = field(default_factory=dict)
    registry: MetricRegistry = field(default_factory=MetricRegistry)
    metrics: ExporterMetrics | None = None
    aggregator: Aggregator | None = None
    last_line: str = ""


@pytest.fixture
def ctx() -> IngestionContext:
    """Fresh scenario context for each test."""
    return IngestionContext()


# === Given ===
@given(parsers.parse('the known identity "{identifier}" named "{name}"'))
def given_known_identity(ctx: IngestionContext, identifier: str, name: str) -> None:
    ctx.names[identifier] = name


@given("a running exporter pipeline")
def given_pipeline(ctx: IngestionContext) -> None:
    ctx.metrics = register_exporter_metrics(ctx.registry)
    ctx.aggregator = Aggregator(ctx.metrics, IdentityTable(ctx.names))


# === When ===
@when(parsers.parse("the line '{line}' is processed"))
def when_line_processed(
    ctx: IngestionContext, line: str, caplog: pytest.LogCaptureFixture
) -> None:
    assert ctx.aggregator is not None
    ctx.last_line = line
    with caplog.at_level(logging.WARNING, logger="ledger_exporter"):
        ctx.aggregator.consume([line])


# === Then ===
@then(parsers.parse("the exposition contains the line '{expected}'"))
def then_exposition_contains(ctx: IngestionContext, expected: str) -> None:
    assert expected in render_metrics(ctx.registry).splitlines()


@then(parsers.parse('lines_parsed with status "{status}" is {count:d}'))
def then_lines_parsed(ctx: IngestionContext, status: str, count: int) -> None:
    assert ctx.metrics is not None
    assert ctx.metrics.lines_parsed.labels(status).get() == count


@then("no proposed block is counted")
def then_no_proposed(ctx: IngestionContext) -> None:
    [family] = [f for f in ctx.registry.snapshot() if f.name == "monad_proposed_blocks"]
    assert family.samples == ()


@then("no skipped block is counted")
def then_no_skipped(ctx: IngestionContext) -> None:
    [family] = [f for f in ctx.registry.snapshot() if f.name == "monad_skipped_blocks"]
    assert family.samples == ()


@then("a parse warning echoing the line was logged")
def then_parse_warning(ctx: IngestionContext, caplog: pytest.LogCaptureFixture) -> None:
    [record] = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert record.problematic_line == ctx.last_line
