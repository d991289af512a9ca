"""Shared test fixtures for all test modules."""

import pytest

try:
    import httpx
except ImportError:
    httpx = None

from ledger_exporter.adapters.storage.ring_buffer import RingBufferLogStorage
from ledger_exporter.core.aggregator import (
    Aggregator,
    ExporterMetrics,
    register_exporter_metrics,
)
from ledger_exporter.core.identity import IdentityTable
from ledger_exporter.core.registry import MetricRegistry
from tests.samples import PROPOSER


@pytest.fixture
def registry() -> MetricRegistry:
    """Fresh, empty registry."""
    return MetricRegistry()


@pytest.fixture
def identities() -> IdentityTable:
    """Identity table knowing only the proposer of PROPOSED_LINE."""
    return IdentityTable({PROPOSER: "chorus1"})


@pytest.fixture
def metrics(registry: MetricRegistry) -> ExporterMetrics:
    """Exporter families registered against the fresh registry."""
    return register_exporter_metrics(registry)


@pytest.fixture
def aggregator(metrics: ExporterMetrics, identities: IdentityTable) -> Aggregator:
    """Aggregator wired to the registered families."""
    return Aggregator(metrics, identities)


@pytest.fixture
def log_storage() -> RingBufferLogStorage:
    """Small ring buffer for captured logs."""
    return RingBufferLogStorage(max_size=100)


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(registry)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
