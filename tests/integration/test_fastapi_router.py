"""Integration tests for the FastAPI exporter router."""

import json

import pytest

from ledger_exporter.adapters.storage.ring_buffer import RingBufferLogStorage
from ledger_exporter.core.aggregator import Aggregator
from ledger_exporter.core.encoding.prometheus import CONTENT_TYPE
from ledger_exporter.core.models import LogEntry
from ledger_exporter.core.registry import MetricRegistry
from tests.samples import PROPOSED_LINE

fastapi = pytest.importorskip("fastapi")

from ledger_exporter.adapters.frameworks.fastapi import create_exporter_router  # noqa: E402

pytestmark = [pytest.mark.fastapi, pytest.mark.tier(2)]


@pytest.fixture
def make_app():
    def _make(registry: MetricRegistry, log_storage: RingBufferLogStorage | None = None):
        app = fastapi.FastAPI()
        app.include_router(create_exporter_router(registry, log_storage))
        return app

    return _make


class TestFastAPIRouter:
    """Tests for create_exporter_router()."""

    @pytest.mark.tra("Adapter.FastAPI.Metrics")
    async def test_metrics_route(
        self, registry: MetricRegistry, aggregator: Aggregator, make_app, asgi_test_client
    ) -> None:
        aggregator.process_line(PROPOSED_LINE)

        async with asgi_test_client(make_app(registry)) as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"] == CONTENT_TYPE
        assert 'monad_ledger_exporter_lines_parsed{status="success"} 1' in response.text
        assert 'validator_name="chorus1"} 1' in response.text

    @pytest.mark.tra("Adapter.FastAPI.Logs")
    async def test_logs_route_with_filters(
        self,
        registry: MetricRegistry,
        log_storage: RingBufferLogStorage,
        make_app,
        asgi_test_client,
    ) -> None:
        log_storage.write(LogEntry(timestamp=1.0, level="INFO", message="a"))
        log_storage.write(LogEntry(timestamp=2.0, level="WARNING", message="b"))
        log_storage.write(LogEntry(timestamp=3.0, level="INFO", message="c"))

        async with asgi_test_client(make_app(registry, log_storage)) as client:
            response = await client.get("/logs", params={"since": "1", "level": "info"})

        messages = [json.loads(line)["message"] for line in response.text.splitlines()]
        assert messages == ["c"]

    async def test_unknown_path_is_404(
        self, registry: MetricRegistry, make_app, asgi_test_client
    ) -> None:
        """Embedded in an app, the router only owns its own paths."""
        async with asgi_test_client(make_app(registry)) as client:
            response = await client.get("/other")

        assert response.status_code == 404
