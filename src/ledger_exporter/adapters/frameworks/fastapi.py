"""FastAPI adapter for embedding the exporter endpoints in an existing app."""

from fastapi import APIRouter, Query, Response

from ledger_exporter.adapters.frameworks.asgi import (
    NDJSON_CONTENT_TYPE,
    render_logs,
    render_metrics,
)
from ledger_exporter.core.encoding.prometheus import CONTENT_TYPE
from ledger_exporter.core.ports import LogStoragePort
from ledger_exporter.core.registry import MetricRegistry


def create_exporter_router(
    registry: MetricRegistry,
    log_storage: LogStoragePort | None = None,
) -> APIRouter:
    """Create a FastAPI router with /metrics and /logs endpoints.

    Args:
        registry: Registry rendered on every scrape.
        log_storage: Captured log entries served on /logs (optional).

    Returns:
        APIRouter with /metrics and /logs endpoints configured.
    """
    router = APIRouter()

    @router.get("/metrics")
    def get_metrics() -> Response:
        """Return metrics in Prometheus text format."""
        return Response(content=render_metrics(registry), media_type=CONTENT_TYPE)

    @router.get("/logs")
    def get_logs(
        since: str = Query(default="0"),
        level: str | None = Query(default=None),
    ) -> Response:
        """Return captured logs in NDJSON format.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
            level: Only return entries of this level.
        """
        params = {"since": [since]}
        if level is not None:
            params["level"] = [level]
        return Response(
            content=render_logs(log_storage, params),
            media_type=NDJSON_CONTENT_TYPE,
        )

    return router
