"""ASGI application serving the exporter's metrics and captured logs.

The app needs no web framework and can be run by any ASGI server; the
runtime serves it with uvicorn. Every path except /logs renders the metric
registry, so scrapers configured with any path get the exposition text.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from ledger_exporter.adapters.frameworks.query_params import (
    _parse_level_param,
    _parse_since_param,
)
from ledger_exporter.core.encoding.ndjson import encode_logs
from ledger_exporter.core.encoding.prometheus import CONTENT_TYPE, encode_families
from ledger_exporter.core.ports import LogStoragePort
from ledger_exporter.core.registry import MetricRegistry

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

NDJSON_CONTENT_TYPE = "application/x-ndjson"


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns an empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


async def _send_response(send: Send, status: int, content_type: str, body: bytes) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Encoded response body.
    """
    headers = [
        (b"content-type", content_type.encode()),
        (b"content-length", str(len(body)).encode()),
    ]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body})


async def _handle_endpoint(
    send: Send,
    render: Callable[[], str],
    content_type: str,
    log_message: str,
) -> None:
    """Render a response body with error handling and send it.

    Args:
        send: ASGI send callable for writing response.
        render: Function that returns the response body.
        content_type: Content-Type header for success response.
        log_message: Message to log on error.
    """
    try:
        body = render().encode()
    except Exception:
        logger.exception(log_message)
        error_body = json.dumps({"error": "Internal Server Error"}).encode()
        await _send_response(send, 500, "application/json", error_body)
        return
    await _send_response(send, 200, content_type, body)


def render_metrics(registry: MetricRegistry) -> str:
    """Render a point-in-time snapshot of the registry."""
    return encode_families(registry.snapshot())


def render_logs(
    log_storage: LogStoragePort | None, params: dict[str, list[str]]
) -> str:
    """Render captured log entries filtered by the since/level parameters."""
    if log_storage is None:
        return ""
    since = _parse_since_param(params)
    level = _parse_level_param(params)
    return encode_logs(log_storage.read(since=since, level=level))


def create_asgi_app(
    registry: MetricRegistry,
    log_storage: LogStoragePort | None = None,
) -> ASGIApp:
    """Create an ASGI app exposing the registry and captured logs.

    Args:
        registry: Registry rendered on every metrics scrape.
        log_storage: Captured log entries served on /logs (optional).

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        # @tra: Adapter.ASGI.LogsEndpoint
        if scope["path"] == "/logs":
            params = _parse_query_params(scope)
            await _handle_endpoint(
                send,
                lambda: render_logs(log_storage, params),
                NDJSON_CONTENT_TYPE,
                "Error encoding logs endpoint",
            )
        # @tra: Adapter.ASGI.MetricsEndpoint
        else:
            await _handle_endpoint(
                send,
                lambda: render_metrics(registry),
                CONTENT_TYPE,
                "Error encoding metrics endpoint",
            )

    return app
