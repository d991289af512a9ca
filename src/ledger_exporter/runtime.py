"""Runs the ingestion loop and the metrics server side by side.

Two threads share a MetricRegistry: the ingestion thread classifies lines
from the source in order, and the uvicorn server thread renders snapshots
on each scrape. Nothing else passes between them.
"""

import logging
import threading
import time
from collections.abc import Iterable

import uvicorn

from ledger_exporter.adapters.frameworks.asgi import create_asgi_app
from ledger_exporter.core.aggregator import (
    Aggregator,
    ExporterMetrics,
    IngestStats,
    register_exporter_metrics,
)
from ledger_exporter.core.errors import ConfigurationError
from ledger_exporter.core.identity import IdentityTable
from ledger_exporter.core.ports import LogStoragePort
from ledger_exporter.core.registry import MetricRegistry

logger = logging.getLogger(__name__)

_STARTUP_POLL_SECONDS = 0.05


class MetricsServer:
    """Serves the exposition app with uvicorn on a background thread."""

    def __init__(
        self,
        registry: MetricRegistry,
        host: str,
        port: int,
        log_storage: LogStoragePort | None = None,
    ) -> None:
        config = uvicorn.Config(
            create_asgi_app(registry, log_storage),
            host=host,
            port=port,
            lifespan="off",
            access_log=False,
            log_config=None,
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run, name="metrics-server", daemon=True
        )
        self.host = host
        self.port = port

    @property
    def started(self) -> bool:
        return self._server.started

    @property
    def bound_port(self) -> int:
        """Port actually bound, which differs from ``port`` when it is 0."""
        for server in self._server.servers:
            for sock in server.sockets:
                return int(sock.getsockname()[1])
        return self.port

    def start(self, timeout: float = 10.0) -> None:
        """Start serving and wait until the socket is bound.

        Raises:
            ConfigurationError: If the server fails to bind in time.
        """
        logger.info("Starting metrics server on %s:%d", self.host, self.port)
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                raise ConfigurationError(
                    f"Unable to bind to address {self.host}:{self.port}"
                )
            time.sleep(_STARTUP_POLL_SECONDS)

    def stop(self, timeout: float = 5.0) -> None:
        self._server.should_exit = True
        if self._thread.is_alive():
            self._thread.join(timeout)


class IngestionWorker:
    """Feeds source lines to an Aggregator on a background thread."""

    def __init__(self, aggregator: Aggregator, lines: Iterable[str | bytes]) -> None:
        self._aggregator = aggregator
        self._lines = lines
        self._thread = threading.Thread(
            target=self._run, name="ledger-ingestion", daemon=True
        )
        self.stats: IngestStats | None = None
        self.error: BaseException | None = None

    def _run(self) -> None:
        try:
            self.stats = self._aggregator.consume(self._lines)
        except Exception as e:
            self.error = e
            logger.exception("Ingestion stopped after a read error")
        else:
            logger.info(
                "Ingestion finished: %d parsed, %d failed, %d blank",
                self.stats.success,
                self.stats.failure,
                self.stats.skipped,
            )

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()


class ExporterRuntime:
    """Wires registry, aggregator and server for one exporter process.

    Example:
        ```python
        runtime = ExporterRuntime(identities, host="0.0.0.0", port=9100)
        runtime.start_server()
        runtime.ingest(process.lines())
        ```
    """

    def __init__(
        self,
        identities: IdentityTable,
        host: str,
        port: int,
        log_storage: LogStoragePort | None = None,
        registry: MetricRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else MetricRegistry()
        self.metrics: ExporterMetrics = register_exporter_metrics(self.registry)
        self.aggregator = Aggregator(self.metrics, identities)
        self.server = MetricsServer(self.registry, host, port, log_storage)
        logger.info("Parsing metrics, our addresses are %s", dict(identities))

    def start_server(self) -> None:
        self.server.start()

    def start_ingestion(self, lines: Iterable[str | bytes]) -> IngestionWorker:
        worker = IngestionWorker(self.aggregator, lines)
        worker.start()
        return worker

    def ingest(self, lines: Iterable[str | bytes]) -> IngestStats:
        """Run ingestion on the calling thread until the source is exhausted."""
        return self.aggregator.consume(lines)

    def stop(self) -> None:
        self.server.stop()
