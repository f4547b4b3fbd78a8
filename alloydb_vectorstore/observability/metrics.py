"""
Prometheus metrics for monitoring vector store operations.

Defines and exposes metrics for:
- Operation counts by outcome (add_all, search, remove_all, ...)
- Operation latency
- Rows written and deleted
- Search result sizes

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    start_http_server,
)

from alloydb_vectorstore.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for vector store operations.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_operation("search", "success", latency=0.012)
        metrics.record_search_results(4)
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            registry: Registry to register metrics in (default: global REGISTRY)
        """
        self._registry = registry or REGISTRY

        self.operations = Counter(
            "alloydb_vectorstore_operations_total",
            "Total vector store operations",
            ["operation", "status"],  # status: success, error
            registry=self._registry,
        )

        self.operation_latency = Histogram(
            "alloydb_vectorstore_operation_latency_seconds",
            "Time spent executing a vector store operation",
            ["operation"],
            buckets=LATENCY_BUCKETS,
            registry=self._registry,
        )

        self.rows_written = Counter(
            "alloydb_vectorstore_rows_written_total",
            "Total embedding rows inserted",
            registry=self._registry,
        )

        self.rows_deleted = Counter(
            "alloydb_vectorstore_rows_deleted_total",
            "Total embedding rows deleted",
            registry=self._registry,
        )

        self.search_results = Histogram(
            "alloydb_vectorstore_search_results",
            "Number of matches returned per search",
            buckets=(0, 1, 4, 10, 20, 50, 100, 500),
            registry=self._registry,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=self._registry)
        logger.info(f"Prometheus metrics server started on port {port}")

    def record_operation(
        self,
        operation: str,
        status: str,
        latency: float | None = None,
    ) -> None:
        """
        Record a completed vector store operation.

        Args:
            operation: Operation name (add_all, search, remove_all, ...)
            status: Outcome (success, error)
            latency: Optional latency in seconds
        """
        self.operations.labels(operation=operation, status=status).inc()

        if latency is not None:
            self.operation_latency.labels(operation=operation).observe(latency)

    def record_rows_written(self, count: int) -> None:
        self.rows_written.inc(count)

    def record_rows_deleted(self, count: int) -> None:
        self.rows_deleted.inc(count)

    def record_search_results(self, count: int) -> None:
        self.search_results.observe(count)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
