"""Observability layer - logging, metrics, and tracing."""

from alloydb_vectorstore.observability.logging import setup_logging
from alloydb_vectorstore.observability.metrics import MetricsCollector, get_metrics
from alloydb_vectorstore.observability.tracing import get_tracer, setup_tracing

__all__ = ["setup_logging", "MetricsCollector", "get_metrics", "setup_tracing", "get_tracer"]
