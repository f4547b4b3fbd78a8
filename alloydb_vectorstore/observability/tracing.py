"""
OpenTelemetry tracing for vector store operations.

Every store operation runs in a span named ``vectorstore.<operation>``
carrying the database system and the fully-qualified table. Spans are
exported over OTLP gRPC once setup_tracing() has run; before that the global
no-op provider makes every span free.

Usage:
    from alloydb_vectorstore.observability.tracing import setup_tracing, store_span

    setup_tracing("alloydb-vectorstore", "http://localhost:4317")

    with store_span(tracer, "search", '"public"."documents"', max_results=4):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Span, StatusCode, Tracer

logger = logging.getLogger(__name__)

SPAN_PREFIX = "vectorstore"

_tracing_enabled = False


def _otlp_exporter(endpoint: str | None) -> SpanExporter:
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter,
    )

    return OTLPSpanExporter(endpoint=endpoint or "http://localhost:4317", insecure=True)


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install a TracerProvider as the global provider.

    Args:
        service_name: Value of the service.name resource attribute
        otlp_endpoint: OTLP gRPC collector endpoint
        exporter: Exporter to use instead of OTLP; spans are exported
            synchronously so tests can read them right away

    Returns:
        The installed TracerProvider
    """
    global _tracing_enabled

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(otlp_endpoint)))
    trace.set_tracer_provider(provider)

    _tracing_enabled = True
    logger.info(
        "Tracing enabled: service=%s endpoint=%s",
        service_name,
        otlp_endpoint if exporter is None else "(custom exporter)",
    )
    return provider


def get_tracer(name: str) -> Tracer:
    """Tracer from the global provider (no-op until setup_tracing runs)."""
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    return _tracing_enabled


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """
    Run the block in a span; an escaping exception marks the span as failed.

    The exception is recorded on the span and re-raised unchanged.
    """
    with tracer.start_as_current_span(name, attributes=attributes) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(StatusCode.ERROR, str(exc))
            raise


@contextmanager
def store_span(
    tracer: Tracer,
    operation: str,
    table: str,
    **attributes: Any,
) -> Iterator[Span]:
    """
    Span for one store operation: ``vectorstore.<operation>``.

    Args:
        tracer: Tracer to start the span with
        operation: Operation name (add_all, search, remove_all, ...)
        table: Fully-qualified table name
        **attributes: Extra span attributes (batch sizes, limits, ...)
    """
    span_attributes = {
        "db.system": "postgresql",
        "db.table": table,
        "vectorstore.operation": operation,
        **attributes,
    }
    with traced(tracer, f"{SPAN_PREFIX}.{operation}", span_attributes) as span:
        yield span


def add_trace_context(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding trace_id / span_id of the current span."""
    context = trace.get_current_span().get_span_context()
    if context.is_valid:
        event_dict["trace_id"] = format(context.trace_id, "032x")
        event_dict["span_id"] = format(context.span_id, "016x")
    return event_dict
