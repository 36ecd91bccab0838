"""OpenTelemetry tracing.

Spans follow the database semantic conventions where they apply
(`db.system`, `db.name`, `db.statement`), so connection and query spans
line up with other database clients in a trace viewer.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)

INSTRUMENTATION_NAME = "duckdb_access"

_tracer: trace.Tracer | None = None


def _exporters(otlp_endpoint: str | None, console_export: bool) -> list[SpanExporter]:
    exporters: list[SpanExporter] = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    if console_export:
        exporters.append(ConsoleSpanExporter())
    return exporters


def setup_tracing(
    service_name: str = INSTRUMENTATION_NAME,
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install a tracer provider for this process.

    Without an endpoint or console export spans are still created (so
    context propagates) but go nowhere.

    Args:
        service_name: `service.name` resource attribute
        otlp_endpoint: OTLP gRPC collector, e.g. "http://localhost:4317"
        console_export: Also print finished spans to stdout

    Returns:
        The tracer used by this library
    """
    global _tracer

    from duckdb_access import __version__

    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name, "service.version": __version__})
    )
    for exporter in _exporters(otlp_endpoint, console_export):
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(INSTRUMENTATION_NAME, __version__)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Tracer from setup_tracing, or one from the global provider."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(INSTRUMENTATION_NAME)
    return _tracer


@contextmanager
def trace_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[trace.Span]:
    """Run a block inside a span; attributes whose value is None are skipped."""
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span
