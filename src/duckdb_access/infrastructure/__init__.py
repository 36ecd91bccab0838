"""Infrastructure layer - cross-cutting concerns."""

from duckdb_access.infrastructure.config import Settings, get_settings
from duckdb_access.infrastructure.logging import setup_logging, get_logger
from duckdb_access.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from duckdb_access.infrastructure.tracing import setup_tracing, get_tracer, trace_span

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
