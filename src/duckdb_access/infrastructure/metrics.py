"""Prometheus metrics for database access."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all database access metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Connection metrics
        self.connections_opened_total = Counter(
            "duckdb_access_connections_opened_total",
            "Total number of connections opened",
            ["mode"],  # read_only, read_write
            registry=self._registry,
        )

        self.connections_active = Gauge(
            "duckdb_access_connections_active",
            "Number of currently open connections",
            ["mode"],
            registry=self._registry,
        )

        self.connection_errors_total = Counter(
            "duckdb_access_connection_errors_total",
            "Total connection attempts that failed",
            ["mode", "reason"],  # reason: not_found, timeout, engine
            registry=self._registry,
        )

        self.gate_wait_seconds = Histogram(
            "duckdb_access_gate_wait_seconds",
            "Time spent waiting for the readers/writer gate",
            ["mode"],
            buckets=(0.0001, 0.001, 0.01, 0.1, 0.5, 1.0, 5.0, 30.0),
            registry=self._registry,
        )

        # Query metrics
        self.query_latency_seconds = Histogram(
            "duckdb_access_query_latency_seconds",
            "Query latency in seconds",
            ["kind"],  # query, execute, materialize
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        self.queries_total = Counter(
            "duckdb_access_queries_total",
            "Total number of statements executed",
            ["kind", "status"],  # status: success, error
            registry=self._registry,
        )

        # Lazy query metrics
        self.materializations_total = Counter(
            "duckdb_access_materializations_total",
            "Total lazy queries forced into results or tables",
            ["target"],  # temp_table, table, rows, frame
            registry=self._registry,
        )

        self.info = Info(
            "duckdb_access",
            "DuckDB access library information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    # Collectors can only be registered once on the default registry
    if registry is not None or _metrics is None:
        _metrics = MetricsRegistry(registry)

    import duckdb

    from duckdb_access import __version__
    _metrics.info.info({
        "version": __version__,
        "duckdb_version": duckdb.__version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
