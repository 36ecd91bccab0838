"""Wiring: settings -> config document -> connection manager -> DataAccess."""

from __future__ import annotations

from duckdb_access.adapters.outbound.duckdb_connection_manager import DuckDBConnectionManager
from duckdb_access.adapters.outbound.yaml_config_source import load_config_document
from duckdb_access.application.data_access import DataAccess
from duckdb_access.domain.entities import ConfigDocument
from duckdb_access.domain.value_objects import DatabaseLocation
from duckdb_access.infrastructure.config import Settings, get_settings
from duckdb_access.infrastructure.container import Container, get_container
from duckdb_access.infrastructure.logging import setup_logging
from duckdb_access.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from duckdb_access.infrastructure.tracing import setup_tracing


def build_container(
    settings: Settings | None = None,
    container: Container | None = None,
    metrics: MetricsRegistry | None = None,
) -> Container:
    """Register every component; nothing is opened until resolved."""
    container = container or get_container()
    settings = settings or get_settings()

    container.register_singleton(Settings, settings)
    container.register_singleton(MetricsRegistry, metrics or get_metrics())
    container.register_factory(
        ConfigDocument,
        lambda c: load_config_document(c.resolve(Settings).config_file),
    )
    container.register_factory(
        DatabaseLocation,
        lambda c: c.resolve(ConfigDocument).database_location(
            c.resolve(Settings).environment,
            section=c.resolve(Settings).section,
            base_dir=c.resolve(Settings).config_dir,
        ),
    )
    container.register_factory(DuckDBConnectionManager, _connection_manager)
    container.register_factory(
        DataAccess,
        lambda c: DataAccess(
            c.resolve(DuckDBConnectionManager),
            metrics=c.resolve(MetricsRegistry),
        ),
    )
    return container


def _connection_manager(c: Container) -> DuckDBConnectionManager:
    connection = c.resolve(Settings).connection
    return DuckDBConnectionManager(
        c.resolve(DatabaseLocation),
        timeout=connection.timeout_seconds,
        create=connection.create_missing,
        duckdb_config=connection.duckdb_config(),
        metrics=c.resolve(MetricsRegistry),
    )


def configure(settings: Settings | None = None, serve_metrics: bool = False) -> DataAccess:
    """Set up observability and return a ready DataAccess for the active environment.

    Args:
        settings: Runtime settings (read from the environment if None)
        serve_metrics: Also start the Prometheus scrape endpoint
    """
    settings = settings or get_settings()
    observability = settings.observability

    setup_logging(observability.log_level, observability.log_format)
    if observability.otel_endpoint:
        setup_tracing(observability.otel_service_name, observability.otel_endpoint)
    metrics = setup_metrics(observability.metrics_port) if serve_metrics else None

    return build_container(settings, metrics=metrics).resolve(DataAccess)
