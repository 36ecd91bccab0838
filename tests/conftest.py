"""Pytest configuration and fixtures for duckdb_access tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import duckdb
import pytest
from prometheus_client import CollectorRegistry

from duckdb_access.adapters.outbound.duckdb_connection_manager import DuckDBConnectionManager
from duckdb_access.application import DataAccess
from duckdb_access.domain.value_objects import DatabaseLocation
from duckdb_access.infrastructure.container import Container, reset_container
from duckdb_access.infrastructure.metrics import MetricsRegistry


CONFIG_YAML = """\
default:
  database:
    path: data
    name: warehouse.duckdb
  connection:
    threads: 2
production:
  database:
    path: /srv/shared/data
staging:
  inherits: production
  database:
    name: staging.duckdb
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    """Separate Prometheus registry so tests never share counters."""
    return CollectorRegistry(auto_describe=True)


@pytest.fixture
def metrics_registry(collector_registry: CollectorRegistry) -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    return MetricsRegistry(registry=collector_registry)


@pytest.fixture
def container() -> Generator[Container, None, None]:
    """Provide a fresh DI container for each test."""
    reset_container()
    c = Container()
    yield c
    c.clear()


@pytest.fixture
def database_file(temp_dir: Path) -> Path:
    """Create a small database with a trips table and a daily view."""
    path = temp_dir / "data" / "warehouse.duckdb"
    path.parent.mkdir(parents=True)

    conn = duckdb.connect(str(path))
    try:
        conn.execute(
            "CREATE TABLE trips (id INTEGER, day DATE, passengers INTEGER, fare DOUBLE)"
        )
        conn.execute(
            """
            INSERT INTO trips VALUES
                (1, DATE '2024-01-01', 1, 10.0),
                (2, DATE '2024-01-01', 4, 32.5),
                (3, DATE '2024-01-02', 2, 15.0),
                (4, DATE '2024-01-02', 5, 40.0),
                (5, DATE '2024-01-03', 1, 8.0)
            """
        )
        conn.execute(
            "CREATE VIEW trips_by_day AS "
            "SELECT day, count(*) AS trips, sum(fare) AS revenue FROM trips GROUP BY day"
        )
    finally:
        conn.close()
    return path


@pytest.fixture
def location(database_file: Path) -> DatabaseLocation:
    return DatabaseLocation(database_file.parent, database_file.name)


@pytest.fixture
def manager(
    location: DatabaseLocation, metrics_registry: MetricsRegistry
) -> DuckDBConnectionManager:
    return DuckDBConnectionManager(location, timeout=5.0, metrics=metrics_registry)


@pytest.fixture
def access(manager: DuckDBConnectionManager, metrics_registry: MetricsRegistry) -> DataAccess:
    return DataAccess(manager, metrics=metrics_registry)


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    """Write the sample environments file next to the data directory."""
    path = temp_dir / "config.yml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


@pytest.fixture
def memory_connection() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """In-memory connection with a small orders/customers schema."""
    conn = duckdb.connect(":memory:")
    conn.execute("CREATE TABLE customers (id INTEGER, name VARCHAR)")
    conn.execute("INSERT INTO customers VALUES (1, 'Ada'), (2, 'Grace'), (3, 'Edsger')")
    conn.execute("CREATE TABLE orders (id INTEGER, customer_id INTEGER, amount DOUBLE)")
    conn.execute(
        "INSERT INTO orders VALUES (10, 1, 20.0), (11, 1, 5.0), (12, 2, 12.5), (13, 3, 7.5)"
    )
    yield conn
    conn.close()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
