"""Integration tests for DuckDBConnectionManager against real files."""

from __future__ import annotations

from pathlib import Path

import duckdb
import pytest
from prometheus_client import CollectorRegistry

from duckdb_access.adapters.outbound.duckdb_connection_manager import DuckDBConnectionManager
from duckdb_access.domain.errors import DatabaseNotFoundError, GateTimeoutError
from duckdb_access.domain.value_objects import DatabaseLocation
from duckdb_access.infrastructure.metrics import MetricsRegistry


@pytest.mark.integration
class TestReader:
    """Tests for read-only connections."""

    def test_reads_existing_file(self, manager: DuckDBConnectionManager) -> None:
        with manager.reader() as conn:
            assert conn.execute("SELECT count(*) FROM trips").fetchone() == (5,)

    def test_reader_rejects_writes(self, manager: DuckDBConnectionManager) -> None:
        with manager.reader() as conn:
            with pytest.raises(duckdb.Error):
                conn.execute("DELETE FROM trips")

    def test_connection_closed_after_block(self, manager: DuckDBConnectionManager) -> None:
        with manager.reader() as conn:
            pass

        with pytest.raises(duckdb.Error):
            conn.execute("SELECT 1")

    def test_gate_released_after_block(self, manager: DuckDBConnectionManager) -> None:
        with manager.reader():
            assert manager.gate.stats().readers == 1

        assert manager.gate.stats().readers == 0

    def test_gate_released_on_error(self, manager: DuckDBConnectionManager) -> None:
        with pytest.raises(RuntimeError):
            with manager.reader():
                raise RuntimeError("boom")

        assert manager.gate.stats().readers == 0

    def test_nested_readers(self, manager: DuckDBConnectionManager) -> None:
        with manager.reader() as first, manager.reader() as second:
            assert first.execute("SELECT count(*) FROM trips").fetchone() == (5,)
            assert second.execute("SELECT max(id) FROM trips").fetchone() == (5,)
            assert manager.gate.stats().readers == 2

    def test_reader_never_creates_file(self, temp_dir: Path, metrics_registry: MetricsRegistry) -> None:
        location = DatabaseLocation(temp_dir / "nowhere", "missing.duckdb")
        manager = DuckDBConnectionManager(location, metrics=metrics_registry)

        with pytest.raises(DatabaseNotFoundError) as excinfo:
            with manager.reader():
                pass

        assert excinfo.value.file_path == location.file_path
        assert not location.file_path.exists()
        assert not location.path.exists()
        assert manager.gate.stats().readers == 0


@pytest.mark.integration
class TestWriter:
    """Tests for the read-write connection."""

    def test_writes_are_visible_to_readers(self, manager: DuckDBConnectionManager) -> None:
        with manager.writer() as conn:
            conn.execute("INSERT INTO trips VALUES (6, DATE '2024-01-03', 2, 12.0)")

        with manager.reader() as conn:
            assert conn.execute("SELECT count(*) FROM trips").fetchone() == (6,)

    def test_missing_file_without_create(self, temp_dir: Path, metrics_registry: MetricsRegistry) -> None:
        location = DatabaseLocation(temp_dir, "new.duckdb")
        manager = DuckDBConnectionManager(location, metrics=metrics_registry)

        with pytest.raises(DatabaseNotFoundError):
            with manager.writer():
                pass

        assert not location.file_path.exists()

    def test_create_per_call(self, temp_dir: Path, metrics_registry: MetricsRegistry) -> None:
        location = DatabaseLocation(temp_dir / "fresh", "new.duckdb")
        manager = DuckDBConnectionManager(location, metrics=metrics_registry)

        with manager.writer(create=True) as conn:
            conn.execute("CREATE TABLE t AS SELECT 42 AS answer")

        assert location.file_path.is_file()
        with manager.reader() as conn:
            assert conn.execute("SELECT answer FROM t").fetchone() == (42,)

    def test_create_default_from_constructor(
        self, temp_dir: Path, metrics_registry: MetricsRegistry
    ) -> None:
        location = DatabaseLocation(temp_dir, "auto.duckdb")
        manager = DuckDBConnectionManager(location, create=True, metrics=metrics_registry)

        with manager.writer():
            pass

        assert manager.exists()

    def test_writer_waits_for_no_readers(self, manager: DuckDBConnectionManager) -> None:
        slow = DuckDBConnectionManager(manager.location, gate=manager.gate, timeout=0.05)

        with manager.reader():
            with pytest.raises(GateTimeoutError):
                with slow.writer():
                    pass

        with slow.writer():
            assert manager.gate.stats().writer_active


@pytest.mark.integration
class TestGateTimeout:
    """Tests for timeouts on the access gate."""

    def test_reader_times_out_behind_writer(
        self,
        location: DatabaseLocation,
        metrics_registry: MetricsRegistry,
        collector_registry: CollectorRegistry,
    ) -> None:
        manager = DuckDBConnectionManager(location, timeout=0.05, metrics=metrics_registry)
        manager.gate.acquire_write()
        try:
            with pytest.raises(GateTimeoutError, match="read_only"):
                with manager.reader():
                    pass
        finally:
            manager.gate.release_write()

        errors = collector_registry.get_sample_value(
            "duckdb_access_connection_errors_total", {"mode": "read_only", "reason": "timeout"}
        )
        assert errors == 1.0


@pytest.mark.integration
class TestMetrics:
    """Connections are counted per mode."""

    def test_open_and_active_counts(
        self, manager: DuckDBConnectionManager, collector_registry: CollectorRegistry
    ) -> None:
        with manager.reader():
            active = collector_registry.get_sample_value(
                "duckdb_access_connections_active", {"mode": "read_only"}
            )
            assert active == 1.0

        with manager.writer():
            pass

        assert collector_registry.get_sample_value(
            "duckdb_access_connections_active", {"mode": "read_only"}
        ) == 0.0
        assert collector_registry.get_sample_value(
            "duckdb_access_connections_opened_total", {"mode": "read_only"}
        ) == 1.0
        assert collector_registry.get_sample_value(
            "duckdb_access_connections_opened_total", {"mode": "read_write"}
        ) == 1.0

    def test_not_found_counted(
        self,
        temp_dir: Path,
        metrics_registry: MetricsRegistry,
        collector_registry: CollectorRegistry,
    ) -> None:
        manager = DuckDBConnectionManager(
            DatabaseLocation(temp_dir, "missing.duckdb"), metrics=metrics_registry
        )

        with pytest.raises(DatabaseNotFoundError):
            with manager.reader():
                pass

        assert collector_registry.get_sample_value(
            "duckdb_access_connection_errors_total", {"mode": "read_only", "reason": "not_found"}
        ) == 1.0


@pytest.mark.integration
class TestMemoryDatabase:
    """In-memory databases live as long as the manager."""

    def test_state_survives_between_blocks(self, metrics_registry: MetricsRegistry) -> None:
        manager = DuckDBConnectionManager(DatabaseLocation.in_memory(), metrics=metrics_registry)
        try:
            with manager.writer() as conn:
                conn.execute("CREATE TABLE t AS SELECT 1 AS x")

            with manager.reader() as conn:
                assert conn.execute("SELECT x FROM t").fetchone() == (1,)
        finally:
            manager.close()

    def test_close_drops_database(self, metrics_registry: MetricsRegistry) -> None:
        manager = DuckDBConnectionManager(DatabaseLocation.in_memory(), metrics=metrics_registry)
        with manager.writer() as conn:
            conn.execute("CREATE TABLE t AS SELECT 1 AS x")

        manager.close()

        with manager.reader() as conn:
            with pytest.raises(duckdb.CatalogException):
                conn.execute("SELECT x FROM t")
        manager.close()

    def test_memory_always_exists(self, metrics_registry: MetricsRegistry) -> None:
        manager = DuckDBConnectionManager(DatabaseLocation.in_memory(), metrics=metrics_registry)

        assert manager.exists()
