"""DuckDB adapter for the connection manager port.

Hands out short-lived connections to one database file. Reads go
through read-only connections, opened per call and closed right after;
writes go through a single read-write connection that is only open
while the writer block runs.

Opening a path that does not exist would make DuckDB create an empty
database there, which usually means a typo in the configuration rather
than a wish for a new database. The manager checks first and raises
DatabaseNotFoundError unless creation was asked for.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

import duckdb
import structlog

from duckdb_access.domain.errors import DatabaseNotFoundError, GateTimeoutError
from duckdb_access.domain.services import AccessGate
from duckdb_access.domain.value_objects import AccessMode, DatabaseLocation
from duckdb_access.infrastructure.metrics import MetricsRegistry, get_metrics
from duckdb_access.infrastructure.tracing import trace_span

logger = structlog.get_logger(__name__)


class DuckDBConnectionManager:
    """Scoped DuckDB connections for one database location.

    In-memory databases vanish when their last connection closes, so for
    those the manager keeps one root connection and hands out cursors on
    it; close() drops the database.
    """

    def __init__(
        self,
        location: DatabaseLocation,
        gate: AccessGate | None = None,
        timeout: float | None = None,
        create: bool = False,
        duckdb_config: dict[str, str] | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            location: Database to open.
            gate: Readers/writer gate; share one per file when several
                managers point at the same database.
            timeout: Seconds to wait for the gate (None waits forever).
            create: Default for writer(create=...).
            duckdb_config: Extra options for duckdb.connect(config=...).
            metrics: Metrics registry (global registry if None).
        """
        self._location = location
        self._gate = gate or AccessGate()
        self._timeout = timeout
        self._create = create
        self._duckdb_config = dict(duckdb_config or {})
        self._metrics = metrics or get_metrics()

        self._memory_lock = threading.Lock()
        self._memory_root: duckdb.DuckDBPyConnection | None = None

    @property
    def location(self) -> DatabaseLocation:
        return self._location

    @property
    def gate(self) -> AccessGate:
        return self._gate

    def exists(self) -> bool:
        return self._location.exists()

    @contextmanager
    def reader(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Open a read-only connection for one unit of work."""
        with self._scoped(AccessMode.READ_ONLY, create=False) as conn:
            yield conn

    @contextmanager
    def writer(self, create: bool | None = None) -> Iterator[duckdb.DuckDBPyConnection]:
        """Open the read-write connection for one unit of work."""
        allow_create = self._create if create is None else create
        with self._scoped(AccessMode.READ_WRITE, create=allow_create) as conn:
            yield conn

    def close(self) -> None:
        """Drop the in-memory database, if one was opened."""
        with self._memory_lock:
            if self._memory_root is not None:
                self._memory_root.close()
                self._memory_root = None
                logger.debug("memory_database_closed")

    @contextmanager
    def _scoped(self, mode: AccessMode, create: bool) -> Iterator[duckdb.DuckDBPyConnection]:
        database = self._location.database

        with trace_span(
            "duckdb.connection",
            {"db.system": "duckdb", "db.name": database, "duckdb.mode": mode.value},
        ):
            try:
                waited = (
                    self._gate.acquire_read(self._timeout)
                    if mode.is_read_only
                    else self._gate.acquire_write(self._timeout)
                )
            except GateTimeoutError:
                self._metrics.connection_errors_total.labels(
                    mode=mode.value, reason="timeout"
                ).inc()
                logger.warning("gate_timeout", mode=mode.value, database=database)
                raise
            self._metrics.gate_wait_seconds.labels(mode=mode.value).observe(waited)

            try:
                conn = self._open(mode, create)
                self._metrics.connections_opened_total.labels(mode=mode.value).inc()
                self._metrics.connections_active.labels(mode=mode.value).inc()
                logger.debug("connection_opened", mode=mode.value, database=database)
                try:
                    yield conn
                finally:
                    conn.close()
                    self._metrics.connections_active.labels(mode=mode.value).dec()
                    logger.debug("connection_closed", mode=mode.value, database=database)
            finally:
                if mode.is_read_only:
                    self._gate.release_read()
                else:
                    self._gate.release_write()

    def _open(self, mode: AccessMode, create: bool) -> duckdb.DuckDBPyConnection:
        if self._location.is_memory:
            return self._memory_cursor()

        file_path = self._location.file_path
        if not file_path.is_file():
            if mode.is_read_only or not create:
                self._metrics.connection_errors_total.labels(
                    mode=mode.value, reason="not_found"
                ).inc()
                raise DatabaseNotFoundError(file_path)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info("database_created", database=str(file_path))

        try:
            return duckdb.connect(
                str(file_path),
                read_only=mode.is_read_only,
                config=self._duckdb_config,
            )
        except duckdb.Error:
            self._metrics.connection_errors_total.labels(mode=mode.value, reason="engine").inc()
            logger.exception("connection_failed", mode=mode.value, database=str(file_path))
            raise

    def _memory_cursor(self) -> duckdb.DuckDBPyConnection:
        with self._memory_lock:
            if self._memory_root is None:
                self._memory_root = duckdb.connect(":memory:", config=self._duckdb_config)
                logger.debug("memory_database_opened")
            return self._memory_root.cursor()

    def __repr__(self) -> str:
        return f"DuckDBConnectionManager(location={self._location.database!r})"
