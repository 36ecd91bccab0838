"""Data access service - the entry point for working with a database.

Every call opens its own connection and closes it before returning:
reads use a read-only connection, writes the single read-write one. No
connection outlives the function that needed it, so several workers
(or processes) can read the same file while writes stay rare and brief.

Usage:
    from duckdb_access.application import DataAccess

    access = DataAccess.from_settings()
    result = access.query("SELECT count(*) FROM trips")

    with access.lazy("SELECT * FROM trips") as trips:
        top = trips.order("fare DESC").limit(10).collect()

    access.materialize_view("trips_by_day")
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator, Literal, Sequence

import duckdb
import structlog

from duckdb_access.application.lazy_query import LazyQuery, QueryResult, quote_identifier
from duckdb_access.domain.errors import MaterializationError, ObjectNotFoundError
from duckdb_access.infrastructure.config import Settings, get_settings
from duckdb_access.infrastructure.metrics import MetricsRegistry, get_metrics
from duckdb_access.infrastructure.tracing import trace_span
from duckdb_access.ports.inbound import ConnectionManager

if TYPE_CHECKING:
    import pandas as pd

logger = structlog.get_logger(__name__)

WriteMode = Literal["create", "replace", "append"]

ROW_COUNT_STATEMENTS = (
    duckdb.StatementType.INSERT,
    duckdb.StatementType.UPDATE,
    duckdb.StatementType.DELETE,
)


@dataclass(frozen=True)
class ColumnInfo:
    """One column as reported by DESCRIBE."""

    name: str
    type: str
    nullable: bool


def _params(params: Sequence[Any] | dict[str, Any] | None) -> Any:
    return params if params is not None else []


class DataAccess:
    """Function-scoped access to one DuckDB database."""

    def __init__(
        self,
        manager: ConnectionManager,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            manager: Hands out scoped connections.
            metrics: Metrics registry (global registry if None).
        """
        self._manager = manager
        self._metrics = metrics or get_metrics()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> DataAccess:
        """Build the service from runtime settings and the config file.

        The active environment comes from `settings.environment`
        (DUCKDB_ACCESS_ENVIRONMENT); relative database paths are taken
        relative to the config file's directory.
        """
        from duckdb_access.application.bootstrap import build_container
        from duckdb_access.infrastructure.container import Container

        container = build_container(settings or get_settings(), Container(), metrics)
        access = container.resolve(DataAccess)
        logger.info(
            "data_access_configured",
            environment=container.resolve(Settings).environment,
            database=access.manager.location.database,
        )
        return access

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @contextmanager
    def _timed(self, kind: str, sql: str | None = None) -> Iterator[None]:
        start = time.perf_counter()
        with trace_span(f"duckdb.{kind}", {"db.system": "duckdb", "db.statement": sql}):
            try:
                yield
            except Exception:
                self._metrics.queries_total.labels(kind=kind, status="error").inc()
                logger.warning("statement_failed", kind=kind, sql=sql)
                raise
            else:
                self._metrics.queries_total.labels(kind=kind, status="success").inc()
            finally:
                self._metrics.query_latency_seconds.labels(kind=kind).observe(
                    time.perf_counter() - start
                )

    # Reads ----------------------------------------------------------------

    def query(
        self,
        sql: str,
        params: Sequence[Any] | dict[str, Any] | None = None,
    ) -> QueryResult:
        """Run a query on a fresh read-only connection."""
        with self._timed("query", sql), self._manager.reader() as conn:
            cursor = conn.execute(sql, _params(params))
            columns = [d[0] for d in cursor.description or []]
            rows = cursor.fetchall() if columns else []
        return QueryResult(columns=columns, rows=rows)

    def query_frame(
        self,
        sql: str,
        params: Sequence[Any] | dict[str, Any] | None = None,
    ) -> pd.DataFrame:
        """Run a query on a fresh read-only connection into a DataFrame."""
        with self._timed("query", sql), self._manager.reader() as conn:
            return conn.execute(sql, _params(params)).df()

    @contextmanager
    def lazy(self, sql: str) -> Iterator[LazyQuery]:
        """Defer a SELECT on a read-only connection open for the block."""
        with self._manager.reader() as conn:
            yield LazyQuery.from_sql(conn, sql, read_only=True, metrics=self._metrics)

    @contextmanager
    def lazy_table(self, name: str, writable: bool = False) -> Iterator[LazyQuery]:
        """Defer reading a table or view.

        Args:
            name: Table or view name
            writable: Open the read-write connection instead, so the
                query can be computed into persistent tables
        """
        scope = self._manager.writer() if writable else self._manager.reader()
        with scope as conn:
            if not self._relation_exists(conn, name):
                raise ObjectNotFoundError("table", name)
            yield LazyQuery.from_table(
                conn, name, read_only=not writable, metrics=self._metrics
            )

    def list_tables(self) -> list[str]:
        """Names of the persistent tables in the database."""
        with self._manager.reader() as conn:
            rows = conn.execute(
                "SELECT table_name FROM duckdb_tables() "
                "WHERE NOT temporary AND NOT internal ORDER BY table_name"
            ).fetchall()
        return [row[0] for row in rows]

    def list_views(self) -> list[str]:
        """Names of the user-defined views in the database."""
        with self._manager.reader() as conn:
            rows = conn.execute(
                "SELECT view_name FROM duckdb_views() "
                "WHERE NOT temporary AND NOT internal ORDER BY view_name"
            ).fetchall()
        return [row[0] for row in rows]

    def table_exists(self, name: str) -> bool:
        """Whether a table or view with this name exists."""
        with self._manager.reader() as conn:
            return self._relation_exists(conn, name)

    def describe(self, name: str) -> list[ColumnInfo]:
        """Columns of a table or view.

        Raises:
            ObjectNotFoundError: If there is no such table or view
        """
        with self._manager.reader() as conn:
            if not self._relation_exists(conn, name):
                raise ObjectNotFoundError("table", name)
            rows = conn.execute(f"DESCRIBE {quote_identifier(name)}").fetchall()
        return [ColumnInfo(name=row[0], type=row[1], nullable=row[2] == "YES") for row in rows]

    @staticmethod
    def _relation_exists(conn: duckdb.DuckDBPyConnection, name: str) -> bool:
        row = conn.execute(
            "SELECT count(*) FROM information_schema.tables WHERE lower(table_name) = lower(?)",
            [name],
        ).fetchone()
        return bool(row and row[0])

    # Writes ---------------------------------------------------------------

    def execute(
        self,
        sql: str,
        params: Sequence[Any] | dict[str, Any] | None = None,
        create: bool | None = None,
    ) -> int | None:
        """Run a statement on the read-write connection.

        Returns:
            Rows changed for INSERT/UPDATE/DELETE, otherwise None
        """
        with self._timed("execute", sql), self._manager.writer(create=create) as conn:
            statements = conn.extract_statements(sql)
            cursor = conn.execute(sql, _params(params))
            if statements and statements[-1].type in ROW_COUNT_STATEMENTS:
                row = cursor.fetchone()
                return int(row[0]) if row else 0
        return None

    def execute_script(self, statements: Sequence[str], create: bool | None = None) -> None:
        """Run several statements in one transaction on the writer."""
        with self._timed("execute"), self._manager.writer(create=create) as conn:
            conn.begin()
            try:
                for statement in statements:
                    conn.execute(statement)
            except duckdb.Error:
                conn.rollback()
                raise
            conn.commit()

    def materialize_view(
        self,
        view: str,
        table: str | None = None,
        replace: bool = True,
    ) -> int:
        """Store the current result of a view in a table.

        Args:
            view: View to materialize
            table: Target table (defaults to `<view>_materialized`)
            replace: Overwrite the target if it already exists

        Returns:
            Number of rows in the new table

        Raises:
            MaterializationError: If the view is unknown or the table
                exists and replace is False
        """
        table = table or f"{view}_materialized"
        create = "CREATE OR REPLACE TABLE" if replace else "CREATE TABLE"
        statement = f"{create} {quote_identifier(table)} AS SELECT * FROM {quote_identifier(view)}"

        with self._timed("materialize", statement), self._manager.writer() as conn:
            is_view = conn.execute(
                "SELECT count(*) FROM duckdb_views() "
                "WHERE lower(view_name) = lower(?) AND NOT internal",
                [view],
            ).fetchone()
            if not is_view or not is_view[0]:
                raise MaterializationError(f"View not found: {view}")

            try:
                conn.execute(statement)
            except duckdb.CatalogException as e:
                raise MaterializationError(
                    f"Table {table} already exists; pass replace=True to overwrite"
                ) from e
            count = conn.execute(f"SELECT count(*) FROM {quote_identifier(table)}").fetchone()

        self._metrics.materializations_total.labels(target="table").inc()
        rows = int(count[0]) if count else 0
        logger.info("view_materialized", view=view, table=table, rows=rows)
        return rows

    def write_frame(
        self,
        name: str,
        frame: pd.DataFrame,
        mode: WriteMode = "create",
        create: bool | None = None,
    ) -> int:
        """Load a DataFrame into a table on the read-write connection.

        Args:
            name: Target table
            frame: Data to load
            mode: "create" fails if the table exists, "replace" overwrites
                it, "append" inserts into an existing table
            create: Allow creating a missing database file

        Returns:
            Number of rows written
        """
        if mode not in ("create", "replace", "append"):
            raise ValueError(f"Unknown write mode {mode!r}")

        source = "__incoming_frame"
        target = quote_identifier(name)
        if mode == "append":
            statement = f"INSERT INTO {target} SELECT * FROM {source}"
        else:
            verb = "CREATE OR REPLACE TABLE" if mode == "replace" else "CREATE TABLE"
            statement = f"{verb} {target} AS SELECT * FROM {source}"

        with self._timed("execute", statement), self._manager.writer(create=create) as conn:
            conn.register(source, frame)
            try:
                conn.execute(statement)
            finally:
                conn.unregister(source)

        logger.info("frame_written", table=name, rows=len(frame), mode=mode)
        return len(frame)
