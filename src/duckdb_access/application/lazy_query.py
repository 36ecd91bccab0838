"""Lazy queries over DuckDB relations.

A LazyQuery describes a query without running it. Builder methods
(filter, select, order, ...) return new LazyQuery objects; the engine
only does work when the query is materialized:

    collect()   -> QueryResult with all rows in memory
    to_frame()  -> pandas DataFrame
    count()     -> number of rows
    compute()   -> temporary (or persistent) table, returned as a new
                   LazyQuery so further steps read the stored result

A LazyQuery is bound to the connection it was built on. Once that
connection closes the query can no longer run, so materialize before
leaving the `with` block that opened it.

Example:
    with access.lazy_table("trips") as trips:
        busy = trips.filter("passengers > 3").select("day", "fare")
        daily = busy.aggregate("day, sum(fare) AS revenue", "day").compute()
        result = daily.order("day").collect()
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator

import duckdb
import structlog

from duckdb_access.domain.errors import MaterializationError
from duckdb_access.infrastructure.metrics import MetricsRegistry, get_metrics

if TYPE_CHECKING:
    import pandas as pd

logger = structlog.get_logger(__name__)

JOIN_TYPES = ("inner", "left", "right", "outer", "semi", "anti")


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use in SQL text."""
    return '"' + name.replace('"', '""') + '"'


@dataclass
class QueryResult:
    """Rows fetched from a query, with their column names."""

    columns: list[str]
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        return iter(self.rows)

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def scalar(self) -> Any:
        """The first column of the first row (None when there are no rows)."""
        return self.rows[0][0] if self.rows else None


@contextmanager
def _connected() -> Iterator[None]:
    """Turn use of a closed connection into a MaterializationError."""
    try:
        yield
    except duckdb.ConnectionException as e:
        raise MaterializationError(
            "Lazy query used after its connection was closed; "
            "materialize it inside the block that opened the connection"
        ) from e


class LazyQuery:
    """Deferred query bound to an open DuckDB connection."""

    def __init__(
        self,
        relation: duckdb.DuckDBPyRelation,
        connection: duckdb.DuckDBPyConnection,
        read_only: bool = True,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._relation = relation
        self._connection = connection
        self._read_only = read_only
        self._metrics = metrics or get_metrics()

    @classmethod
    def from_sql(
        cls,
        connection: duckdb.DuckDBPyConnection,
        sql: str,
        read_only: bool = True,
        metrics: MetricsRegistry | None = None,
    ) -> LazyQuery:
        """Wrap a SELECT statement without running it.

        `connection.sql()` executes anything that is not a query right
        away, so the text is parsed first and only a single SELECT is
        accepted.

        Raises:
            ValueError: If `sql` is not exactly one SELECT statement
            duckdb.ParserException: If `sql` does not parse
        """
        statements = connection.extract_statements(sql)
        if len(statements) != 1 or statements[0].type != duckdb.StatementType.SELECT:
            raise ValueError(f"Not a query: expected a single SELECT statement, got {sql!r}")
        return cls(connection.sql(sql), connection, read_only=read_only, metrics=metrics)

    @classmethod
    def from_table(
        cls,
        connection: duckdb.DuckDBPyConnection,
        name: str,
        read_only: bool = True,
        metrics: MetricsRegistry | None = None,
    ) -> LazyQuery:
        """Wrap a table or view by name."""
        return cls(connection.table(name), connection, read_only=read_only, metrics=metrics)

    def _wrap(self, relation: duckdb.DuckDBPyRelation) -> LazyQuery:
        return LazyQuery(relation, self._connection, self._read_only, self._metrics)

    def _derive(
        self, build: Callable[[duckdb.DuckDBPyRelation], duckdb.DuckDBPyRelation]
    ) -> LazyQuery:
        with _connected():
            return self._wrap(build(self._relation))

    @property
    def relation(self) -> duckdb.DuckDBPyRelation:
        return self._relation

    @property
    def read_only(self) -> bool:
        return self._read_only

    # Builders -----------------------------------------------------------

    def filter(self, condition: str) -> LazyQuery:
        return self._derive(lambda r: r.filter(condition))

    def select(self, *columns: str) -> LazyQuery:
        if not columns:
            raise ValueError("select() needs at least one column or expression")
        return self._derive(lambda r: r.project(", ".join(columns)))

    def order(self, expression: str) -> LazyQuery:
        return self._derive(lambda r: r.order(expression))

    def limit(self, n: int, offset: int = 0) -> LazyQuery:
        if n < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")
        return self._derive(lambda r: r.limit(n, offset))

    def aggregate(self, expression: str, group_by: str | None = None) -> LazyQuery:
        if group_by:
            return self._derive(lambda r: r.aggregate(expression, group_by))
        return self._derive(lambda r: r.aggregate(expression))

    def distinct(self) -> LazyQuery:
        return self._derive(lambda r: r.distinct())

    def alias(self, name: str) -> LazyQuery:
        """Name this query so join conditions can refer to it."""
        return self._derive(lambda r: r.set_alias(name))

    def join(self, other: LazyQuery, condition: str, how: str = "inner") -> LazyQuery:
        if how not in JOIN_TYPES:
            raise ValueError(f"Unknown join type {how!r}; expected one of {JOIN_TYPES}")
        if other._connection is not self._connection:
            raise ValueError("Cannot join lazy queries from different connections")
        return self._derive(lambda r: r.join(other._relation, condition, how=how))

    # Inspection (no execution) -------------------------------------------

    @property
    def sql(self) -> str:
        with _connected():
            return self._relation.sql_query()

    @property
    def columns(self) -> list[str]:
        with _connected():
            return list(self._relation.columns)

    def explain(self) -> str:
        return self._run("explain", self._relation.explain)

    # Materialization ----------------------------------------------------

    def collect(self) -> QueryResult:
        """Run the query and fetch every row."""
        rows = self._run("rows", self._relation.fetchall)
        return QueryResult(columns=self.columns, rows=rows)

    def to_frame(self) -> pd.DataFrame:
        """Run the query into a pandas DataFrame."""
        return self._run("frame", self._relation.df)

    def count(self) -> int:
        row = self._run("rows", lambda: self._relation.aggregate("count(*)").fetchone())
        return int(row[0]) if row else 0

    def compute(
        self,
        name: str | None = None,
        temporary: bool = True,
        replace: bool = False,
    ) -> LazyQuery:
        """Store the query result in a table and continue from there.

        Args:
            name: Table name (a unique `lazy_<hex>` name when omitted)
            temporary: Temporary tables live only as long as the
                connection; persistent ones need a read-write connection
            replace: Overwrite an existing table of the same name

        Returns:
            A LazyQuery reading the new table

        Raises:
            MaterializationError: On read-only connections for persistent
                tables, name clashes without replace, or engine errors
        """
        if not temporary and self._read_only:
            raise MaterializationError(
                "Persistent tables need a read-write connection; "
                "use compute(temporary=True) or open a writer"
            )

        name = name or f"lazy_{uuid.uuid4().hex[:12]}"
        source = f"__lazy_src_{uuid.uuid4().hex[:12]}"
        create = "CREATE OR REPLACE" if replace else "CREATE"
        kind = "TEMP TABLE" if temporary else "TABLE"
        target = "temp_table" if temporary else "table"

        def materialize() -> duckdb.DuckDBPyRelation:
            # A registered relation lives in the connection, not the catalog,
            # so this also works on read-only connections
            self._connection.register(source, self._relation)
            try:
                self._connection.execute(
                    f"{create} {kind} {quote_identifier(name)} AS "
                    f"SELECT * FROM {quote_identifier(source)}"
                )
            finally:
                self._connection.unregister(source)
            return self._connection.table(name)

        relation = self._run(target, materialize)
        logger.debug("lazy_query_computed", table=name, temporary=temporary)
        return self._wrap(relation)

    def _run(self, target: str, func):
        try:
            with _connected():
                result = func()
        except duckdb.Error as e:
            logger.warning("lazy_query_failed", target=target, error=str(e))
            raise MaterializationError(f"Could not materialize query: {e}") from e
        if target != "explain":
            self._metrics.materializations_total.labels(target=target).inc()
        return result

    def __repr__(self) -> str:
        return f"LazyQuery(read_only={self._read_only}, connection={id(self._connection):#x})"
