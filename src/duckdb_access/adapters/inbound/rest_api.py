"""REST API adapter for read-only database access.

This module provides a FastAPI-based REST API that exposes a database
to dashboards and notebooks without handing out connections. Every
request opens its own read-only connection and closes it before the
response is sent.

Endpoints:
    GET /health - Health check
    GET /tables - List tables
    GET /tables/{name} - Describe a table
    POST /query - Run a read-only query (always row-limited)

Usage:
    from duckdb_access.adapters.inbound.rest_api import create_app
    from duckdb_access.application import DataAccess

    app = create_app(DataAccess.from_settings())
    # Run with uvicorn: uvicorn app:app --host 127.0.0.1 --port 8000
"""

from __future__ import annotations

from typing import Any

import duckdb
import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from duckdb_access import __version__
from duckdb_access.application import DataAccess
from duckdb_access.domain.errors import (
    DatabaseNotFoundError,
    GateTimeoutError,
    MaterializationError,
    ObjectNotFoundError,
)

logger = structlog.get_logger(__name__)

MAX_ROWS = 10_000


class QueryRequest(BaseModel):
    """Request model for a read-only query."""

    sql: str = Field(..., min_length=1, description="SELECT statement to run")
    limit: int = Field(1000, ge=1, le=MAX_ROWS, description="Maximum rows returned")


class QueryResponse(BaseModel):
    """Response model for a query."""

    columns: list[str] = Field(default_factory=list, description="Column names")
    rows: list[list[Any]] = Field(default_factory=list, description="Result rows")
    row_count: int = Field(0, description="Number of rows returned")


class ColumnResponse(BaseModel):
    """One column of a table."""

    name: str
    type: str
    nullable: bool


class TableResponse(BaseModel):
    """Response model for a table description."""

    name: str
    columns: list[ColumnResponse]


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    database: str = Field(..., description="Database served")


def create_app(access: DataAccess) -> FastAPI:
    """Create a FastAPI application serving one database.

    Args:
        access: The data access service to query through.

    Returns:
        A configured FastAPI application.
    """
    app = FastAPI(
        title="DuckDB Access API",
        description="Read-only queries against an embedded DuckDB database",
        version=__version__,
    )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check() -> HealthResponse:
        """Healthy when the database file exists."""
        return HealthResponse(
            status="healthy" if access.manager.exists() else "unhealthy",
            version=__version__,
            database=access.manager.location.database,
        )

    @app.get("/tables", response_model=list[str], tags=["Tables"])
    def list_tables() -> list[str]:
        try:
            return access.list_tables()
        except (DatabaseNotFoundError, GateTimeoutError) as e:
            raise HTTPException(status_code=503, detail=str(e)) from e

    @app.get("/tables/{name}", response_model=TableResponse, tags=["Tables"])
    def describe_table(name: str) -> TableResponse:
        try:
            columns = access.describe(name)
        except ObjectNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except (DatabaseNotFoundError, GateTimeoutError) as e:
            raise HTTPException(status_code=503, detail=str(e)) from e
        return TableResponse(
            name=name,
            columns=[ColumnResponse(name=c.name, type=c.type, nullable=c.nullable) for c in columns],
        )

    @app.post("/query", response_model=QueryResponse, tags=["SQL"])
    def run_query(request: QueryRequest) -> QueryResponse:
        """Run a SELECT; the result is limited before it is fetched."""
        try:
            with access.lazy(request.sql) as query:
                result = query.limit(request.limit).collect()
        except (DatabaseNotFoundError, GateTimeoutError) as e:
            raise HTTPException(status_code=503, detail=str(e)) from e
        except (MaterializationError, ValueError) as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except duckdb.Error as e:
            logger.info("query_rejected", error=str(e))
            raise HTTPException(status_code=400, detail=str(e)) from e

        return QueryResponse(
            columns=result.columns,
            rows=[list(row) for row in result.rows],
            row_count=len(result),
        )

    return app


def run_server(
    access: DataAccess,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Run the REST API server.

    Args:
        access: The data access service.
        host: Host to bind to.
        port: Port to bind to.
    """
    import uvicorn

    uvicorn.run(create_app(access), host=host, port=port)


if __name__ == "__main__":
    from duckdb_access.application.bootstrap import configure

    run_server(configure())
