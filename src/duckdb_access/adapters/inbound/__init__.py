"""Inbound adapters - the REST API over DataAccess."""

from duckdb_access.adapters.inbound.rest_api import create_app, run_server

__all__ = ["create_app", "run_server"]
