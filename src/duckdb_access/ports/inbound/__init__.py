"""Inbound ports - API contracts used by the application layer."""

from duckdb_access.ports.inbound.connection_manager import ConnectionManager

__all__ = ["ConnectionManager"]
