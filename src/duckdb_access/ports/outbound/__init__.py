"""Outbound ports - contracts for external resources."""

from duckdb_access.ports.outbound.config_source import ConfigSource

__all__ = ["ConfigSource"]
