"""Outbound adapters for DuckDB files and YAML configuration."""

from duckdb_access.adapters.outbound.duckdb_connection_manager import DuckDBConnectionManager
from duckdb_access.adapters.outbound.yaml_config_source import (
    YamlConfigSource,
    load_config_document,
    read_config_document,
)

__all__ = [
    "DuckDBConnectionManager",
    "YamlConfigSource",
    "load_config_document",
    "read_config_document",
]
