"""Application layer - services used by callers of the library."""

from duckdb_access.application.data_access import ColumnInfo, DataAccess
from duckdb_access.application.data_directory import (
    DataLinkStatus,
    data_link_status,
    link_data_directory,
    resolve_data_directory,
)
from duckdb_access.application.lazy_query import LazyQuery, QueryResult, quote_identifier

__all__ = [
    "ColumnInfo",
    "DataAccess",
    "DataLinkStatus",
    "LazyQuery",
    "QueryResult",
    "data_link_status",
    "link_data_directory",
    "quote_identifier",
    "resolve_data_directory",
]
