"""
DuckDB Access - disciplined access to embedded DuckDB database files

Environment-aware configuration, short-lived read-only connections,
a single guarded read-write connection, and lazy queries that only run
when they are materialized.
"""

__version__ = "0.1.0"
__author__ = "duckdb-access contributors"
