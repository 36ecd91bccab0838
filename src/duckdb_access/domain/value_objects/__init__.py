"""Value objects for the database access domain.

Exports:
    - AccessMode: read-only or read-write connection mode
    - EnvironmentName, DEFAULT_ENVIRONMENT: configuration environment names
    - DatabaseLocation: directory plus file name of a database
"""

from duckdb_access.domain.value_objects.access_mode import AccessMode
from duckdb_access.domain.value_objects.location import (
    DEFAULT_ENVIRONMENT,
    MEMORY_DATABASE,
    DatabaseLocation,
    EnvironmentName,
)

__all__ = [
    "AccessMode",
    "DEFAULT_ENVIRONMENT",
    "MEMORY_DATABASE",
    "DatabaseLocation",
    "EnvironmentName",
]
