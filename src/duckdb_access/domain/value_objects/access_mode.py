"""Connection access modes."""

from __future__ import annotations

from enum import Enum


class AccessMode(str, Enum):
    """How a connection may touch the database file.

    DuckDB allows many read-only handles or exactly one read-write
    handle on a file at any moment.
    """

    READ_ONLY = "read_only"
    READ_WRITE = "read_write"

    @property
    def is_read_only(self) -> bool:
        return self is AccessMode.READ_ONLY
