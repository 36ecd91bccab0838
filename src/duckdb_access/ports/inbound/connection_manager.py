"""Connection Manager port.

This inbound port defines how the application obtains connections to a
database file. Connections are short-lived: callers open one per unit
of work inside a `with` block, and it is closed when the block exits.

The connection manager is responsible for:
- Refusing to open a database file that does not exist
- Serializing the single read-write connection against readers
- Closing every connection it hands out
"""

from __future__ import annotations

from abc import abstractmethod
from contextlib import AbstractContextManager
from typing import Protocol

import duckdb

from duckdb_access.domain.value_objects import DatabaseLocation


class ConnectionManager(Protocol):
    """Protocol for scoped access to one database.

    Thread Safety:
        Implementations must allow concurrent readers from several
        threads; each reader gets its own connection.
    """

    @property
    @abstractmethod
    def location(self) -> DatabaseLocation:
        """The database this manager opens."""
        ...

    @abstractmethod
    def exists(self) -> bool:
        """Whether the database file exists."""
        ...

    @abstractmethod
    def reader(self) -> AbstractContextManager[duckdb.DuckDBPyConnection]:
        """Open a read-only connection for the duration of a `with` block.

        Raises:
            DatabaseNotFoundError: If the database file does not exist.
            GateTimeoutError: If a writer kept the database too long.
        """
        ...

    @abstractmethod
    def writer(
        self, create: bool | None = None
    ) -> AbstractContextManager[duckdb.DuckDBPyConnection]:
        """Open the read-write connection for the duration of a `with` block.

        Args:
            create: Allow creating a missing database file. None uses the
                manager's default.

        Raises:
            DatabaseNotFoundError: If the file is missing and creating it
                was not allowed.
            GateTimeoutError: If readers kept the database too long.
        """
        ...
