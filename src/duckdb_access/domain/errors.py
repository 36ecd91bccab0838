"""Exceptions raised by the DuckDB access library.

Every error derives from DuckDBAccessError so callers can catch the
library's failures without also catching engine bugs.
"""

from __future__ import annotations

from pathlib import Path


class DuckDBAccessError(Exception):
    """Base class for all library errors."""


class ConfigError(DuckDBAccessError):
    """Configuration document is missing, malformed, or incomplete."""


class DatabaseNotFoundError(DuckDBAccessError):
    """Database file does not exist and creating it was not requested.

    DuckDB silently creates an empty database when asked to open a path
    that does not exist. This error is raised before that can happen.
    """

    def __init__(self, file_path: Path | str) -> None:
        self.file_path = Path(file_path)
        super().__init__(
            f"Database file not found: {self.file_path} "
            "(pass create=True to create a new, empty database)"
        )


class GateTimeoutError(DuckDBAccessError):
    """The readers/writer gate could not be acquired in time."""

    def __init__(self, mode: str, timeout: float) -> None:
        self.mode = mode
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:.3f}s waiting for {mode} access")


class MaterializationError(DuckDBAccessError):
    """A lazy query could not be forced into a result or table."""


class ObjectNotFoundError(DuckDBAccessError, LookupError):
    """A table or view does not exist in the database."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.capitalize()} not found: {name}")
