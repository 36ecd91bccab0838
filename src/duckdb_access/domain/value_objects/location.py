"""Where a database lives: environment names and database file locations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, NewType

from duckdb_access.domain.errors import ConfigError


EnvironmentName = NewType("EnvironmentName", str)
"""Name of a configuration environment (top-level key of the config file)."""

DEFAULT_ENVIRONMENT = EnvironmentName("default")

MEMORY_DATABASE = ":memory:"


@dataclass(frozen=True, slots=True)
class DatabaseLocation:
    """A database file, split into the directory and the file name.

    Keeping the two apart mirrors the configuration file, where each
    environment points `path` at a different storage area while the
    file `name` usually stays the same.

    Attributes:
        path: Directory holding the database file
        name: File name, or ":memory:" for an in-memory database

    Example:
        >>> loc = DatabaseLocation(Path("/srv/data"), "warehouse.duckdb")
        >>> loc.file_path
        PosixPath('/srv/data/warehouse.duckdb')
    """

    path: Path
    name: str

    def __post_init__(self) -> None:
        """Validate the location."""
        if not self.name:
            raise ValueError("Database name must not be empty")
        if self.name != MEMORY_DATABASE and ("/" in self.name or "\\" in self.name):
            raise ValueError(
                f"Database name must be a bare file name, got {self.name!r}; "
                "put directories in 'path'"
            )
        object.__setattr__(self, "path", Path(self.path).expanduser())

    @classmethod
    def in_memory(cls) -> DatabaseLocation:
        """Location of a private in-memory database."""
        return cls(Path("."), MEMORY_DATABASE)

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Any],
        base_dir: Path | None = None,
    ) -> DatabaseLocation:
        """Build a location from a config section with `path` and `name` keys.

        Args:
            mapping: The resolved config section
            base_dir: Directory that relative paths are resolved against

        Raises:
            ConfigError: If a key is missing or the values are invalid
        """
        missing = [key for key in ("path", "name") if mapping.get(key) in (None, "")]
        if missing:
            raise ConfigError(f"Database section is missing: {', '.join(missing)}")

        path = Path(str(mapping["path"])).expanduser()
        if base_dir is not None and not path.is_absolute():
            path = Path(base_dir) / path

        try:
            return cls(path, str(mapping["name"]))
        except ValueError as e:
            raise ConfigError(str(e)) from e

    @property
    def is_memory(self) -> bool:
        return self.name == MEMORY_DATABASE

    @property
    def file_path(self) -> Path:
        """Full path of the database file."""
        return self.path / self.name

    @property
    def database(self) -> str:
        """The string handed to duckdb.connect()."""
        return MEMORY_DATABASE if self.is_memory else str(self.file_path)

    def exists(self) -> bool:
        """Whether the database file exists (always True in memory)."""
        return self.is_memory or self.file_path.is_file()

    def __str__(self) -> str:
        return self.database
