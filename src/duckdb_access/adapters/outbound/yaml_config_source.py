"""YAML file adapter for the config source port."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from duckdb_access.domain.entities import ConfigDocument
from duckdb_access.domain.errors import ConfigError
from duckdb_access.ports.outbound import ConfigSource


class YamlConfigSource:
    """Reads the environments document from a YAML file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def description(self) -> str:
        return str(self._path)

    def load(self) -> dict[str, Any]:
        if not self._path.is_file():
            raise ConfigError(f"Config file not found: {self._path}")

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self._path}: {e}") from e

        return data or {}


def read_config_document(source: ConfigSource) -> ConfigDocument:
    """Load any config source into a ConfigDocument."""
    return ConfigDocument(source.load(), source=source.description)


def load_config_document(path: str | Path) -> ConfigDocument:
    """Read a YAML config file into a ConfigDocument."""
    return read_config_document(YamlConfigSource(path))
