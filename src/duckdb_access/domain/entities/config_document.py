"""Environment-aware configuration document.

A configuration file holds one mapping per named environment. The
`default` environment is the base for every other one; an environment
only lists what differs from it:

    default:
      database:
        path: data
        name: warehouse.duckdb
    production:
      database:
        path: /srv/shared/data
    staging:
      inherits: production
      database:
        name: staging.duckdb

Resolution rules:
    1. Start from `default`.
    2. Apply each parent named by `inherits` (resolved recursively).
    3. Apply the environment's own keys.
    Nested mappings merge key by key; scalars and lists are replaced.

Asking for an environment that is not in the document falls back to
`default` with a warning, which is how the configuration convention
behaves on the analysis side as well.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Iterable, Mapping

import structlog

from duckdb_access.domain.errors import ConfigError
from duckdb_access.domain.value_objects import (
    DEFAULT_ENVIRONMENT,
    DatabaseLocation,
    EnvironmentName,
)

logger = structlog.get_logger(__name__)

INHERITS_KEY = "inherits"

_MISSING = object()


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge `override` onto a copy of `base`.

    Nested mappings are merged recursively; any other value in
    `override` replaces the value in `base`.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigDocument:
    """A parsed configuration file with named environments."""

    def __init__(self, data: Mapping[str, Any] | None, source: str = "<memory>") -> None:
        """Validate the document shape.

        Args:
            data: Parsed document (top-level environment -> mapping)
            source: Description of where the data came from, for messages

        Raises:
            ConfigError: If the top level or an environment is not a mapping
        """
        self._source = source
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"{source}: top level must map environment names to settings, "
                f"got {type(data).__name__}"
            )

        self._environments: dict[str, dict[str, Any]] = {}
        for name, values in data.items():
            if values is None:
                values = {}
            if not isinstance(values, Mapping):
                raise ConfigError(
                    f"{source}: environment {name!r} must be a mapping, "
                    f"got {type(values).__name__}"
                )
            self._environments[str(name)] = dict(values)

    @property
    def source(self) -> str:
        return self._source

    @property
    def environments(self) -> list[EnvironmentName]:
        """Environment names in document order."""
        return [EnvironmentName(name) for name in self._environments]

    def has_environment(self, name: str) -> bool:
        return name in self._environments

    def resolve(self, name: str = DEFAULT_ENVIRONMENT) -> dict[str, Any]:
        """Return the fully merged settings of an environment.

        Args:
            name: Environment to resolve

        Returns:
            A new dict; changing it does not affect the document

        Raises:
            ConfigError: On inheritance cycles, unknown parents, or when
                neither the environment nor `default` exist
        """
        if name not in self._environments:
            if DEFAULT_ENVIRONMENT not in self._environments:
                raise ConfigError(
                    f"{self._source}: environment {name!r} not found and no "
                    f"{DEFAULT_ENVIRONMENT!r} environment to fall back to"
                )
            logger.warning(
                "config_environment_missing",
                environment=name,
                fallback=DEFAULT_ENVIRONMENT,
                source=self._source,
            )
            name = DEFAULT_ENVIRONMENT

        return self._resolve(name, chain=())

    def _resolve(self, name: str, chain: tuple[str, ...]) -> dict[str, Any]:
        if name in chain:
            cycle = " -> ".join((*chain, name))
            raise ConfigError(f"{self._source}: inheritance cycle: {cycle}")
        if name not in self._environments:
            raise ConfigError(
                f"{self._source}: environment {chain[-1]!r} inherits unknown "
                f"environment {name!r}"
            )

        own = dict(self._environments[name])
        parents = self._parents(name, own.pop(INHERITS_KEY, None))

        if name == DEFAULT_ENVIRONMENT:
            resolved: dict[str, Any] = {}
        else:
            resolved = copy.deepcopy(self._environments.get(DEFAULT_ENVIRONMENT, {}))
            resolved.pop(INHERITS_KEY, None)

        for parent in parents:
            resolved = deep_merge(resolved, self._resolve(parent, (*chain, name)))

        return deep_merge(resolved, own)

    def _parents(self, name: str, inherits: Any) -> list[str]:
        if inherits is None:
            return []
        if isinstance(inherits, str):
            return [inherits]
        if isinstance(inherits, Iterable) and all(isinstance(p, str) for p in inherits):
            return list(inherits)
        raise ConfigError(
            f"{self._source}: {name!r}.{INHERITS_KEY} must be a name or a list of names"
        )

    def get(
        self,
        key: str,
        environment: str = DEFAULT_ENVIRONMENT,
        default: Any = _MISSING,
    ) -> Any:
        """Look up a dotted key (e.g. "database.path") in an environment.

        Raises:
            ConfigError: If the key is missing and no default was given
        """
        value: Any = self.resolve(environment)
        for part in key.split("."):
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            elif default is not _MISSING:
                return default
            else:
                raise ConfigError(
                    f"{self._source}: key {key!r} not found in environment {environment!r}"
                )
        return value

    def database_location(
        self,
        environment: str = DEFAULT_ENVIRONMENT,
        section: str = "database",
        base_dir: Path | None = None,
    ) -> DatabaseLocation:
        """Build the database location configured for an environment.

        Args:
            environment: Environment to resolve
            section: Key of the mapping holding `path` and `name`
            base_dir: Directory that relative paths are resolved against
        """
        values = self.get(section, environment)
        if not isinstance(values, Mapping):
            raise ConfigError(
                f"{self._source}: {section!r} in environment {environment!r} must be a mapping"
            )
        return DatabaseLocation.from_mapping(values, base_dir=base_dir)

    def __repr__(self) -> str:
        return f"ConfigDocument(source={self._source!r}, environments={self.environments!r})"
