"""Config Source port.

Outbound port for reading the raw environments document. Adapters may
read YAML files, environment variables, or anything else that yields a
mapping of environment name to settings.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol


class ConfigSource(Protocol):
    """Protocol for loading a configuration document."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable origin used in error messages (e.g. file path)."""
        ...

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load the raw document.

        Returns:
            Mapping of environment name to settings (empty if no content).

        Raises:
            ConfigError: If the source is missing or cannot be parsed.
        """
        ...
