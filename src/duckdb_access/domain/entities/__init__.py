"""Domain entities."""

from duckdb_access.domain.entities.config_document import ConfigDocument, deep_merge

__all__ = ["ConfigDocument", "deep_merge"]
