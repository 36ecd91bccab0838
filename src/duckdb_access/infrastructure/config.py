"""Runtime settings for DuckDB access."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectionConfig(BaseModel):
    """Connection behaviour."""

    timeout_seconds: float | None = Field(
        default=30.0, ge=0, description="Max wait for the access gate (None waits forever)"
    )
    threads: int | None = Field(default=None, ge=1, description="DuckDB worker threads")
    memory_limit: str | None = Field(default=None, description="DuckDB memory limit, e.g. '4GB'")
    create_missing: bool = Field(
        default=False, description="Allow the writer to create a missing database file"
    )

    def duckdb_config(self) -> dict[str, str]:
        """Return the options passed to duckdb.connect(config=...)."""
        options: dict[str, str] = {}
        if self.threads is not None:
            options["threads"] = str(self.threads)
        if self.memory_limit is not None:
            options["memory_limit"] = self.memory_limit
        return options


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="duckdb_access", description="Service name for tracing")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")


class Settings(BaseSettings):
    """Main settings, read from DUCKDB_ACCESS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DUCKDB_ACCESS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    config_file: Path = Field(default=Path("config.yml"), description="YAML environments file")
    environment: str = Field(default="default", description="Active configuration environment")
    section: str = Field(default="database", description="Section holding path and name")

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @property
    def config_dir(self) -> Path:
        """Directory relative database paths are resolved against."""
        return self.config_file.expanduser().resolve().parent


@lru_cache
def get_settings() -> Settings:
    """Get the global settings instance."""
    return Settings()
