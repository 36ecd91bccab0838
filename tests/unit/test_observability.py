"""Unit tests for logging, metrics and tracing setup."""

from __future__ import annotations

import io
import json

import pytest
import structlog
from prometheus_client import CollectorRegistry

from duckdb_access.infrastructure.logging import get_logger, setup_logging
from duckdb_access.infrastructure.metrics import MetricsRegistry
from duckdb_access.infrastructure.tracing import get_tracer, setup_tracing, trace_span


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.mark.unit
class TestLogging:
    """Tests for structured logging."""

    def test_json_lines(self) -> None:
        stream = io.StringIO()
        setup_logging("INFO", "json", stream=stream)

        get_logger("test", component="gate").info("connection_opened", mode="read_only")

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "connection_opened"
        assert record["mode"] == "read_only"
        assert record["component"] == "gate"
        assert record["level"] == "info"

    def test_level_filtering(self) -> None:
        stream = io.StringIO()
        setup_logging("WARNING", "json", stream=stream)

        get_logger("test").info("hidden")

        assert stream.getvalue() == ""

    def test_long_sql_truncated(self) -> None:
        stream = io.StringIO()
        setup_logging("INFO", "json", stream=stream)

        get_logger("test").info("statement_failed", sql="SELECT " + "x, " * 400 + "1")

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["sql"].endswith("...")
        assert len(record["sql"]) == 503


@pytest.mark.unit
class TestMetrics:
    """Tests for MetricsRegistry."""

    def test_counters_registered_on_given_registry(self) -> None:
        registry = CollectorRegistry()
        metrics = MetricsRegistry(registry=registry)

        metrics.connections_opened_total.labels(mode="read_only").inc()

        assert registry.get_sample_value(
            "duckdb_access_connections_opened_total", {"mode": "read_only"}
        ) == 1.0

    def test_separate_registries_do_not_clash(self) -> None:
        MetricsRegistry(registry=CollectorRegistry())
        MetricsRegistry(registry=CollectorRegistry())


@pytest.mark.unit
class TestTracing:
    """Tests for tracing helpers."""

    def test_setup_returns_tracer(self) -> None:
        assert setup_tracing("duckdb_access_test") is not None
        assert get_tracer() is not None

    def test_trace_span_drops_none_attributes(self) -> None:
        with trace_span("unit", {"db.name": "x", "missing": None}) as span:
            assert span is not None
