"""Unit tests for log formatting, search context, spans and latency metrics."""

import logging

import orjson
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry, Histogram
import pytest

from capsule_search.config import Settings
from capsule_search.observability import tracing
from capsule_search.observability.context import bind_search_context, get_search_context, search_context
from capsule_search.observability.logging import JsonFormatter, configure_logging
from capsule_search.observability.metrics import get_metrics, get_metrics_content_type, track_latency
from capsule_search.observability.setup import setup_observability
from capsule_search.observability.tracing import create_span


def _record(message="Search finished", **extra):
    record = logging.LogRecord("capsule_search.search.engine", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestSearchContext:
    """Tests for search-context binding."""

    def test_binding_is_scoped(self):
        before = search_context.get()

        with bind_search_context(user_id="u1") as ctx:
            assert get_search_context()["user_id"] == "u1"
            assert ctx["trace_id"]

        assert search_context.get() is before

    def test_unbound_logging_does_not_pin_trace_id(self):
        JsonFormatter().format(_record("Notes index created"))

        with bind_search_context(user_id="a") as first:
            pass
        with bind_search_context(user_id="b") as second:
            pass

        assert first["trace_id"] != second["trace_id"]

    def test_unbound_context_is_not_stored(self):
        before = search_context.get()

        assert get_search_context()["trace_id"]
        assert search_context.get() is before

    def test_nested_binding_inherits_trace_id(self):
        with bind_search_context(user_id="u1") as outer:
            with bind_search_context(search_path="indexed") as inner:
                assert inner["trace_id"] == outer["trace_id"]
                assert inner["user_id"] == "u1"
                assert inner["search_path"] == "indexed"
            assert "search_path" not in get_search_context()


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_includes_bound_context(self):
        with bind_search_context(user_id="u1", search_path="cross_capsule") as ctx:
            payload = orjson.loads(JsonFormatter().format(_record()))

        assert payload["message"] == "Search finished"
        assert payload["level"] == "INFO"
        assert payload["component"] == "engine"
        assert payload["trace_id"] == ctx["trace_id"]
        assert payload["user_id"] == "u1"
        assert payload["search_path"] == "cross_capsule"

    def test_redacts_sensitive_extras(self):
        payload = orjson.loads(JsonFormatter().format(_record(token="abc123", capsule_count=3)))

        assert payload["token"] == "[REDACTED]"
        assert payload["capsule_count"] == 3

    def test_serializes_sets_sorted(self):
        payload = orjson.loads(JsonFormatter().format(_record(terms={"b", "a"})))

        assert payload["terms"] == ["a", "b"]

    def test_truncates_long_messages(self):
        payload = orjson.loads(JsonFormatter().format(_record("x" * 3000)))

        assert len(payload["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3


@pytest.mark.unit
def test_configure_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("debug", json_output=True, logger_levels={"capsule_search.search": "warning"})

        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[-1].formatter, JsonFormatter)
        assert logging.getLogger("capsule_search.search").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        logging.getLogger("capsule_search.search").setLevel(logging.NOTSET)


@pytest.mark.unit
class TestTracing:
    """Tests for create_span."""

    def test_span_reraises(self):
        with pytest.raises(ValueError, match="boom"):
            with create_span("test.span", attributes={"test.attr": 1}):
                raise ValueError("boom")

    def test_span_yields(self):
        with create_span("test.span") as span:
            assert span is not None


@pytest.mark.unit
class TestTrackLatency:
    """Tests for track_latency and metrics exposition."""

    def test_observes_without_labels(self):
        registry = CollectorRegistry()
        histogram = Histogram("test_build_seconds", "Build time", registry=registry)

        with track_latency(histogram):
            pass

        assert registry.get_sample_value("test_build_seconds_count") == 1.0

    def test_observes_failed_runs(self):
        registry = CollectorRegistry()
        histogram = Histogram("test_search_seconds", "Search time", ["path"], registry=registry)

        with pytest.raises(RuntimeError):
            with track_latency(histogram, path="indexed"):
                raise RuntimeError("failed")

        assert registry.get_sample_value("test_search_seconds_count", {"path": "indexed"}) == 1.0

    def test_metrics_exposition(self):
        assert b"capsule_search_latency_seconds" in get_metrics()
        assert get_metrics_content_type().startswith("text/plain")


@pytest.mark.unit
def test_setup_observability_configures_logging_and_exports_spans():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    exporter = InMemorySpanExporter()
    try:
        setup_observability(Settings(log_level="warning", log_json=False), exporter=exporter)

        with create_span("notes.search"):
            pass

        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[-1].formatter, JsonFormatter)
        assert [span.name for span in exporter.get_finished_spans()] == ["notes.search"]
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        tracing._tracer_holder["tracer"] = None
