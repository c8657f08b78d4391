"""Observability module: structured logging, OpenTelemetry tracing, Prometheus metrics."""

from capsule_search.observability.context import bind_search_context, get_search_context
from capsule_search.observability.logging import JsonFormatter, configure_logging
from capsule_search.observability.metrics import (
    CAPSULES_SCORED,
    INDEX_BUILD_LATENCY,
    SEARCH_ERRORS,
    SEARCH_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from capsule_search.observability.setup import setup_observability
from capsule_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "CAPSULES_SCORED",
    "INDEX_BUILD_LATENCY",
    "SEARCH_ERRORS",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "bind_search_context",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_search_context",
    "get_tracer",
    "init_tracing",
    "setup_observability",
    "track_latency",
]
