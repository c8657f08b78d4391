"""Prometheus metrics for search latency and failures."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_LATENCY = Histogram(
    "capsule_search_latency_seconds",
    "Search latency in seconds",
    ["path"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

INDEX_BUILD_LATENCY = Histogram(
    "notes_index_build_seconds",
    "Notes index build time in seconds",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

SEARCH_ERRORS = Counter(
    "capsule_search_errors_total",
    "Total failed searches",
    ["path", "error_type"],
)

CAPSULES_SCORED = Counter(
    "capsule_search_capsules_scored_total",
    "Capsules run through the field-weighted scorer",
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to observe an operation's latency, including failed runs."""
    metric = histogram.labels(**labels) if labels else histogram
    start = time.perf_counter()
    try:
        yield
    finally:
        metric.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
