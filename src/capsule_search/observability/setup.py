"""One-call observability bootstrap for processes embedding the search core."""

from __future__ import annotations

from typing import TYPE_CHECKING

from capsule_search.config import Settings, get_settings
from capsule_search.observability.logging import configure_logging
from capsule_search.observability.tracing import init_tracing


if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SpanExporter


SERVICE_NAME = "capsule-search"


def setup_observability(
    settings: Settings | None = None,
    *,
    exporter: SpanExporter | None = None,
    logger_levels: dict[str, str] | None = None,
) -> TracerProvider:
    """Configure logging from settings and initialize tracing.

    Prometheus metrics need no setup; they register on import.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json, logger_levels=logger_levels)
    return init_tracing(service_name=SERVICE_NAME, exporter=exporter)
