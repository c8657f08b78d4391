"""Per-search context for log correlation.

A search binds its identifiers (trace id, user id, search path) once; every
log record emitted while the binding is active carries them. ContextVar
values follow asyncio tasks and are copied into ``asyncio.to_thread``
workers, so records from the scoring pool are correlated too.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


search_context: ContextVar[dict | None] = ContextVar("search_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def get_search_context() -> dict:
    """Return the bound context.

    Outside any binding a one-off trace id is returned and nothing is stored,
    so unrelated records never share a trace id with a later search.
    """
    ctx = search_context.get()
    if ctx is None or not ctx.get("trace_id"):
        return {**(ctx or {}), "trace_id": generate_trace_id()}
    return ctx


def update_span_id(span_id: str) -> None:
    """Record the current span id while preserving the rest of the context."""
    ctx = search_context.get() or {}
    search_context.set({**ctx, "span_id": span_id})


@contextmanager
def bind_search_context(**fields: object) -> Iterator[dict]:
    """Bind fields (e.g. ``user_id``, ``search_path``) for the duration of a block.

    Nested bindings inherit the outer fields and trace id.
    """
    outer = search_context.get()
    merged = {**(outer or {}), **fields}
    # Only an enclosing binding supplies a trace id
    if not merged.get("trace_id"):
        merged["trace_id"] = generate_trace_id()
    token = search_context.set(merged)
    try:
        yield merged
    finally:
        search_context.reset(token)
