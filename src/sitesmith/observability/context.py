"""Log correlation state for the current task: trace id, span id and pipeline stage.

A site build runs under the ``build`` stage and the runtime engine loads its
index under ``search``. ``JsonFormatter`` stamps every record with the values
found here, so all lines of one build share a trace id.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


trace_context: ContextVar[dict[str, str] | None] = ContextVar("sitesmith_trace_context", default=None)


def get_trace_context() -> dict[str, str]:
    """Return the current context, starting a fresh trace when there is none."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": uuid4().hex, "span_id": uuid4().hex[:16]}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: str) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    """Point log records at a new span within the same trace."""
    trace_context.set({**(trace_context.get() or {}), "span_id": span_id})


@contextmanager
def stage_context(stage: str) -> Iterator[dict[str, str]]:
    """Run a block as pipeline ``stage`` within the current trace.

    The previous context comes back on exit, so a search run from inside a
    build script does not leave its stage behind.
    """
    token = trace_context.set({**get_trace_context(), "stage": stage})
    try:
        yield get_trace_context()
    finally:
        trace_context.reset(token)
