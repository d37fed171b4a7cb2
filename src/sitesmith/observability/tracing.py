"""OpenTelemetry spans around the site build and the runtime index load.

Build steps open ``site.*`` spans and index work opens ``search.*`` spans.
Each span is tagged with the pipeline stage from the trace context, and its
id is the ``span_id`` stamped on log records written while it is open.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.trace import Status, StatusCode

from sitesmith.observability.context import get_trace_context, update_span_id


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.sdk.trace.export import SpanExporter
    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

TRACER_NAME = "sitesmith"
STAGE_ATTRIBUTE = "sitesmith.stage"

_tracer_holder: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = "sitesmith",
    resource_attributes: dict[str, str] | None = None,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Install a tracer provider; finished spans go to ``exporter`` when one is given."""
    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = TracerProvider(resource=resource)
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _tracer_holder["tracer"] = provider.get_tracer(TRACER_NAME)
    logger.debug("Tracing initialized for %s, exporting: %s", service_name, exporter is not None)
    return provider


def get_tracer() -> Tracer:
    """The tracer from ``init_tracing``, else the global (no-op by default) one."""
    if _tracer_holder["tracer"] is None:
        _tracer_holder["tracer"] = trace.get_tracer(TRACER_NAME)
    return _tracer_holder["tracer"]  # type: ignore[return-value]


@contextmanager
def create_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Open span ``name`` for the current stage; errors are recorded on it and re-raised."""
    ctx = get_trace_context()
    span_attributes = dict(attributes or {})
    if stage := ctx.get("stage"):
        span_attributes.setdefault(STAGE_ATTRIBUTE, stage)

    parent_span_id = ctx["span_id"]
    with get_tracer().start_as_current_span(
        name,
        attributes=span_attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        span_context = span.get_span_context()
        # the default no-op tracer yields invalid (all-zero) ids
        if span_context.is_valid:
            update_span_id(format(span_context.span_id, "016x"))
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            update_span_id(parent_span_id)
