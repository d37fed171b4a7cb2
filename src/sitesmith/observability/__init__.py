"""Observability module for structured logging and OpenTelemetry tracing."""

from sitesmith.observability.context import get_trace_context, set_trace_context, stage_context, trace_context
from sitesmith.observability.logging import JsonFormatter, configure_logging
from sitesmith.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "stage_context",
    "trace_context",
]
