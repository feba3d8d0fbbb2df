"""
Distributed tracing using OpenTelemetry.

Spans cover table verification passes, attachment diffing, and health
checks. Tracing stays a no-op until initialize_tracing() configures an
exporter (OTLP collector or console).
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
