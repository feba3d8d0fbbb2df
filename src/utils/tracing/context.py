"""
Span helpers for verification runs.

Every span is named ``roundtrip.<operation>`` and every attribute is keyed
``roundtrip.<name>`` so verifier spans group together in a trace backend.
Attribute values keep their type when OpenTelemetry supports it (bool, int,
float, str); anything else is recorded as its string form.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from .tracer import get_tracer

SPAN_PREFIX = "roundtrip."

AttributeValue = bool | int | float | str


def _attribute_value(value: Any) -> AttributeValue:
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def _attributes(values: dict[str, Any]) -> dict[str, AttributeValue]:
    return {f"{SPAN_PREFIX}{key}": _attribute_value(value) for key, value in values.items()}


@contextmanager
def trace_operation(operation_name: str, **attributes: Any) -> Iterator[Span]:
    """
    Run a block inside a ``roundtrip.<operation_name>`` span.

    An exception escaping the block marks the span as failed and is re-raised.

    Example:
        >>> with trace_operation("verify_table", table="notes"):
        ...     diff = diff_tables(before, after)
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(
        f"{SPAN_PREFIX}{operation_name}",
        attributes=_attributes(attributes),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            raise


def add_span_attributes(**attributes: Any) -> None:
    """Attach attributes to the active verification span, if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(_attributes(attributes))


def add_span_event(name: str, **attributes: Any) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(f"{SPAN_PREFIX}{name}", attributes=_attributes(attributes))
