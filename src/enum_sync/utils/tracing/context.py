"""
Context managers and utilities for span management.

Provides context managers for creating spans and adding attributes
to the current span without explicit span references.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Context manager for tracing operations.

    Creates a span and adds attributes (stringified). An exception escaping
    the block is recorded on the span; for synchronization errors the
    database and table they belong to are added as error.* attributes.

    Args:
        operation_name: Name of the operation being traced
        kind: Span kind (INTERNAL, CLIENT, SERVER, etc.)
        **attributes: Custom attributes to add to the span

    Yields:
        Span instance for adding custom events/attributes

    Example:
        >>> with trace_operation("apply_plan", table="Color") as span:
        ...     span.set_attribute("rows_inserted", 3)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(
        operation_name,
        kind=kind
    ) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            for attribute in ("connection", "table"):
                value = getattr(e, attribute, None)
                if value:
                    span.set_attribute(f"error.{attribute}", str(value))
            if getattr(e, "orphan_ids", None):
                span.set_attribute("error.orphan_count", len(e.orphan_ids))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """
    Add attributes to the current span.

    Args:
        **attributes: Attributes to add to current span
    """
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))
