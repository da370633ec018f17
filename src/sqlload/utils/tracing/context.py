"""
Span context managers.
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
    Run a block inside a span, recording any exception on it.

    Args:
        operation_name: Span name
        kind: Span kind (INTERNAL, CLIENT, ...)
        **attributes: Span attributes, stringified

    Yields:
        The active span

    Example:
        >>> with trace_operation("load_transaction", worker=7) as span:
        ...     span.set_attribute("phase", "save")
    """
    with get_tracer().start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)
            raise


def add_span_event(name: str, **attributes):
    """Add an event to the current span if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.add_event(name, attributes={k: str(v) for k, v in attributes.items()})
