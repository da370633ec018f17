"""
Distributed tracing using OpenTelemetry.

Instruments store connection setup, pool acquisition and each load
transaction. Disabled (no-op) unless initialize_tracing() is called.
"""

from .context import add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_event",
]
