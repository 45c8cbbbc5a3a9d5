"""
Distributed tracing using OpenTelemetry.

Instruments:
- Table reads and plan application
- Per-database synchronization runs
- Custom application spans
"""

from .context import add_span_attributes, trace_operation
from .decorators import trace_function
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "trace_function",
    "add_span_attributes",
]
