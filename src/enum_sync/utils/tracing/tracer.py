"""
Tracer initialization and configuration for OpenTelemetry.

Provides setup functions for distributed tracing with an OTLP exporter.
Until initialize_tracing() is called, spans go to the globally configured
tracer provider (a no-op provider unless the host application installed one).
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "enum-sync"

# Global tracer instance
_tracer: trace.Tracer | None = None
_is_initialized = False


def initialize_tracing(
    service_name: str = DEFAULT_SERVICE_NAME,
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize distributed tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (e.g., "localhost:4317").
            Falls back to the OTLP_ENDPOINT environment variable.
        console_export: If True, also export traces to console (debug)

    Returns:
        Configured tracer instance

    Example:
        >>> tracer = initialize_tracing(
        ...     service_name="enum-sync",
        ...     otlp_endpoint="localhost:4317"
        ... )
    """
    global _tracer, _is_initialized

    if _is_initialized:
        logger.warning("Tracing already initialized, returning existing tracer")
        return _tracer

    resource = Resource(attributes={
        SERVICE_NAME: service_name
    })
    provider = TracerProvider(resource=resource)

    exporters = []

    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTLP_ENDPOINT")

    if otlp_endpoint:
        try:
            otlp_exporter = OTLPSpanExporter(
                endpoint=otlp_endpoint,
                insecure=True
            )
            provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
            exporters.append("OTLP")
            logger.info(f"OTLP exporter configured: {otlp_endpoint}")
        except Exception as e:
            logger.warning(f"Failed to configure OTLP exporter: {e}")

    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")
        logger.info("Console exporter configured")

    if not exporters:
        logger.warning("No trace exporters configured, tracing will be a no-op")

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(service_name)
    _is_initialized = True

    logger.info(
        f"Tracing initialized: {service_name} "
        f"(exporters: {', '.join(exporters) or 'none'})"
    )

    return _tracer


def get_tracer() -> trace.Tracer:
    """
    Get the tracer used for enum-sync spans.

    Returns the tracer created by initialize_tracing(), or a tracer from the
    global provider when tracing has not been initialized.
    """
    if _tracer is not None:
        return _tracer
    return trace.get_tracer(DEFAULT_SERVICE_NAME)


def shutdown_tracing() -> None:
    """
    Shutdown tracing and flush pending spans.

    Should be called before application exit.
    """
    global _tracer, _is_initialized

    if _is_initialized:
        try:
            provider = trace.get_tracer_provider()
            if hasattr(provider, "shutdown"):
                provider.shutdown()
            logger.info("Tracing shutdown complete")
        except Exception as e:
            logger.error(f"Error during tracing shutdown: {e}")
        finally:
            _tracer = None
            _is_initialized = False
