"""
Distributed tracing for dbunit operations using OpenTelemetry.

Spans are created for load, verify, schema resets, table fetches and
connection setup. Until initialize_tracing() is called the global no-op
tracer provider is used, so tracing costs nothing in plain test runs.
"""

import logging
import os
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

TRACER_NAME = "dbunit"

_provider: TracerProvider | None = None


def initialize_tracing(
    service_name: str = "dbunit",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install an SDK tracer provider with the requested exporters.

    Args:
        service_name: Service name reported on every span
        otlp_endpoint: OTLP collector endpoint (default: DBUNIT_OTLP_ENDPOINT env var)
        console_export: Also print finished spans to stdout

    Returns:
        Tracer bound to the new provider
    """
    global _provider

    if _provider is not None:
        logger.warning("Tracing already initialized, returning existing tracer")
        return _provider.get_tracer(TRACER_NAME)

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    exporters = []

    otlp_endpoint = otlp_endpoint or os.getenv("DBUNIT_OTLP_ENDPOINT")
    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        exporters.append("OTLP")

    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    if not exporters:
        logger.warning("No trace exporters configured, spans will be dropped")

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(f"Tracing initialized: {service_name} (exporters: {', '.join(exporters) or 'none'})")
    return provider.get_tracer(TRACER_NAME)


def get_tracer() -> trace.Tracer:
    """Return the dbunit tracer from the current global provider."""
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _provider

    if _provider is None:
        return
    try:
        _provider.shutdown()
        logger.info("Tracing shutdown complete")
    finally:
        _provider = None


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes,
):
    """
    Context manager that wraps a block in a span.

    Exceptions are recorded on the span and re-raised unchanged.

    Example:
        >>> with trace_operation("dbunit.verify", strategy="INSERT") as span:
        ...     span.set_attribute("dbunit.tables", "2")
    """
    with get_tracer().start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes) -> None:
    """Add attributes to the current span, if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))
