"""
Tracer initialization and configuration for OpenTelemetry.

Exporters are opt-in: an OTLP endpoint (argument or OTLP_ENDPOINT) and/or
console export (argument or TRACE_CONSOLE=true). Without either, spans go
to the API's default no-op provider.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "roundtrip-verify"

_provider: TracerProvider | None = None


def initialize_tracing(
    service_name: str = "roundtrip-verify",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    sampling_rate: float = 1.0,
) -> trace.Tracer:
    """
    Initialize distributed tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (e.g., "localhost:4317")
        console_export: Also export spans to stdout (debugging)
        sampling_rate: Sampling rate 0.0-1.0 (1.0 = trace everything)

    Returns:
        Tracer bound to the configured provider, or a no-op tracer when no
        exporter is configured
    """
    global _provider

    if _provider is not None:
        logger.warning("Tracing already initialized, returning existing tracer")
        return _provider.get_tracer(INSTRUMENTATION_NAME)

    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTLP_ENDPOINT") or None
    console_export = console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true"

    if not otlp_endpoint and not console_export:
        logger.debug("No trace exporters configured, tracing is a no-op")
        return trace.get_tracer(INSTRUMENTATION_NAME)

    provider = TracerProvider(
        resource=Resource(attributes={SERVICE_NAME: service_name}),
        sampler=TraceIdRatioBased(sampling_rate),
    )

    exporters = []
    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        exporters.append("OTLP")
    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(
        f"Tracing initialized: {service_name} "
        f"(exporters: {', '.join(exporters)}, sampling: {sampling_rate})"
    )
    return provider.get_tracer(INSTRUMENTATION_NAME)


def get_tracer() -> trace.Tracer:
    """
    Get the tracer used by verification spans.

    Never initializes exporters implicitly; before initialize_tracing() this
    is the API's proxy tracer, which records nothing.
    """
    if _provider is not None:
        return _provider.get_tracer(INSTRUMENTATION_NAME)
    return trace.get_tracer(INSTRUMENTATION_NAME)


def shutdown_tracing() -> None:
    """
    Flush pending spans and shut the provider down.

    Should be called before process exit.
    """
    global _provider

    if _provider is None:
        return
    try:
        _provider.shutdown()
        logger.debug("Tracing shutdown complete")
    finally:
        _provider = None
