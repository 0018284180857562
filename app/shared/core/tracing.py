from typing import Any, Optional

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.shared.core.config import get_settings

logger = structlog.get_logger()

_configured = False


def setup_tracing() -> None:
    """
    Sets up OpenTelemetry tracing for the application.
    Spans are exported over OTLP only when an endpoint is configured.
    """
    global _configured
    if _configured:
        return
    settings = get_settings()

    resource = Resource(
        attributes={
            "service.name": "aws-inventory-api",
            "service.version": settings.VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
    )
    provider = TracerProvider(resource=resource)

    if settings.OTEL_EXPORTER_OTLP_ENDPOINT and not settings.TESTING:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        logger.info("setup_tracing_otlp", endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT)
        exporter = OTLPSpanExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=settings.OTEL_EXPORTER_OTLP_INSECURE,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        logger.info("setup_tracing_local_only")

    trace.set_tracer_provider(provider)
    _configured = True


def get_tracer(name: str) -> Any:
    """Returns a tracer instance for manual instrumentation."""
    return trace.get_tracer(name)


def get_current_trace_id() -> Optional[str]:
    span = trace.get_current_span()
    context = span.get_span_context()
    if not context or not context.is_valid:
        return None
    return format(context.trace_id, "032x")


def set_correlation_id(correlation_id: str) -> None:
    """Sets a correlation ID on the current span."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.set_attribute("correlation_id", correlation_id)
