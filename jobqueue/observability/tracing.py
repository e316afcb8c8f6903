"""
OpenTelemetry tracing setup.
"""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from jobqueue import __version__
from jobqueue.config import get_settings

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(enable_console_export: bool = False) -> Tracer:
    """
    Set up OpenTelemetry tracing.

    When ``otel_enabled`` is off, the global (no-op unless configured
    elsewhere) tracer provider is left untouched.

    Args:
        enable_console_export: If True, also export spans to console.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = get_settings()

    if not settings.otel_enabled:
        _tracer = trace.get_tracer(settings.otel_service_name)
        return _tracer

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    otlp_exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint,
        insecure=True,
    )
    provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    if enable_console_export:
        provider.add_span_processor(
            BatchSpanProcessor(ConsoleSpanExporter())
        )

    trace.set_tracer_provider(provider)
    instrument_redis()

    _tracer = trace.get_tracer(settings.otel_service_name)
    logger.info(
        "Tracing enabled",
        extra={"endpoint": settings.otel_exporter_otlp_endpoint},
    )
    return _tracer


def instrument_redis() -> None:
    """Instrument every Redis client with OpenTelemetry."""
    instrumentor = RedisInstrumentor()
    if not instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.instrument()


def get_tracer() -> Tracer:
    """
    Get the tracer instance.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer
    if _tracer is None:
        _tracer = setup_tracing()
    return _tracer
