"""OpenTelemetry tracing setup."""

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from src.config import settings

SERVICE_NAME = "design-intake-assistant"

_configured = False


def setup_tracing() -> None:
    """Install a console-exporting tracer provider when tracing is enabled.

    Safe to call more than once; the CLI and the API both call it on import.
    """
    global _configured
    if not settings.enable_tracing or _configured:
        return

    provider = TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    _configured = True


def get_tracer(name: str):
    """Get tracer instance.

    Args:
        name: Tracer name.

    Returns:
        Tracer instance.
    """
    return trace.get_tracer(name)


def get_trace_id() -> str:
    """Trace id of the current span as 32 hex chars, or "" outside a recording span."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return ""
    return format(context.trace_id, "032x")
