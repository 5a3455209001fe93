from __future__ import annotations

import os
import sys

try:
    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
except Exception:  # pragma: no cover - optional dependency resolution
    trace = None
    Resource = None
    TracerProvider = None
    BatchSpanProcessor = None
    ConsoleSpanExporter = None
    OTLPSpanExporter = None


def _console_export_enabled() -> bool:
    return os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"


def init_observability(service_name: str = "thread-digest") -> bool:
    """Install a tracer provider; returns False when tracing stays disabled."""
    if "pytest" in sys.modules:
        return False
    if trace is None or TracerProvider is None:
        return False

    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return True

    resource = Resource.create(
        {"service.name": os.getenv("OTEL_SERVICE_NAME", service_name)}
    )
    provider = TracerProvider(resource=resource)

    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    elif _console_export_enabled():
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    else:
        return False

    trace.set_tracer_provider(provider)
    return True
