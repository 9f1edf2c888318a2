"""OpenTelemetry wiring for the relay app.

Spans carry the PayPal mode so sandbox and live traffic can be told apart.
Health checks and metrics scrapes are left out of request tracing.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from vaultrelay.common.config import RelaySettings

UNTRACED_URLS = "health,metrics"


def tracing_resource(settings: RelaySettings) -> Resource:
    """Resource attributes attached to every exported span."""

    return Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.paypal_mode,
            "paypal.api_base": settings.api_base,
        }
    )


def setup_tracing(settings: RelaySettings) -> TracerProvider:
    """Register a tracer provider exporting over OTLP/HTTP."""

    provider = TracerProvider(resource=tracing_resource(settings))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)))
    trace.set_tracer_provider(provider)
    return provider


def instrument_app(app: FastAPI) -> None:
    """Trace relay requests, skipping health checks and metrics scrapes."""

    FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)
