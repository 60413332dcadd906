"""
Telemetry configuration (Metrics & Tracing).
Exposes Prometheus metrics and optionally ships OpenTelemetry traces.
"""
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_fastapi_instrumentator import Instrumentator

from lms.config import get_settings

# Probes and scrapes would otherwise dominate request metrics
UNINSTRUMENTED_PATHS = ["/metrics", "/health", "/health/ready"]


def setup_telemetry(app: FastAPI) -> None:
    """
    Attach observability to the application.

    Prometheus metrics are served from /metrics. Traces go to the OTLP
    endpoint configured through the standard OTEL_* environment variables.
    """
    settings = get_settings()

    if settings.ENABLE_PROMETHEUS:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            should_ignore_untemplated=True,
            should_instrument_requests_inprogress=True,
            excluded_handlers=UNINSTRUMENTED_PATHS,
            inprogress_name="lms_requests_inprogress",
            inprogress_labels=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    if settings.ENABLE_OTEL:
        resource = Resource.create(attributes={
            "service.name": settings.APP_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": "development" if settings.DEBUG else "production",
        })

        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=provider,
            excluded_urls=",".join(UNINSTRUMENTED_PATHS),
        )
