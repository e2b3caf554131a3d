from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

# Probes and scrapes would otherwise dominate the trace volume.
UNTRACED_URLS = "health/live,health/ready,metrics"

_provider: TracerProvider | None = None
logger = logging.getLogger(__name__)


def _tracing_disabled() -> bool:
    return os.getenv("OTEL_SDK_DISABLED", "").strip().lower() in {"1", "true", "yes"}


def _build_provider(app: FastAPI) -> TracerProvider:
    resource = Resource.create(
        {
            SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", "orderflow-api"),
            SERVICE_VERSION: app.version,
            "deployment.environment": os.getenv("APP_ENV", "dev").lower(),
        }
    )
    provider = TracerProvider(resource=resource)

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        try:
            exporter = OTLPSpanExporter(
                endpoint=endpoint,
                insecure=endpoint.startswith("http://"),
            )
            provider.add_span_processor(BatchSpanProcessor(exporter))
        except Exception:
            logger.exception("otel_exporter_setup_failed", extra={"endpoint": endpoint})
    return provider


def configure_otel(app: FastAPI) -> None:
    """Install one tracer provider per process and instrument ``app`` with it.

    Apps built later (tests create several) reuse the first provider.
    """
    global _provider
    if _tracing_disabled():
        return

    if _provider is None:
        _provider = _build_provider(app)
        trace.set_tracer_provider(_provider)
        set_global_textmap(TraceContextTextMapPropagator())

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=_provider,
        excluded_urls=UNTRACED_URLS,
    )
