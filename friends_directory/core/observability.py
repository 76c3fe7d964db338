"""OpenTelemetry wiring for the HTTP app and the store adapters."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter

from friends_directory.core.config import Settings, settings

logger = logging.getLogger(__name__)

_provider: Optional[TracerProvider] = None


def setup_tracing(app: Optional[FastAPI] = None, config: Settings = settings) -> bool:
    """Install the tracer provider once per process and instrument ``app``.

    Returns False without touching anything when tracing is disabled.
    """

    global _provider
    if not config.TRACING_ENABLED:
        return False

    if _provider is None:
        _provider = _build_provider(config)
        trace.set_tracer_provider(_provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)
    return True


def _build_provider(config: Settings) -> TracerProvider:
    service_name = config.API_TITLE.lower().replace(" ", "-")
    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": service_name,
                "service.version": config.API_VERSION,
                "deployment.environment": config.ENVIRONMENT,
            }
        )
    )
    exporter = _select_exporter(config)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info("Tracing %s through %s", service_name, type(exporter).__name__)
    return provider


def _select_exporter(config: Settings) -> SpanExporter:
    if config.OTEL_EXPORTER_OTLP_ENDPOINT is None:
        return ConsoleSpanExporter()
    headers = _parse_headers(config.OTEL_EXPORTER_OTLP_HEADERS)
    return OTLPSpanExporter(endpoint=str(config.OTEL_EXPORTER_OTLP_ENDPOINT), headers=headers or None)


def _parse_headers(raw_headers: Optional[str]) -> Dict[str, str]:
    """``key=value`` pairs separated by commas; malformed entries are skipped."""

    pairs = (item.partition("=") for item in (raw_headers or "").split(","))
    return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip()}
