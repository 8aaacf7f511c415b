"""Tracing and correlation helpers for the Groq gateway."""
from __future__ import annotations

import os
from contextvars import ContextVar, Token
from typing import Dict, Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import inject
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

DEFAULT_OTLP_ENDPOINT = "http://otel-collector:4318"
CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_tracing_configured = False


def parse_otlp_headers(raw_value: Optional[str]) -> Dict[str, str]:
    """Parse ``OTEL_EXPORTER_OTLP_HEADERS`` style ``k=v,k2=v2`` strings."""

    headers: Dict[str, str] = {}
    for item in (raw_value or "").split(","):
        key, separator, value = item.partition("=")
        key = key.strip()
        if separator and key:
            headers[key] = value.strip()
    return headers


def configure_tracing(app: FastAPI, service_name: str) -> bool:
    """Export spans over OTLP/HTTP and instrument ``app``.

    Only the first call per process installs the provider; later calls
    return ``False``.
    """

    global _tracing_configured
    if _tracing_configured:
        return False

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)
    exporter = OTLPSpanExporter(
        endpoint=f"{endpoint.rstrip('/')}/v1/traces",
        headers=parse_otlp_headers(os.getenv("OTEL_EXPORTER_OTLP_HEADERS")) or None,
    )
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor().instrument_app(app, tracer_provider=provider)
    _tracing_configured = True
    return True


def propagation_headers() -> Dict[str, str]:
    """Headers that carry the current correlation id and trace context downstream."""

    headers: Dict[str, str] = {}
    correlation_id = get_correlation_id()
    if correlation_id:
        headers[CORRELATION_HEADER] = correlation_id
    inject(headers)
    return headers


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(value: str) -> Token:
    return correlation_id_var.set(value)


def reset_correlation_id(token: Token) -> None:
    correlation_id_var.reset(token)
