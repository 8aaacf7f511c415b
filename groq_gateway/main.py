#!/usr/bin/env python3
"""Groq gateway application relaying chat messages to Groq chat completions."""
from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Tuple

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, unbind_contextvars
from structlog.stdlib import ProcessorFormatter

from .clients import GroqClient, GroqError
from .config import Settings, get_settings
from .models import (
    ChatHistoryRequest,
    ChatRequest,
    HealthResponse,
    ServiceInfoResponse,
)
from .responses import now_millis, shape_error, shape_response
from .service import ChatService
from .telemetry import (
    CORRELATION_HEADER,
    configure_tracing,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger("groq_gateway")

API_PREFIX = "/api/chat"
SERVICE_LABEL = "Groq Integration API"
EMPTY_MESSAGE_ERROR = "Message cannot be empty"


class CorrelationIdFilter(logging.Filter):
    """Inject the correlation identifier into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - logging helper
        record.correlation_id = get_correlation_id() or "unknown"
        return True


def _add_correlation_id(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - logging helper
    event_dict.setdefault("correlation_id", get_correlation_id() or "unknown")
    return event_dict


def _configure_otlp_logging(service_name: str) -> None:
    if not (
        os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        or os.getenv("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT")
    ):
        return

    root_logger = logging.getLogger()
    try:
        resource = Resource.create(
            {"service.name": os.getenv("OTEL_SERVICE_NAME", service_name)}
        )
        logger_provider = LoggerProvider(resource=resource)
        logger_provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter()))
        set_logger_provider(logger_provider)
        root_logger.addHandler(
            LoggingHandler(level=logging.NOTSET, logger_provider=logger_provider)
        )
    except Exception:  # pragma: no cover - exporter misconfiguration must not stop the app
        root_logger.exception("Failed to configure OTLP log exporter")


def configure_logging(service_name: str = "groq-gateway") -> None:
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        _add_correlation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    formatter = ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(os.getenv("GROQ_GATEWAY_LOG_LEVEL", "INFO").upper())

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configure_otlp_logging(service_name)


configure_logging()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach correlation identifiers and latency to responses."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get(CORRELATION_HEADER, str(uuid.uuid4()))
        token = set_correlation_id(correlation_id)
        bind_contextvars(correlation_id=correlation_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled exception during request", extra={"path": request.url.path})
            raise
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "Request completed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            reset_correlation_id(token)
            unbind_contextvars("correlation_id")

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time-ms"] = f"{duration_ms:.2f}"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    client = GroqClient(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        timeout=settings.groq_timeout_seconds,
        max_retries=settings.groq_max_retries,
        retry_client_errors=settings.retry_client_errors,
    )
    app.state.groq_client = client
    logger.info(
        "Groq client ready",
        extra={"base_url": settings.groq_base_url, "model": settings.groq_model},
    )
    try:
        yield
    finally:
        await client.aclose()


app = FastAPI(title=SERVICE_LABEL, version="0.1.0", lifespan=lifespan)
settings = get_settings()
if settings.tracing_enabled:
    configure_tracing(app, settings.service_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)


# Dependency factories -----------------------------------------------------

def get_groq_client(request: Request) -> GroqClient:
    return request.app.state.groq_client


def get_chat_service(
    client: GroqClient = Depends(get_groq_client),
    settings: Settings = Depends(get_settings),
) -> ChatService:
    return ChatService(client=client, model=settings.groq_model)


# Error helpers ------------------------------------------------------------

def _error_response(status_code: int, error: BaseException | str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=shape_error(error).model_dump())


def _is_blank(message: str | None) -> bool:
    return message is None or not message.strip()


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    logger.warning("Invalid request body", extra={"path": request.url.path, "errors": details})
    return _error_response(400, f"Invalid request: {details}")


# Routes -------------------------------------------------------------------

async def simple_chat(
    payload: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> JSONResponse:
    logger.info("Received simple chat request. User message: %s", payload.message)
    if _is_blank(payload.message):
        logger.warning("Invalid message received: null or empty")
        return _error_response(400, EMPTY_MESSAGE_ERROR)

    try:
        completion = await chat_service.chat(payload.message)
    except GroqError as exc:
        logger.error("Error in simple chat endpoint: %s", exc)
        return _error_response(500, exc)

    return JSONResponse(content=shape_response(completion).model_dump(by_alias=True))


async def chat_with_history(
    payload: ChatHistoryRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> JSONResponse:
    history = payload.history or []
    logger.info(
        "Received chat request with history. Message: %s, History size: %s",
        payload.message,
        len(history),
    )
    if _is_blank(payload.message):
        logger.warning("Invalid message received: null or empty")
        return _error_response(400, EMPTY_MESSAGE_ERROR)

    try:
        completion = await chat_service.chat_with_history(payload.message, history)
    except GroqError as exc:
        logger.error("Error in chat with history endpoint: %s", exc)
        return _error_response(500, exc)

    return JSONResponse(content=shape_response(completion).model_dump(by_alias=True))


async def health() -> HealthResponse:
    """Liveness probe for load balancers and monitors."""

    logger.debug("Health check called")
    return HealthResponse(status="UP", service=SERVICE_LABEL, timestamp=str(now_millis()))


async def service_info() -> ServiceInfoResponse:
    logger.info("Test endpoint called")
    return ServiceInfoResponse(
        message=f"{SERVICE_LABEL} is running!",
        endpoints=", ".join(f"{method} {path}" for path, _, methods in ROUTES[:3] for method in methods),
    )


ROUTES: List[Tuple[str, Callable[..., Any], List[str]]] = [
    (f"{API_PREFIX}/simple", simple_chat, ["POST"]),
    (f"{API_PREFIX}/with-history", chat_with_history, ["POST"]),
    (f"{API_PREFIX}/health", health, ["GET"]),
    (f"{API_PREFIX}/test", service_info, ["GET"]),
]

for path, endpoint, methods in ROUTES:
    app.add_api_route(path, endpoint, methods=methods)
