"""Async HTTP client for the Groq chat-completions API."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import httpx
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .config import DEFAULT_BASE_URL
from .models import ChatCompletionRequest, ChatCompletionResponse
from .telemetry import get_correlation_id, propagation_headers

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

COMPLETIONS_PATH = "/chat/completions"


class GroqError(RuntimeError):
    """Raised when the Groq API cannot fulfil a request."""


class GroqStatusError(GroqError):
    """Raised when the Groq API answers with a non-success status."""

    label = "Unexpected status"

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"{self.label}: {status_code} {reason} - {body}")


class GroqClientStatusError(GroqStatusError):
    """4xx answer: the provider rejected the request."""

    label = "Client error"


class GroqServerStatusError(GroqStatusError):
    """5xx answer: the provider failed to process the request."""

    label = "Server error"


class GroqNetworkError(GroqError):
    """Connection, DNS or timeout failure before a response was received."""


class GroqDecodeError(GroqError):
    """The provider answered 2xx with a body that is not a chat completion."""


class GroqClient:
    """Process-wide wrapper around a pooled ``httpx.AsyncClient``.

    Every failed attempt is re-dispatched immediately, up to ``max_retries``
    extra attempts. With ``retry_client_errors`` disabled, 4xx answers are
    surfaced on the first attempt.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        *,
        max_retries: int = 3,
        retry_client_errors: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_client_errors = retry_client_errors
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_retries + 1

    async def aclose(self) -> None:
        await self._client.aclose()

    def _should_retry(self, exc: GroqError) -> bool:
        if isinstance(exc, GroqClientStatusError):
            return self._retry_client_errors
        return True

    async def create_chat_completion(
        self, request: ChatCompletionRequest
    ) -> ChatCompletionResponse:
        """Send ``request`` and return the decoded completion."""

        payload = request.to_payload()
        span_attributes = {
            "llm.system": "groq",
            "llm.operation": "chat.completion",
            "llm.model": request.model,
            "llm.messages": len(request.messages),
        }
        correlation_id = get_correlation_id()
        if correlation_id:
            span_attributes["correlation.id"] = correlation_id

        with tracer.start_as_current_span(
            "Groq.chatCompletion", record_exception=False
        ) as span:
            for key, value in span_attributes.items():
                span.set_attribute(key, value)

            last_error: Optional[GroqError] = None
            for attempt in range(1, self.max_attempts + 1):
                try:
                    result = await self._dispatch(payload)
                except GroqError as exc:
                    last_error = exc
                    if attempt < self.max_attempts and self._should_retry(exc):
                        logger.info(
                            "Groq attempt %s/%s failed, retrying: %s",
                            attempt,
                            self.max_attempts,
                            exc,
                        )
                        continue
                    span.set_attribute("llm.attempts", attempt)
                    break

                span.set_attribute("llm.attempts", attempt)
                span.set_status(Status(StatusCode.OK))
                if result.finish_reason:
                    span.set_attribute("llm.finish_reason", result.finish_reason)
                if result.usage is not None:
                    for usage_key, usage_value in result.usage.model_dump().items():
                        span.set_attribute(f"llm.usage.{usage_key}", usage_value)
                return result

            logger.error(
                "Groq chat completion failed after %s attempts: %s",
                attempt,
                last_error,
                exc_info=last_error,
            )
            span.record_exception(last_error)
            span.set_status(Status(StatusCode.ERROR, str(last_error)))
            raise last_error

    async def _dispatch(self, payload: Dict[str, object]) -> ChatCompletionResponse:
        headers = propagation_headers()
        headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            response = await asyncio.wait_for(
                self._client.post(COMPLETIONS_PATH, json=payload, headers=headers),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Groq request timed out after %ss", self._timeout)
            raise GroqNetworkError(
                f"Failed to call Groq API: timed out after {self._timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Groq request failed: POST %s: %r", COMPLETIONS_PATH, exc)
            raise GroqNetworkError(f"Failed to call Groq API: {exc!r}") from exc
        except Exception as exc:
            logger.warning("Groq request could not be sent: POST %s: %r", COMPLETIONS_PATH, exc)
            raise GroqNetworkError(f"Failed to call Groq API: {exc!r}") from exc

        status = response.status_code
        if 400 <= status < 500:
            logger.warning("4xx Client Error - Status: %s, Body: %s", status, response.text)
            raise GroqClientStatusError(status, response.reason_phrase, response.text)
        if 500 <= status < 600:
            logger.warning("5xx Server Error - Status: %s, Body: %s", status, response.text)
            raise GroqServerStatusError(status, response.reason_phrase, response.text)
        if not 200 <= status < 300:
            logger.warning("Unexpected status %s from Groq: %s", status, response.text)
            raise GroqStatusError(status, response.reason_phrase, response.text)

        try:
            return ChatCompletionResponse.model_validate(response.json())
        except ValueError as exc:
            logger.warning("Groq returned an undecodable body: %s", response.text)
            raise GroqDecodeError(f"Failed to decode Groq API response: {exc}") from exc
