"""Pydantic schemas used by the Groq gateway."""
from .api import (
    ChatErrorResponse,
    ChatHistoryRequest,
    ChatRequest,
    ChatSuccessResponse,
    HealthResponse,
    ServiceInfoResponse,
)
from .chat import (
    AssistantMessage,
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    TokenUsage,
)

__all__ = [
    "AssistantMessage",
    "ChatChoice",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "TokenUsage",
    "ChatRequest",
    "ChatHistoryRequest",
    "ChatSuccessResponse",
    "ChatErrorResponse",
    "HealthResponse",
    "ServiceInfoResponse",
]
