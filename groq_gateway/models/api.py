"""Pydantic schemas exposed by the chat API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .chat import ChatMessage


class ChatRequest(BaseModel):
    """Request payload for a single-message chat."""

    message: Optional[str] = Field(default=None, description="User question or prompt")


class ChatHistoryRequest(BaseModel):
    """Request payload for a chat that carries previous turns."""

    message: Optional[str] = Field(default=None, description="User question or prompt")
    history: Optional[List[ChatMessage]] = Field(
        default=None,
        description="Previous conversation turns, oldest first",
    )


class ChatSuccessResponse(BaseModel):
    """Caller-facing result of a successful completion."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool = True
    response: Optional[str] = Field(default=None, description="Assistant answer")
    tokens_used: Optional[int] = Field(default=None, alias="tokensUsed")
    model: Optional[str] = Field(default=None, description="Model echoed by the provider")
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")
    timestamp: int = Field(..., description="Capture time in epoch milliseconds")


class ChatErrorResponse(BaseModel):
    """Caller-facing result of a failed request."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: str = Field(..., description="Human readable failure description")


class HealthResponse(BaseModel):
    status: str = "UP"
    service: str
    timestamp: str


class ServiceInfoResponse(BaseModel):
    message: str
    endpoints: str
