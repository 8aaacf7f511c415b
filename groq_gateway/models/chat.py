"""Pydantic models for the Groq chat-completions wire format."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """Single message item in a chat conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(..., description="Role of the author (system, user, assistant)")
    content: str = Field(..., description="Text content of the message")


class ChatCompletionRequest(BaseModel):
    """Outbound payload for the chat-completions endpoint."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model: str = Field(..., min_length=1, description="Model identifier")
    messages: List[ChatMessage] = Field(..., min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional limit for generated tokens",
    )
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    presence_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)

    def to_payload(self) -> dict:
        """Return the JSON body sent to the provider."""

        return self.model_dump(mode="json", exclude_none=True)


class AssistantMessage(BaseModel):
    """Message carried by a completion choice."""

    model_config = ConfigDict(frozen=True)

    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    """One candidate completion returned by the provider."""

    model_config = ConfigDict(frozen=True)

    index: int = 0
    message: Optional[AssistantMessage] = None
    finish_reason: Optional[str] = Field(
        default=None, description="stop, length, content_filter or provider-defined"
    )


class TokenUsage(BaseModel):
    """Token accounting reported by the provider."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    """Provider reply for a chat completion."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[ChatChoice] = Field(default_factory=list)
    usage: Optional[TokenUsage] = None

    @property
    def first_choice(self) -> Optional[ChatChoice]:
        return self.choices[0] if self.choices else None

    @property
    def response_text(self) -> Optional[str]:
        choice = self.first_choice
        if choice is None or choice.message is None:
            return None
        return choice.message.content

    @property
    def finish_reason(self) -> Optional[str]:
        choice = self.first_choice
        return choice.finish_reason if choice is not None else None

    @property
    def total_tokens(self) -> Optional[int]:
        return self.usage.total_tokens if self.usage is not None else None
