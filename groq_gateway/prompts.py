"""Construction of outbound chat-completion requests."""
from __future__ import annotations

from typing import Iterable, Optional

from .models import ChatCompletionRequest, ChatMessage

SYSTEM_PROMPT = (
    "You are a helpful, professional assistant. "
    "Provide clear, concise, and accurate answers. "
    "If you don't know something, say so honestly."
)

TEMPERATURE = 0.7
MAX_TOKENS = 1000
TOP_P = 0.9
FREQUENCY_PENALTY = 0.0
PRESENCE_PENALTY = 0.0


def build_chat_request(
    user_message: str,
    history: Optional[Iterable[ChatMessage]] = None,
    *,
    model: str,
) -> ChatCompletionRequest:
    """Return the request for ``user_message`` following ``history``.

    The system instruction always comes first and the new user message last.
    ``user_message`` is expected to be validated by the caller.
    """

    messages = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
    messages.extend(history or ())
    messages.append(ChatMessage(role="user", content=user_message))

    return ChatCompletionRequest(
        model=model,
        messages=messages,
        temperature=TEMPERATURE,
        max_tokens=MAX_TOKENS,
        top_p=TOP_P,
        frequency_penalty=FREQUENCY_PENALTY,
        presence_penalty=PRESENCE_PENALTY,
    )
