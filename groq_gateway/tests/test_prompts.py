from __future__ import annotations

import pytest

from groq_gateway.models import ChatMessage
from groq_gateway.prompts import SYSTEM_PROMPT, build_chat_request

HISTORY = [
    ChatMessage(role="user", content="What is Spring Boot?"),
    ChatMessage(role="assistant", content="Spring Boot is a framework."),
    ChatMessage(role="user", content="Is it fast?"),
    ChatMessage(role="assistant", content="Fast enough."),
]


@pytest.mark.parametrize("history_size", [0, 1, 2, 4])
def test_messages_are_system_history_then_user(history_size: int) -> None:
    history = HISTORY[:history_size]

    request = build_chat_request("Tell me more", history, model="m")

    assert len(request.messages) == history_size + 2
    assert request.messages[0] == ChatMessage(role="system", content=SYSTEM_PROMPT)
    assert request.messages[1:-1] == history
    assert request.messages[-1] == ChatMessage(role="user", content="Tell me more")


def test_missing_history_equals_empty_history() -> None:
    assert build_chat_request("hi", None, model="m") == build_chat_request("hi", [], model="m")
    assert build_chat_request("hi", model="m") == build_chat_request("hi", [], model="m")


def test_fixed_generation_parameters() -> None:
    payload = build_chat_request("hi", model="llama-3.1-8b-instant").to_payload()

    assert payload["model"] == "llama-3.1-8b-instant"
    assert payload["temperature"] == 0.7
    assert payload["max_tokens"] == 1000
    assert payload["top_p"] == 0.9
    assert payload["frequency_penalty"] == 0.0
    assert payload["presence_penalty"] == 0.0
    assert set(payload) == {
        "model",
        "messages",
        "temperature",
        "max_tokens",
        "top_p",
        "frequency_penalty",
        "presence_penalty",
    }


def test_builder_does_not_mutate_history() -> None:
    history = list(HISTORY[:2])

    build_chat_request("hi", history, model="m")

    assert history == HISTORY[:2]
