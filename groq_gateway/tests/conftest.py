from __future__ import annotations

import asyncio
import json
import os
import sys
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, ContextManager, Dict, List, Optional, Union

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("GROQ_GATEWAY_API_KEY", "test-key")
os.environ.setdefault("GROQ_GATEWAY_MODEL", "llama-3.1-8b-instant")

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from groq_gateway import main
from groq_gateway.clients import GroqClient

TEST_MODEL = "llama-3.1-8b-instant"

ProviderReply = Union[Callable[[], httpx.Response], Exception]


def make_completion_body(
    content: Optional[str] = "Java is a programming language.",
    *,
    total_tokens: int = 54,
    finish_reason: str = "stop",
    model: str = TEST_MODEL,
    choices: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    if choices is None:
        choices = [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": finish_reason,
            }
        ]
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1705934400,
        "model": model,
        "choices": choices,
        "usage": {
            "prompt_tokens": 40,
            "completion_tokens": total_tokens - 40,
            "total_tokens": total_tokens,
        },
    }


class FakeGroqProvider:
    """Mock transport handler recording requests and replaying queued replies.

    Replies are consumed in order; the last one is repeated for any further
    request.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._replies: List[ProviderReply] = []

    def reply(self, *replies: ProviderReply) -> "FakeGroqProvider":
        self._replies.extend(replies)
        return self

    def reply_json(self, body: Dict[str, Any], status_code: int = 200) -> "FakeGroqProvider":
        return self.reply(lambda: httpx.Response(status_code, json=body))

    def reply_text(self, status_code: int, text: str) -> "FakeGroqProvider":
        return self.reply(lambda: httpx.Response(status_code, text=text))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._replies:
            return httpx.Response(200, json=make_completion_body())
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply()

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture()
def completion_body() -> Callable[..., Dict[str, Any]]:
    return make_completion_body


@pytest.fixture()
def groq_provider() -> FakeGroqProvider:
    return FakeGroqProvider()


@pytest.fixture()
def groq_client_factory(
    groq_provider: FakeGroqProvider,
) -> Callable[..., GroqClient]:
    def factory(**kwargs: Any) -> GroqClient:
        options: Dict[str, Any] = {
            "api_key": "test-key",
            "base_url": "https://api.groq.test/openai/v1",
            "timeout": 5.0,
        }
        options.update(kwargs)
        return GroqClient(transport=httpx.MockTransport(groq_provider), **options)

    return factory


@contextmanager
def serving(groq_client: GroqClient) -> Iterator[TestClient]:
    main.app.dependency_overrides[main.get_groq_client] = lambda: groq_client
    try:
        with TestClient(main.app) as http_client:
            yield http_client
    finally:
        main.app.dependency_overrides.clear()
        asyncio.run(groq_client.aclose())


@pytest.fixture()
def serve_app() -> Callable[[GroqClient], ContextManager[TestClient]]:
    return serving


@pytest.fixture()
def client(
    groq_client_factory: Callable[..., GroqClient],
) -> Generator[TestClient, None, None]:
    with serving(groq_client_factory()) as http_client:
        yield http_client
