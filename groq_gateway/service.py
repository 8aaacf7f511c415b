"""Chat orchestration between the request builder and the Groq client."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from .clients import GroqClient, GroqError
from .models import ChatCompletionResponse, ChatMessage
from .prompts import build_chat_request

logger = logging.getLogger(__name__)


class ChatService:
    """Build chat requests for the configured model and send them to Groq."""

    def __init__(self, client: GroqClient, model: str) -> None:
        self._client = client
        self._model = model

    async def chat(self, user_message: str) -> ChatCompletionResponse:
        logger.info("Received user message: %s", user_message)
        return await self._complete(user_message, ())

    async def chat_with_history(
        self,
        user_message: str,
        history: Optional[Sequence[ChatMessage]] = None,
    ) -> ChatCompletionResponse:
        history = history or ()
        logger.info(
            "Chat with history. User message: %s, History size: %s",
            user_message,
            len(history),
        )
        return await self._complete(user_message, history)

    async def _complete(
        self, user_message: str, history: Sequence[ChatMessage]
    ) -> ChatCompletionResponse:
        request = build_chat_request(user_message, history, model=self._model)
        logger.debug(
            "Built request with model: %s, messages count: %s",
            request.model,
            len(request.messages),
        )
        try:
            response = await self._client.create_chat_completion(request)
        except GroqError as exc:
            logger.error("Error calling Groq API: %s", exc)
            raise
        logger.info("Received response from Groq API. Tokens used: %s", response.total_tokens)
        return response
