"""Caller-facing shapes for completions and failures."""
from __future__ import annotations

import time
from typing import Optional

from .models import ChatCompletionResponse, ChatErrorResponse, ChatSuccessResponse


def now_millis() -> int:
    return int(time.time() * 1000)


def shape_response(
    response: ChatCompletionResponse, *, timestamp: Optional[int] = None
) -> ChatSuccessResponse:
    """Extract the first choice, usage and model from ``response``.

    An empty ``choices`` list yields ``None`` for the text and finish reason.
    """

    return ChatSuccessResponse(
        response=response.response_text,
        tokens_used=response.total_tokens,
        model=response.model,
        finish_reason=response.finish_reason,
        timestamp=now_millis() if timestamp is None else timestamp,
    )


def shape_error(error: BaseException | str) -> ChatErrorResponse:
    return ChatErrorResponse(error=str(error))
