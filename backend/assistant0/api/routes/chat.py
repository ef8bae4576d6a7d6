"""Chat Route - POST /api/chat streams the agent's reply as SSE.

Invariants:
    - Request body {"messages": [...]} validated by ChatRequest
    - Pre-stream failures are raised and rendered by the global error handlers
    - Success is always 200 text/event-stream, even when capabilities degraded
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Header
from fastapi.responses import StreamingResponse

from assistant0.api.routes.chat_stream_helpers import (
    SSE_HEADERS,
    bearer_token,
    build_request_handler,
    sse_lines,
)
from assistant0.config import Settings, get_settings
from assistant0.schemas.chat import ChatRequest
from assistant0.services.request_handler import ChatRequestHandler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])


def get_request_handler(
    settings: Settings = Depends(get_settings),
) -> ChatRequestHandler:
    return build_request_handler(settings)


@router.post("/chat")
async def chat(
    body: ChatRequest,
    authorization: str | None = Header(default=None),
    handler: ChatRequestHandler = Depends(get_request_handler),
):
    """Run the agent over the chat history and stream its output."""
    stream = await handler.handle(body.messages, bearer_token(authorization))

    async def event_generator() -> AsyncIterator[str]:
        try:
            async for line in sse_lines(stream.events()):
                yield line
        except asyncio.CancelledError:
            logger.info("Client disconnected from chat stream")
            return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
