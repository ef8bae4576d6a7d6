"""Event Transcoder - agent StreamEvents -> wire events the chat client understands.

Invariants:
    - Lazy and pull-based: one input event is consumed per output decision
    - 1:1-or-drop: never reorders, never merges two events into one
    - Development mode: tool lifecycle events are logged and dropped
    - Otherwise: tool lifecycle events are forwarded with role "system" so the
      client shows intermediate steps without adding them to chat history

Design Decisions:
    - Transport-agnostic: SSE framing happens in api/routes/chat_stream_helpers.py,
      so this module is tested by feeding a list and asserting a list
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator

from assistant0.core.domain_types import Role, WireEventType
from assistant0.core.stream_events import (
    Completion,
    StreamError,
    StreamEvent,
    TokenDelta,
    ToolCallFinished,
    ToolCallStarted,
)

logger = logging.getLogger(__name__)


def transcode_event(event: StreamEvent, development: bool = False) -> dict | None:
    """Map one event; None means drop."""
    if isinstance(event, TokenDelta):
        return {"type": WireEventType.TEXT.value, "data": event.text}

    if isinstance(event, ToolCallStarted):
        if development:
            logger.info(
                "Tool call started: %s(%s)", event.tool, event.input,
                extra={"tool_name": event.tool},
            )
            return None
        return {
            "type": WireEventType.TOOL_CALL.value,
            "data": {
                "id": event.call_id,
                "role": Role.SYSTEM.value,
                "tool": event.tool,
                "input": event.input,
            },
        }

    if isinstance(event, ToolCallFinished):
        if development:
            logger.info(
                "Tool call finished: %s -> %s", event.tool, str(event.output)[:300],
                extra={"tool_name": event.tool},
            )
            return None
        return {
            "type": WireEventType.TOOL_RESULT.value,
            "data": {
                "id": event.call_id,
                "role": Role.SYSTEM.value,
                "tool": event.tool,
                "output": event.output,
                "is_error": event.is_error,
            },
        }

    if isinstance(event, Completion):
        return {
            "type": WireEventType.DONE.value,
            "data": {"finish_reason": event.finish_reason, "error": False},
        }

    if isinstance(event, StreamError):
        return {
            "type": WireEventType.ERROR.value,
            "data": {"code": event.code, "message": event.message},
        }

    logger.warning("Dropping unknown stream event: %r", event)
    return None


async def transcode(
    events: AsyncIterable[StreamEvent], development: bool = False,
) -> AsyncIterator[dict]:
    async for event in events:
        wire = transcode_event(event, development)
        if wire is not None:
            yield wire
