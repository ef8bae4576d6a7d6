"""Chat Schemas - request body and message models for /api/chat.

Invariants:
    - ChatMessage.role accepts any string: unknown roles are filtered, not rejected
    - ChatRequest.messages defaults to [] (an empty history is valid input)
"""

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One chat message as exchanged with the client."""
    id: str = Field(default_factory=lambda: uuid4().hex)
    role: str = Field(min_length=1, max_length=32)
    content: str = Field(default="", max_length=100_000)
    tool_payload: dict[str, Any] | None = None


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)

