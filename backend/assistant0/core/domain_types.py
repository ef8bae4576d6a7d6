"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - Message roles, credential statuses and wire event types are Enums
    - REPLAYED_ROLES is the only place that decides what the model sees
    - AgentMessage is immutable; history tuples are never mutated in place

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Chat message roles as sent by the client."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# System messages are display-only (intermediate tool steps); never replayed.
REPLAYED_ROLES = frozenset({Role.USER.value, Role.ASSISTANT.value})


class CredentialStatus(str, Enum):
    """Outcome of asking the identity provider for an external access token."""
    USABLE = "usable"
    ABSENT = "absent"
    EXPIRED = "expired"
    INSUFFICIENT_SCOPE = "insufficient_scope"
    UNAVAILABLE = "unavailable"


class WireEventType(str, Enum):
    """SSE event types consumed by the chat client."""
    TEXT = "text"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class AgentMessage:
    """One turn of model-visible history."""
    role: Role
    content: str
