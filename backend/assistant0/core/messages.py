"""History Filtering - pure conversion from client messages to model-visible history.

Invariants:
    - Only user/assistant messages are replayed to the agent, in original order
    - Input objects are never mutated
    - Works on anything with .role/.content (pydantic ChatMessage or plain dicts)
"""

from collections.abc import Iterable
from typing import Any

from assistant0.core.domain_types import REPLAYED_ROLES, AgentMessage, Role


def _field(message: Any, name: str) -> Any:
    if isinstance(message, dict):
        return message.get(name)
    return getattr(message, name, None)


def filter_history(messages: Iterable[Any]) -> list[Any]:
    """Drop every message whose role is not user/assistant."""
    return [m for m in messages if _field(m, "role") in REPLAYED_ROLES]


def to_agent_messages(messages: Iterable[Any]) -> tuple[AgentMessage, ...]:
    """Filter then convert to the Agent Invoker's message representation."""
    return tuple(
        AgentMessage(
            role=Role(_field(m, "role")),
            content=_field(m, "content") or "",
        )
        for m in filter_history(messages)
    )
