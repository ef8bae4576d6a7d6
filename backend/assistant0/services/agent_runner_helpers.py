"""Agent Runner Helpers - pure conversions between our types and Gemini's content format.

Invariants:
    - All functions are pure (stateless, deterministic)
    - History roles map user -> "user", assistant -> "model"
    - build_declarations() rejects capabilities Gemini would refuse, before any
      network call, raising CapabilityError naming the offender
    - iter_parts() yields text and function calls in the order the chunk holds them

Design Decisions:
    - Extracted from agent_runner.py so the loop reads as control flow only
    - Chunk introspection via getattr: works on SDK protos and on test doubles
"""

import re
from collections.abc import Iterator, Sequence
from typing import Any

from assistant0.core.domain_types import AgentMessage, Role
from assistant0.core.errors import CapabilityError
from assistant0.core.provisioning import Capability

_TOOL_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]{0,63}$")

_ROLE_MAP = {Role.USER: "user", Role.ASSISTANT: "model"}


# -- History -------------------------------------------------------------------

def to_gemini_contents(history: Sequence[AgentMessage]) -> list[dict]:
    return [
        {"role": _ROLE_MAP[m.role], "parts": [{"text": m.content}]}
        for m in history
        if m.role in _ROLE_MAP
    ]


def model_turn(text: str, calls: Sequence[dict]) -> dict:
    parts: list[dict] = []
    if text:
        parts.append({"text": text})
    for call in calls:
        parts.append({"function_call": {"name": call["name"], "args": call["args"]}})
    return {"role": "model", "parts": parts}


def function_responses_turn(results: Sequence[tuple[str, dict]]) -> dict:
    return {
        "role": "user",
        "parts": [
            {"function_response": {"name": name, "response": result}}
            for name, result in results
        ],
    }


# -- Tool declarations ---------------------------------------------------------

def build_declarations(capabilities: Sequence[Capability]) -> list[dict]:
    seen: set[str] = set()
    declarations = []
    for c in capabilities:
        if not _TOOL_NAME.match(c.name):
            raise CapabilityError(f"Invalid tool name: {c.name!r}")
        if c.name in seen:
            raise CapabilityError(f"Duplicate tool name: {c.name!r}")
        if (c.parameters or {}).get("type") != "object":
            raise CapabilityError(f"Tool {c.name!r} parameters must be an object schema")
        seen.add(c.name)
        declarations.append(c.declaration())
    return declarations


# -- Stream chunk introspection ------------------------------------------------

def iter_parts(chunk: Any) -> Iterator[tuple[str, Any]]:
    """Yield ("text", str) and ("call", {"name", "args"}) from one stream chunk."""
    for candidate in getattr(chunk, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            fc = getattr(part, "function_call", None)
            if fc is not None and getattr(fc, "name", ""):
                args = getattr(fc, "args", None)
                yield "call", {
                    "name": fc.name,
                    "args": to_plain(args) if args is not None else {},
                }
                continue
            text = getattr(part, "text", "")
            if text:
                yield "text", text


def to_plain(value: Any) -> Any:
    """Convert proto MapComposite/RepeatedComposite trees into dicts/lists."""
    if value is None or isinstance(value, (str, bytes, int, float, bool)):
        return value
    if hasattr(value, "items"):
        return {k: to_plain(v) for k, v in value.items()}
    if hasattr(value, "__iter__"):
        return [to_plain(v) for v in value]
    return value
