"""Stream Events - tagged variants produced by the Agent Invoker, plus its input context.

Invariants:
    - Events are immutable and emitted in generation order
    - A turn ends with exactly one Completion or StreamError
    - AgentSessionContext is built once per request and never mutated
"""

from dataclasses import dataclass, field
from typing import Any, Union

from assistant0.core.domain_types import AgentMessage
from assistant0.core.provisioning import Capability, ProvisionResult


@dataclass(frozen=True)
class TokenDelta:
    text: str


@dataclass(frozen=True)
class ToolCallStarted:
    call_id: str
    tool: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolCallFinished:
    call_id: str
    tool: str
    output: dict[str, Any] = field(default_factory=dict)
    is_error: bool = False


@dataclass(frozen=True)
class Completion:
    content: str
    finish_reason: str = "stop"


@dataclass(frozen=True)
class StreamError:
    message: str
    code: str = "INTERNAL_ERROR"


StreamEvent = Union[TokenDelta, ToolCallStarted, ToolCallFinished, Completion, StreamError]


@dataclass(frozen=True)
class AgentSessionContext:
    """Everything one agent run needs: history, tools, instructions."""
    history: tuple[AgentMessage, ...]
    capabilities: tuple[Capability, ...]
    template: str
    degradation_note: str | None = None

    @property
    def system_instruction(self) -> str:
        return self.template + (self.degradation_note or "")

    @classmethod
    def build(
        cls, history: tuple[AgentMessage, ...], provisioned: ProvisionResult,
        template: str,
    ) -> "AgentSessionContext":
        return cls(
            history=tuple(history),
            capabilities=provisioned.capabilities,
            template=template,
            degradation_note=provisioned.degradation_note,
        )
