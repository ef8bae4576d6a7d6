"""Agent Invoker - async tool-calling loop over a streamed Gemini generation.

Invariants:
    - Events are yielded in generation order, as soon as each chunk arrives
    - Every run ends with exactly one Completion or StreamError; no TokenDelta
      follows either
    - Max iterations bounded (agent_max_iterations); exceeding yields StreamError
    - Tool errors never crash the loop: they become ToolCallFinished(is_error=True)
      and are fed back to the model as the function response
    - Generation errors (GeminiAPIError) propagate to the caller; the transport
      layer decides whether that is an HTTP error or an in-stream error event

Design Decisions:
    - Lazy async generator: nothing runs until the first __anext__, so tool
      declaration problems (CapabilityError) surface when the handler primes it
    - System instruction = template + degradation note, taken from the context
    - Pure helpers live in agent_runner_helpers.py
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from assistant0.core.errors import AgentLoopExceededError, ErrorContext
from assistant0.core.stream_events import (
    AgentSessionContext,
    Completion,
    StreamError,
    StreamEvent,
    TokenDelta,
    ToolCallFinished,
    ToolCallStarted,
)
from assistant0.services.agent_runner_helpers import (
    build_declarations,
    function_responses_turn,
    iter_parts,
    model_turn,
    to_gemini_contents,
)
from assistant0.services.tool_dispatch import ToolDispatch

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    def stream_message(
        self, *, system: str, tools: list[dict], contents: list[dict],
        context: ErrorContext | None = None,
    ) -> Any: ...


class AgentInvoker:
    """Drives the agent engine for one AgentSessionContext."""

    def __init__(self, model_client: ModelClient, max_iterations: int = 10):
        self.client = model_client
        self.max_iterations = max_iterations

    async def invoke(self, context: AgentSessionContext) -> AsyncIterator[StreamEvent]:
        """Async generator yielding StreamEvents for one request."""
        declarations = build_declarations(context.capabilities)
        dispatch = ToolDispatch(context.capabilities)
        contents = to_gemini_contents(context.history)
        try:
            async for event in self._iteration_loop(context, declarations, dispatch, contents):
                yield event
        except asyncio.CancelledError:
            logger.info("Agent stream cancelled (client disconnect)")
            raise

    async def _iteration_loop(self, context, declarations, dispatch, contents):
        transcript: list[str] = []
        call_seq = 0

        for _ in range(self.max_iterations):
            text_parts: list[str] = []
            calls: list[dict] = []
            async with self.client.stream_message(
                system=context.system_instruction,
                tools=declarations,
                contents=contents,
                context=ErrorContext(),
            ) as stream:
                async for chunk in stream:
                    for kind, value in iter_parts(chunk):
                        if kind == "text":
                            text_parts.append(value)
                            yield TokenDelta(value)
                        else:
                            calls.append(value)

            turn_text = "".join(text_parts)
            transcript.append(turn_text)
            contents.append(model_turn(turn_text, calls))

            if not calls:
                yield Completion("".join(transcript))
                return

            results = []
            for call in calls:
                call_seq += 1
                call_id = f"call_{call_seq}"
                yield ToolCallStarted(call_id, call["name"], call["args"])
                result = await dispatch.execute(call["name"], call["args"])
                yield ToolCallFinished(
                    call_id, call["name"], result,
                    is_error=result.get("status") == "error",
                )
                results.append((call["name"], result))
            contents.append(function_responses_turn(results))

        error = AgentLoopExceededError(self.max_iterations)
        logger.error(error.message, extra={"error_code": error.code})
        yield StreamError(error.message, error.code)
