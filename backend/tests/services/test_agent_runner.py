"""Integration Tests: AgentInvoker - streamed tool-calling loop over Gemini.

Invariants:
    - Token deltas yielded in chunk order, Completion last
    - Tool calls execute through the request's capabilities and are fed back
    - Tool errors never crash the loop
    - Iteration limit yields a StreamError instead of looping forever
    - Degradation note reaches the system instruction

Design Decisions:
    - Mock at the Gemini boundary (MockGeminiClient), real ToolDispatch
"""

import pytest

from assistant0.core.domain_types import AgentMessage, Role
from assistant0.core.errors import CapabilityError, GeminiAPIError
from assistant0.core.provisioning import Capability
from assistant0.core.stream_events import (
    AgentSessionContext,
    Completion,
    StreamError,
    TokenDelta,
    ToolCallFinished,
    ToolCallStarted,
)
from assistant0.services.agent_runner import AgentInvoker

from tests.services.mock_gemini import (
    FailingStream,
    MockGeminiClient,
    text_response,
    tool_response,
)

SCHEMA = {"type": "object", "properties": {"expression": {"type": "string"}}}


async def _calculator(input_data):
    return {"status": "ok", "result": 4}


async def _broken(input_data):
    raise RuntimeError("kaput")


def _context(capabilities=(), note=None):
    return AgentSessionContext(
        history=(AgentMessage(Role.USER, "What is 2+2?"),),
        capabilities=tuple(capabilities),
        template="You are Assistant0.",
        degradation_note=note,
    )


async def _collect(invoker, context):
    return [e async for e in invoker.invoke(context)]


# ==============================================================================
# Core Flows
# ==============================================================================


async def test_text_response_streams_deltas_then_completion():
    client = MockGeminiClient([text_response("Hel", "lo", "!")])
    events = await _collect(AgentInvoker(client), _context())
    assert events == [
        TokenDelta("Hel"), TokenDelta("lo"), TokenDelta("!"), Completion("Hello!"),
    ]


async def test_tool_call_round_trip():
    caps = [Capability("calculator", "math", SCHEMA, _calculator)]
    client = MockGeminiClient([
        tool_response("calculator", {"expression": "2+2"}, text="Checking. "),
        text_response("It is 4."),
    ])
    events = await _collect(AgentInvoker(client), _context(caps))

    assert events == [
        TokenDelta("Checking. "),
        ToolCallStarted("call_1", "calculator", {"expression": "2+2"}),
        ToolCallFinished("call_1", "calculator", {"status": "ok", "result": 4}),
        TokenDelta("It is 4."),
        Completion("Checking. It is 4."),
    ]
    second_contents = client.calls[1]["contents"]
    assert second_contents[-2]["role"] == "model"
    assert second_contents[-1] == {
        "role": "user",
        "parts": [{"function_response": {
            "name": "calculator", "response": {"status": "ok", "result": 4},
        }}],
    }


async def test_tool_error_fed_back_not_raised():
    caps = [Capability("calculator", "math", SCHEMA, _broken)]
    client = MockGeminiClient([
        tool_response("calculator", {"expression": "1"}),
        text_response("Sorry, the calculator failed."),
    ])
    events = await _collect(AgentInvoker(client), _context(caps))
    finished = [e for e in events if isinstance(e, ToolCallFinished)]
    assert finished[0].is_error
    assert isinstance(events[-1], Completion)


async def test_unknown_tool_reported_as_error():
    client = MockGeminiClient([
        tool_response("gmail_search", {"query": "x"}),
        text_response("I can't access Gmail right now."),
    ])
    events = await _collect(AgentInvoker(client), _context())
    finished = [e for e in events if isinstance(e, ToolCallFinished)]
    assert finished[0].output["error_code"] == "UNKNOWN_TOOL"


async def test_max_iterations_yields_stream_error():
    caps = [Capability("calculator", "math", SCHEMA, _calculator)]
    client = MockGeminiClient([
        tool_response("calculator", {"expression": "1"}) for _ in range(2)
    ])
    events = await _collect(AgentInvoker(client, max_iterations=2), _context(caps))
    assert isinstance(events[-1], StreamError)
    assert events[-1].code == "AGENT_LOOP_EXCEEDED"
    assert not any(isinstance(e, Completion) for e in events)


# ==============================================================================
# Context & Errors
# ==============================================================================


async def test_system_instruction_includes_degradation_note():
    client = MockGeminiClient([text_response("ok")])
    note = "\n\nNOTE: Google integrations (Gmail, Calendar) are currently unavailable."
    await _collect(AgentInvoker(client), _context(note=note))
    assert client.calls[0]["system"] == "You are Assistant0." + note


async def test_declarations_passed_to_model():
    caps = [Capability("calculator", "math", SCHEMA, _calculator)]
    client = MockGeminiClient([text_response("ok")])
    await _collect(AgentInvoker(client), _context(caps))
    assert client.calls[0]["tools"] == [
        {"name": "calculator", "description": "math", "parameters": SCHEMA},
    ]
    assert client.calls[0]["contents"] == [
        {"role": "user", "parts": [{"text": "What is 2+2?"}]},
    ]


async def test_invalid_declaration_raises_capability_error_lazily():
    caps = [Capability("bad name!", "x", SCHEMA, _calculator)]
    client = MockGeminiClient([text_response("never")])
    stream = AgentInvoker(client).invoke(_context(caps))
    assert client.calls == []
    with pytest.raises(CapabilityError):
        await anext(stream)


async def test_generation_error_propagates():
    client = MockGeminiClient([GeminiAPIError("quota", "rate_limit", 429)])
    with pytest.raises(GeminiAPIError):
        await _collect(AgentInvoker(client), _context())


async def test_mid_stream_failure_after_partial_text():
    client = MockGeminiClient([
        FailingStream(text_response("partial"), GeminiAPIError("reset", "stream_error")),
    ])
    seen = []
    with pytest.raises(GeminiAPIError):
        async for event in AgentInvoker(client).invoke(_context()):
            seen.append(event)
    assert seen == [TokenDelta("partial")]
