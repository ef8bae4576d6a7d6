"""Chat Stream Consumer - client behaviour against scripted /api/chat responses.

Tests cover:
    - HTTP 403 {"error": "forbidden"} blocks with exactly that text; retry re-auths
    - Rendered content equals the in-order concatenation of deltas
    - No request while loading or blocked (at most one in flight)
    - Transport failure blocks and raises a one-shot notification
    - Non-JSON error body -> message synthesized from the status
    - Stream error event stops delta application, partial text stays
"""

import asyncio
import json

import httpx
import pytest

from assistant0.client.error_state import BLOCKED_PLACEHOLDER
from assistant0.client.stream_consumer import ChatStreamConsumer, Notification

ENDPOINT = "http://test/api/chat"


def _sse(*events):
    return "".join(f"data: {json.dumps(e)}\n\n" for e in events).encode()


def _text(t):
    return {"type": "text", "data": t}


DONE = {"type": "done", "data": {"finish_reason": "stop", "error": False}}


def _consumer(handler, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatStreamConsumer(ENDPOINT, http, **kwargs)


def _stream_response(*events):
    return httpx.Response(
        200, content=_sse(*events), headers={"content-type": "text/event-stream"},
    )


async def test_forbidden_blocks_and_retry_reauthenticates():
    requests = []
    navigated = []

    def handler(request):
        requests.append(request)
        return httpx.Response(403, json={"error": "forbidden"})

    consumer = _consumer(handler, navigate=navigated.append)
    assert await consumer.submit("hello")

    assert consumer.error_state.message == "forbidden"
    assert consumer.input_disabled
    assert consumer.error_state.placeholder == BLOCKED_PLACEHOLDER
    assert not consumer.loading

    assert not await consumer.submit("again")
    assert len(requests) == 1

    consumer.retry()
    assert navigated == ["http://test/auth/logout?returnTo=/"]
    assert not consumer.error_state.blocked
    assert not consumer.input_disabled


@pytest.mark.parametrize("deltas", [
    ["a", "b", "c", "d"],
    ["Hel", "lo, ", "wor", "ld", "!"],
    ["x"],
])
async def test_rendered_content_is_ordered_concatenation(deltas):
    consumer = _consumer(
        lambda request: _stream_response(*[_text(d) for d in deltas], DONE),
    )
    await consumer.submit("hi")
    assert consumer.messages[-1]["role"] == "assistant"
    assert consumer.messages[-1]["content"] == "".join(deltas)
    assert not consumer.error_state.blocked


async def test_reordered_deltas_render_differently():
    deltas = ["a", "b", "c", "d"]
    swapped = ["c", "b", "a", "d"]
    rendered = []
    for order in (deltas, swapped):
        consumer = _consumer(
            lambda request, order=order: _stream_response(
                *[_text(d) for d in order], DONE,
            ),
        )
        await consumer.submit("hi")
        rendered.append(consumer.messages[-1]["content"])
    assert rendered[0] != rendered[1]


async def test_history_sent_with_every_submission():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return _stream_response(_text("ok"), DONE)

    consumer = _consumer(handler)
    await consumer.submit("first")
    await consumer.submit("second")
    assert [m["role"] for m in bodies[1]["messages"]] == ["user", "assistant", "user"]
    assert bodies[1]["messages"][-1]["content"] == "second"


async def test_at_most_one_request_in_flight():
    release = asyncio.Event()
    calls = []

    async def handler(request):
        calls.append(request)
        await release.wait()
        return _stream_response(_text("done"), DONE)

    consumer = _consumer(handler)
    first = asyncio.create_task(consumer.submit("one"))
    await asyncio.sleep(0)
    while not calls:
        await asyncio.sleep(0)

    assert consumer.loading
    assert not await consumer.submit("two")
    release.set()
    assert await first
    assert len(calls) == 1
    assert not consumer.loading


async def test_transport_failure_blocks_and_notifies():
    notifications = []

    def handler(request):
        raise httpx.ConnectError("Failed to fetch")

    consumer = _consumer(handler, notify=notifications.append)
    await consumer.submit("hi")

    assert consumer.error_state.message == "Failed to fetch"
    assert notifications == [
        Notification("Error while processing your request", "Failed to fetch"),
    ]
    assert not consumer.loading


async def test_non_json_error_body_synthesizes_message():
    consumer = _consumer(lambda request: httpx.Response(502, text="<html>Bad gateway"))
    await consumer.submit("hi")
    assert consumer.error_state.message == "Request failed with status 502"


async def test_stream_error_keeps_partial_text_and_stops():
    consumer = _consumer(lambda request: _stream_response(
        _text("partial "),
        {"type": "error", "data": {"code": "GEMINI_API_ERROR", "message": "reset"}},
        _text("ignored"),
    ))
    await consumer.submit("hi")
    assert consumer.messages[-1]["content"] == "partial "
    assert consumer.error_state.message == "reset"


async def test_tool_events_become_system_messages():
    consumer = _consumer(lambda request: _stream_response(
        _text("Let me check. "),
        {"type": "tool_call", "data": {"id": "call_1", "role": "system",
                                       "tool": "calculator", "input": {}}},
        {"type": "tool_result", "data": {"id": "call_1", "role": "system",
                                         "tool": "calculator", "output": {}}},
        _text("It is 4."),
        DONE,
    ))
    await consumer.submit("2+2?")
    assert [m["role"] for m in consumer.messages] == [
        "user", "assistant", "system", "system", "assistant",
    ]
    assert consumer.messages[-1]["content"] == "It is 4."


async def test_retry_keeps_absolute_reauth_url():
    navigated = []
    consumer = _consumer(
        lambda request: httpx.Response(401, json={"error": "expired"}),
        navigate=navigated.append,
        reauth_url="https://app.example.com/auth/login",
    )
    await consumer.submit("hi")
    consumer.retry()
    assert navigated == ["https://app.example.com/auth/login"]


async def test_stream_without_terminal_event_blocks():
    consumer = _consumer(lambda request: _stream_response(_text("half an ans")))
    await consumer.submit("hi")
    assert consumer.messages[-1]["content"] == "half an ans"
    assert consumer.error_state.message == "Stream ended unexpectedly"
    assert not consumer.loading


async def test_non_transport_http_error_blocks_and_notifies():
    notifications = []

    def handler(request):
        raise httpx.DecodingError("invalid gzip data")

    consumer = _consumer(handler, notify=notifications.append)
    await consumer.submit("hi")

    assert consumer.error_state.message == "invalid gzip data"
    assert notifications == [
        Notification("Error while processing your request", "invalid gzip data"),
    ]
    assert not consumer.loading
