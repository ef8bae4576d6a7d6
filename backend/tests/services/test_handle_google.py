"""Google Handlers - Gmail/Calendar REST calls over httpx.MockTransport.

Tests cover:
    - Empty access token -> CapabilityError at construction
    - Bearer token sent on every request
    - gmail_search flattens metadata headers
    - gmail_create_draft sends a base64url RFC 822 message
    - 401/403 responses map to TOKEN_REJECTED / INSUFFICIENT_SCOPE
"""

import base64
import json

import httpx
import pytest

from assistant0.core.errors import CapabilityError, ToolExecutionError
from assistant0.services.handle_google import GoogleHandlers


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_empty_token_rejected():
    with pytest.raises(CapabilityError):
        GoogleHandlers("  ", httpx.AsyncClient())


async def test_gmail_search_returns_metadata():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/messages"):
            return httpx.Response(200, json={"messages": [{"id": "m1"}]})
        return httpx.Response(200, json={
            "threadId": "t1",
            "snippet": "Lunch tomorrow?",
            "payload": {"headers": [
                {"name": "From", "value": "ana@example.com"},
                {"name": "Subject", "value": "Lunch"},
                {"name": "Date", "value": "Mon, 1 Jan 2024"},
            ]},
        })

    async with _client(handler) as http:
        result = await GoogleHandlers("ya29.t", http).gmail_search({"query": "lunch"})

    assert all(r.headers["Authorization"] == "Bearer ya29.t" for r in requests)
    assert result["messages"] == [{
        "id": "m1", "thread_id": "t1", "from": "ana@example.com",
        "subject": "Lunch", "date": "Mon, 1 Jan 2024", "snippet": "Lunch tomorrow?",
    }]


async def test_gmail_create_draft_encodes_message():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "d1"})

    async with _client(handler) as http:
        result = await GoogleHandlers("ya29.t", http).gmail_create_draft({
            "to": ["bob@example.com"], "subject": "Hi", "message": "Hello Bob",
        })

    raw = base64.urlsafe_b64decode(captured["body"]["message"]["raw"]).decode()
    assert "To: bob@example.com" in raw
    assert "Subject: Hi" in raw
    assert "Hello Bob" in raw
    assert result == {"status": "ok", "draft_id": "d1"}


async def test_calendar_view_flattens_events():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/calendar/v3/calendars/primary/events"
        return httpx.Response(200, json={"items": [
            {"summary": "Standup", "start": {"dateTime": "2024-01-01T09:00:00Z"},
             "end": {"dateTime": "2024-01-01T09:15:00Z"}},
            {"summary": "Holiday", "start": {"date": "2024-01-02"},
             "end": {"date": "2024-01-03"}},
        ]})

    async with _client(handler) as http:
        result = await GoogleHandlers("ya29.t", http).google_calendar_view({})
    assert [e["start"] for e in result["events"]] == [
        "2024-01-01T09:00:00Z", "2024-01-02",
    ]


async def test_calendar_create_returns_link():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["attendees"] == [{"email": "ana@example.com"}]
        return httpx.Response(200, json={"id": "e1", "htmlLink": "https://cal/e1"})

    async with _client(handler) as http:
        result = await GoogleHandlers("ya29.t", http).google_calendar_create({
            "summary": "Sync", "start": "2024-01-01T10:00:00Z",
            "end": "2024-01-01T11:00:00Z", "attendees": ["ana@example.com"],
        })
    assert result == {"status": "ok", "event_id": "e1", "link": "https://cal/e1"}


@pytest.mark.parametrize("status,message,code", [
    (403, "Request had insufficient authentication scopes.", "INSUFFICIENT_SCOPE"),
    (401, "Invalid Credentials", "TOKEN_REJECTED"),
    (500, "Backend Error", "GOOGLE_API_ERROR"),
])
async def test_google_errors_mapped(status, message, code):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": message}})

    async with _client(handler) as http:
        with pytest.raises(ToolExecutionError) as exc:
            await GoogleHandlers("ya29.t", http).google_calendar_view({})
    assert exc.value.code == code
    assert exc.value.message == message
