"""Chat Stream Consumer - submits the conversation and renders the SSE reply.

Invariants:
    - At most one request in flight; submit() is a no-op while loading or blocked
    - loading is True from submission until completion or error, never longer
    - Text deltas are appended in arrival order to the current assistant message
    - After an error event no further deltas are applied; partial text stays
    - Every failure moves the error store to Blocked; HTTP-layer failures also notify
    - A 2xx stream that ends without done/error counts as a stream error
    - retry() resolves the re-auth path against the chat endpoint before navigating

Design Decisions:
    - Error rules delegated to error_state.transition (pure), IO stays here
    - notify/navigate injected so the consumer runs without a UI
"""

import json
import logging
import uuid
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from assistant0.client.error_state import (
    CLEAR,
    Completed,
    ErrorState,
    ResponseReceived,
    RetryRequested,
    StreamErrored,
    TransportFailed,
    transition,
)

logger = logging.getLogger(__name__)

DEFAULT_REAUTH_PATH = "/auth/logout?returnTo=/"


@dataclass(frozen=True)
class Notification:
    """Transient, dismissible toast. Separate from the blocking banner."""
    title: str
    description: str


class ChatStreamConsumer:
    """Client side of POST /api/chat."""

    def __init__(
        self,
        endpoint: str,
        http: httpx.AsyncClient,
        notify: Callable[[Notification], None] | None = None,
        navigate: Callable[[str], object] | None = None,
        reauth_url: str = DEFAULT_REAUTH_PATH,
    ):
        self._endpoint = endpoint
        self._http = http
        self._notify = notify or (lambda _n: None)
        self._navigate = navigate or webbrowser.open
        self._reauth_url = reauth_url
        self.messages: list[dict] = []
        self.loading = False
        self.error_state: ErrorState = CLEAR
        self._current: dict | None = None

    @property
    def input_disabled(self) -> bool:
        return self.error_state.input_disabled

    async def submit(self, text: str) -> bool:
        """Send text with the full history. Returns False when ignored."""
        if self.loading or self.error_state.blocked:
            return False
        self.loading = True
        self._current = None
        self.messages.append(_entry("user", text))
        try:
            await self._exchange()
        except httpx.HTTPError as e:
            message = str(e) or type(e).__name__
            logger.warning(f"Chat request failed: {message}")
            self._apply(TransportFailed(message))
            self._notify(Notification("Error while processing your request", message))
        finally:
            self.loading = False
            self._current = None
        return True

    def retry(self) -> None:
        """Re-establish the session, then unblock input."""
        self._navigate(str(httpx.URL(self._endpoint).join(self._reauth_url)))
        self._apply(RetryRequested())

    # -- Internal ---------------------------------------------------------------

    async def _exchange(self) -> None:
        payload = {"messages": [dict(m) for m in self.messages]}
        async with self._http.stream("POST", self._endpoint, json=payload) as response:
            if not response.is_success:
                body = await response.aread()
                self._apply(ResponseReceived(
                    response.status_code,
                    _error_message(body, response.status_code),
                ))
                return
            self._apply(ResponseReceived(response.status_code))
            async for line in response.aiter_lines():
                event = _parse_sse_line(line)
                if event is None:
                    continue
                if not self._handle_event(event):
                    return
            self._apply(StreamErrored("Stream ended unexpectedly"))

    def _handle_event(self, event: dict) -> bool:
        """Apply one wire event. Returns False when the stream is finished."""
        kind = event.get("type")
        data = event.get("data")
        if kind == "text":
            self._append_text(data if isinstance(data, str) else "")
        elif kind in ("tool_call", "tool_result"):
            self.messages.append(_entry("system", json.dumps(data), kind=kind))
            self._current = None
        elif kind == "done":
            self._apply(Completed())
            self.loading = False
            return False
        elif kind == "error":
            message = data.get("message") if isinstance(data, dict) else data
            self._apply(StreamErrored(str(message or "")))
            return False
        return True

    def _append_text(self, text: str) -> None:
        if self._current is None:
            self._current = _entry("assistant", "")
            self.messages.append(self._current)
        self._current["content"] += text

    def _apply(self, event) -> None:
        self.error_state = transition(self.error_state, event)


def _entry(role: str, content: str, kind: str | None = None) -> dict:
    entry = {"id": uuid.uuid4().hex, "role": role, "content": content}
    if kind:
        entry["tool_payload"] = {"type": kind}
    return entry


def _parse_sse_line(line: str) -> dict | None:
    if not line.startswith("data:"):
        return None
    raw = line[len("data:"):].strip()
    if not raw:
        return None
    try:
        event = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Skipping malformed SSE line: {raw[:100]}")
        return None
    return event if isinstance(event, dict) else None


def _error_message(body: bytes, status_code: int) -> str:
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), str):
        return parsed["error"]
    return f"Request failed with status {status_code}"
