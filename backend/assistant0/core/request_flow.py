"""Request Flow - the chat request's fallback cascade as one explicit state machine.

Invariants:
    - TRANSITIONS is the single source of truth: every fallback path is a row
    - Unknown (state, trigger) pairs raise InvalidTransitionError (programming error)
    - DONE and FAILED are terminal
    - DEGRADED can only lead to INVOKING: there is at most one fallback per request

Design Decisions:
    - Replaces nested try/except cascades with a table so each path is enumerable
      and tested row by row (tests/core/test_request_flow.py)
    - RequestFlow keeps the visited path for logging; it is per-request state and
      never shared
"""

from enum import Enum

from assistant0.core.errors import InvalidTransitionError


class HandlerState(str, Enum):
    PROVISIONING = "provisioning"
    DEGRADED = "degraded"
    INVOKING = "invoking"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


class Trigger(str, Enum):
    PRECONDITION_FAILED = "precondition_failed"
    CAPABILITIES_READY = "capabilities_ready"
    CAPABILITIES_DEGRADED = "capabilities_degraded"
    EXTENDED_BUILD_FAILED = "extended_build_failed"
    STREAM_OPENED = "stream_opened"
    STREAM_CLOSED = "stream_closed"
    UNEXPECTED_ERROR = "unexpected_error"


TRANSITIONS: dict[tuple[HandlerState, Trigger], HandlerState] = {
    # Provisioning
    (HandlerState.PROVISIONING, Trigger.PRECONDITION_FAILED): HandlerState.FAILED,
    (HandlerState.PROVISIONING, Trigger.CAPABILITIES_READY): HandlerState.INVOKING,
    (HandlerState.PROVISIONING, Trigger.CAPABILITIES_DEGRADED): HandlerState.DEGRADED,
    (HandlerState.PROVISIONING, Trigger.UNEXPECTED_ERROR): HandlerState.FAILED,

    # Degraded: base capabilities + explanatory note
    (HandlerState.DEGRADED, Trigger.CAPABILITIES_READY): HandlerState.INVOKING,
    (HandlerState.DEGRADED, Trigger.UNEXPECTED_ERROR): HandlerState.FAILED,

    # Invoking: the agent stream is being opened
    (HandlerState.INVOKING, Trigger.EXTENDED_BUILD_FAILED): HandlerState.DEGRADED,
    (HandlerState.INVOKING, Trigger.STREAM_OPENED): HandlerState.STREAMING,
    (HandlerState.INVOKING, Trigger.UNEXPECTED_ERROR): HandlerState.FAILED,

    # Streaming: errors after the first event travel inside the stream
    (HandlerState.STREAMING, Trigger.STREAM_CLOSED): HandlerState.DONE,
}

TERMINAL_STATES = frozenset({HandlerState.DONE, HandlerState.FAILED})


def next_state(state: HandlerState, trigger: Trigger) -> HandlerState:
    try:
        return TRANSITIONS[(state, trigger)]
    except KeyError:
        raise InvalidTransitionError(state.value, trigger.value) from None


class RequestFlow:
    """Tracks one request's walk through TRANSITIONS."""

    def __init__(self):
        self.state = HandlerState.PROVISIONING
        self.path: list[HandlerState] = [self.state]
        self.fell_back = False

    def fire(self, trigger: Trigger) -> HandlerState:
        self.state = next_state(self.state, trigger)
        self.path.append(self.state)
        if self.state == HandlerState.DEGRADED:
            self.fell_back = True
        return self.state

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def __repr__(self) -> str:
        return " -> ".join(s.value for s in self.path)
