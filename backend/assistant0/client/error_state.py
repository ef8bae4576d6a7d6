"""Client Error State - pure Clear/Blocked machine that gates chat input.

Invariants:
    - Clear has no message; Blocked always carries a non-empty message
    - Any failure (non-2xx, transport, stream error) moves to Blocked
    - Blocked -> Clear happens only on RetryRequested
    - While Blocked, input and submit are disabled

Design Decisions:
    - Pure function over frozen values: the consumer owns IO, this owns rules
    - Submission is gated while Blocked, so a success never arrives in Blocked
"""

from dataclasses import dataclass

DEFAULT_PLACEHOLDER = "What can I help you with?"
BLOCKED_PLACEHOLDER = "Please retry connection before sending messages"
GENERIC_FAILURE = "An unexpected error occurred"


@dataclass(frozen=True)
class ErrorState:
    message: str | None = None

    @property
    def blocked(self) -> bool:
        return self.message is not None

    @property
    def input_disabled(self) -> bool:
        return self.blocked

    @property
    def submit_disabled(self) -> bool:
        return self.blocked

    @property
    def placeholder(self) -> str:
        return BLOCKED_PLACEHOLDER if self.blocked else DEFAULT_PLACEHOLDER


CLEAR = ErrorState()


# -- Events --------------------------------------------------------------------

@dataclass(frozen=True)
class ResponseReceived:
    status: int
    message: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class TransportFailed:
    message: str


@dataclass(frozen=True)
class StreamErrored:
    message: str


@dataclass(frozen=True)
class Completed:
    pass


@dataclass(frozen=True)
class RetryRequested:
    pass


ClientEvent = (
    ResponseReceived | TransportFailed | StreamErrored | Completed | RetryRequested
)


def transition(state: ErrorState, event: ClientEvent) -> ErrorState:
    """Next error state for event. Never raises."""
    if isinstance(event, RetryRequested):
        return CLEAR
    if state.blocked:
        return state
    if isinstance(event, ResponseReceived):
        if event.ok:
            return CLEAR
        return ErrorState(
            event.message or f"Request failed with status {event.status}",
        )
    if isinstance(event, (TransportFailed, StreamErrored)):
        return ErrorState(event.message or GENERIC_FAILURE)
    return state
