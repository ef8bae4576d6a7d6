"""Request Handler - Provisioner -> Invoker -> Transcoder for one chat request.

Invariants:
    - Walks core/request_flow.TRANSITIONS; every fallback is a table row
    - Missing Gemini key fails fast (ConfigurationError, HTTP 500) before any stream
    - Capability degradation never short-circuits the request
    - CapabilityError while opening the stream with Google tools -> one fallback to
      the base set with an error-specific note; a second failure is terminal
    - Failures before the first event raise (HTTP error with the failure's status);
      failures after it become an in-stream error event
    - History replayed to the agent holds user/assistant messages only

Design Decisions:
    - The stream is primed (first event pulled) inside handle(): HTTP status is
      decided before the response starts, and lazy invocation errors land here
    - One AgentSessionContext per attempt, built fresh, never shared
"""

import logging
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

from assistant0.config import Settings
from assistant0.core.errors import (
    Assistant0Error,
    CapabilityError,
    ConfigurationError,
    RequestFailedError,
)
from assistant0.core.messages import to_agent_messages
from assistant0.core.provisioning import ProvisionResult, degrade_after_failure
from assistant0.core.request_flow import HandlerState, RequestFlow, Trigger
from assistant0.core.stream_events import AgentSessionContext
from assistant0.services.agent_runner import AgentInvoker
from assistant0.services.capability_provisioner import CapabilityProvisioner
from assistant0.services.event_transcoder import transcode
from assistant0.services.system_prompt import AGENT_SYSTEM_TEMPLATE

logger = logging.getLogger(__name__)


def unexpected_error_event() -> dict:
    return {
        "type": "error",
        "data": {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        },
    }


def status_of(error: BaseException, default: int = 500) -> int:
    """Original HTTP status carried by an exception, if any."""
    for attr in ("http_status", "status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and 400 <= value <= 599:
            return value
    return default


class ChatStream:
    """Primed wire-event stream; closes the request flow when exhausted."""

    def __init__(
        self, flow: RequestFlow, first: dict | None, rest: AsyncIterator[dict],
        context: AgentSessionContext,
    ):
        self.flow = flow
        self.context = context
        self._first = first
        self._rest = rest

    async def events(self) -> AsyncIterator[dict]:
        try:
            if self._first is not None:
                yield self._first
            async for event in self._rest:
                yield event
        except Assistant0Error as e:
            logger.error("Stream error: %s", e.message, extra={"error_code": e.code})
            yield e.to_sse_event()
        except Exception as e:
            logger.error("Unexpected error mid-stream: %s", e, exc_info=True)
            yield unexpected_error_event()
        finally:
            if self.flow.state == HandlerState.STREAMING:
                self.flow.fire(Trigger.STREAM_CLOSED)


class ChatRequestHandler:
    """Orchestrates one /api/chat request."""

    def __init__(
        self,
        settings: Settings,
        provisioner: CapabilityProvisioner,
        invoker_factory: Callable[[], AgentInvoker],
        template: str = AGENT_SYSTEM_TEMPLATE,
    ):
        self.settings = settings
        self.provisioner = provisioner
        self.invoker_factory = invoker_factory
        self.template = template

    async def handle(
        self, messages: Sequence[Any], subject_token: str | None = None,
    ) -> ChatStream:
        flow = RequestFlow()
        # System messages are intermediate steps shown in the UI only.
        history = to_agent_messages(messages)

        if not self.settings.google_api_key:
            flow.fire(Trigger.PRECONDITION_FAILED)
            logger.error("Missing GOOGLE_API_KEY environment variable")
            raise ConfigurationError("Missing Gemini API key")

        try:
            provisioned = await self.provisioner.provision(subject_token)
            if provisioned.degraded:
                flow.fire(Trigger.CAPABILITIES_DEGRADED)
            flow.fire(Trigger.CAPABILITIES_READY)
            stream = await self._open(flow, history, provisioned)
        except Assistant0Error as e:
            flow.fire(Trigger.UNEXPECTED_ERROR)
            logger.error(
                "API error: %s", e.message,
                extra={"error_code": e.code, "handler_state": repr(flow)},
            )
            raise
        except Exception as e:
            flow.fire(Trigger.UNEXPECTED_ERROR)
            logger.error("API error: %s", e, exc_info=True,
                extra={"handler_state": repr(flow)})
            raise RequestFailedError(
                str(e) or "Unknown server error", status_of(e),
            ) from e

        logger.info("Streaming response", extra={"handler_state": repr(flow)})
        return stream

    async def _open(
        self, flow: RequestFlow, history, provisioned: ProvisionResult,
    ) -> ChatStream:
        invoker = self.invoker_factory()
        context = AgentSessionContext.build(history, provisioned, self.template)
        try:
            first, rest = await self._prime(invoker, context)
        except CapabilityError as e:
            if not any(c.requires_credential for c in context.capabilities):
                raise
            logger.error("Google integration error: %s", e)
            logger.info("Falling back to LLM without Google integrations")
            flow.fire(Trigger.EXTENDED_BUILD_FAILED)
            fallback = degrade_after_failure(self.provisioner.base, e)
            flow.fire(Trigger.CAPABILITIES_READY)
            context = AgentSessionContext.build(history, fallback, self.template)
            first, rest = await self._prime(invoker, context)

        flow.fire(Trigger.STREAM_OPENED)
        return ChatStream(flow, first, rest, context)

    async def _prime(
        self, invoker: AgentInvoker, context: AgentSessionContext,
    ) -> tuple[dict | None, AsyncIterator[dict]]:
        """Pull the first wire event so pre-stream failures raise here."""
        events = transcode(
            invoker.invoke(context), development=self.settings.is_development,
        )
        try:
            first = await anext(events)
        except StopAsyncIteration:
            first = None
        return first, events
