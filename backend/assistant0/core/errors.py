"""Error Hierarchy - typed exceptions for every Assistant0 failure mode.

Invariants:
    - Each class fixes its code, category, severity and HTTP status as class
      attributes; instances may override code and status only
    - to_response() is the REST envelope {"error": message}
    - to_sse_event() is the in-stream error event {"type": "error", "data": {...}}
    - CredentialError and CapabilityError are absorbed by degradation and never
      reach the HTTP caller

Design Decisions:
    - One base class so a single FastAPI handler renders every domain error
    - Flat string envelope: the chat client shows body["error"] verbatim
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    CREDENTIAL = "credential"
    CAPABILITY = "capability"
    EXTERNAL_API = "external_api"
    TOOL = "tool"
    INTERNAL = "internal"


class CredentialFailure(str, Enum):
    """Why the identity provider returned no usable token."""
    ABSENT = "absent"
    EXPIRED = "expired"
    INSUFFICIENT_SCOPE = "insufficient_scope"
    UNAVAILABLE = "unavailable"


@dataclass
class ErrorContext:
    """Observability details attached to an error; never sent to the client."""
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tool_name: str | None = None
    retry_after_ms: int | None = None


class Assistant0Error(Exception):
    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500

    def __init__(
        self, message: str, *, code: str | None = None,
        http_status: int | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.context = context or ErrorContext()

    def to_response(self) -> dict:
        return {"error": self.message}

    def to_sse_event(self) -> dict:
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
            },
        }


# -- Preconditions -------------------------------------------------------------

class ConfigurationError(Assistant0Error):
    """Mandatory server configuration is missing."""
    code = "CONFIGURATION_ERROR"
    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.CRITICAL

    def __init__(self, what: str):
        super().__init__(f"Server configuration error: {what}")


# -- Capability layer (absorbed by degradation) --------------------------------

_CREDENTIAL_STATUS = {
    CredentialFailure.ABSENT: 401,
    CredentialFailure.EXPIRED: 401,
    CredentialFailure.INSUFFICIENT_SCOPE: 403,
    CredentialFailure.UNAVAILABLE: 503,
}


class CredentialError(Assistant0Error):
    """Identity provider could not supply a usable external access token."""
    code = "CREDENTIAL_ERROR"
    category = ErrorCategory.CREDENTIAL
    severity = ErrorSeverity.WARNING

    def __init__(self, message: str, reason: CredentialFailure):
        super().__init__(message, http_status=_CREDENTIAL_STATUS[reason])
        self.reason = reason


class CapabilityError(Assistant0Error):
    """Tool set could not be built or declared to the model."""
    code = "CAPABILITY_ERROR"
    category = ErrorCategory.CAPABILITY
    severity = ErrorSeverity.WARNING


# -- Generation and tools ------------------------------------------------------

class GeminiAPIError(Assistant0Error):
    code = "GEMINI_API_ERROR"
    category = ErrorCategory.EXTERNAL_API
    severity = ErrorSeverity.CRITICAL

    def __init__(
        self, message: str, api_error_type: str, http_status: int = 503,
        retry_after_ms: int | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Gemini API error ({api_error_type}): {message}",
            http_status=http_status, context=context,
        )
        self.api_error_type = api_error_type
        self.context.retry_after_ms = retry_after_ms


class ToolExecutionError(Assistant0Error):
    """A tool adapter failed; reported back to the model, never fatal."""
    code = "TOOL_EXECUTION_ERROR"
    category = ErrorCategory.TOOL
    severity = ErrorSeverity.WARNING
    http_status = 502

    def __init__(self, tool_name: str, message: str, code: str | None = None):
        super().__init__(message, code=code, context=ErrorContext(tool_name=tool_name))
        self.tool_name = tool_name

    def to_tool_result(self) -> dict:
        return {"status": "error", "error_code": self.code, "message": self.message}


class AgentLoopExceededError(Assistant0Error):
    code = "AGENT_LOOP_EXCEEDED"
    severity = ErrorSeverity.CRITICAL

    def __init__(self, max_iterations: int):
        super().__init__(
            f"Agent stopped after {max_iterations} model turns without a final answer",
        )
        self.max_iterations = max_iterations


class RequestFailedError(Assistant0Error):
    """Failure before streaming began; keeps the upstream HTTP status."""
    code = "REQUEST_FAILED"

    def __init__(self, message: str, http_status: int = 500):
        super().__init__(message, http_status=http_status)


class InvalidTransitionError(Assistant0Error):
    """Request state machine got a trigger it has no row for."""
    code = "INVALID_TRANSITION"
    severity = ErrorSeverity.CRITICAL

    def __init__(self, state: str, trigger: str):
        super().__init__(f"No transition from {state} on {trigger}")
        self.state = state
        self.trigger = trigger
