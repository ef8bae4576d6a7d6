"""Structured Logging - JSON and console formatters wired once at startup.

Invariants:
    - Every JSON record carries ts, level, logger, msg
    - Request-scoped fields (credential_status, handler_state, tool_name, ...) are
      emitted only when the call site passed them via extra=
    - setup_logging() is idempotent: calling it twice never duplicates output
    - Access tokens never appear in records (fields are allow-listed)

Design Decisions:
    - Stdlib logging only: uvicorn and the Google SDK already log through it
    - Allow-list of extra keys instead of dumping record.__dict__
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "handler_state", "credential_status", "capability_count",
    "tool_name", "error_code", "attempt", "status_code", "path",
)

# Chatty third-party loggers capped at WARNING.
_QUIET_LOGGERS = ("httpx", "httpcore", "google.auth", "urllib3")

_HANDLER_NAME = "assistant0"


def _context_of(record: logging.LogRecord) -> dict:
    return {
        name: record.__dict__[name]
        for name in CONTEXT_FIELDS
        if record.__dict__.get(name) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **_context_of(record),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with the context fields appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context_of(record)
        if context:
            line += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
