"""Tool Dispatch - routes a model function call to the capability that implements it.

Invariants:
    - Only capabilities provisioned for this request are callable
    - Unknown tools return UNKNOWN_TOOL error (never raises)
    - Handler failures become error dicts (never raise into the agent loop)
    - Every call logged with tool_name for observability

Design Decisions:
    - Built from the request's capability tuple: no global registry, no shared state
"""

import logging
from collections.abc import Sequence

from assistant0.core.errors import Assistant0Error, ToolExecutionError
from assistant0.core.provisioning import Capability

logger = logging.getLogger(__name__)


class ToolDispatch:
    """Routes tool_name -> capability handler for one request."""

    def __init__(self, capabilities: Sequence[Capability]):
        self._handlers = {c.name: c.handler for c in capabilities}

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def execute(self, tool_name: str, input_data: dict) -> dict:
        """Run the tool. Returns a result dict; errors carry status='error'."""
        handler = self._handlers.get(tool_name)
        if handler is None:
            logger.warning("Unknown tool requested", extra={"tool_name": tool_name})
            return {
                "status": "error",
                "error_code": "UNKNOWN_TOOL",
                "message": f"Tool '{tool_name}' does not exist.",
            }
        try:
            result = await handler(input_data)
        except ToolExecutionError as e:
            logger.warning("Tool error: %s", e.message,
                extra={"tool_name": tool_name, "error_code": e.code})
            return e.to_tool_result()
        except Assistant0Error as e:
            logger.warning("Tool error: %s", e.message,
                extra={"tool_name": tool_name, "error_code": e.code})
            return {"status": "error", "error_code": e.code, "message": e.message}
        except Exception as e:
            logger.error("Unexpected error in tool '%s': %s",
                tool_name, e, exc_info=True)
            return {
                "status": "error", "error_code": "TOOL_EXECUTION_ERROR",
                "message": f"Internal error executing {tool_name}",
            }
        logger.info("Tool executed", extra={"tool_name": tool_name})
        return result
