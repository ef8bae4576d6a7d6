"""Error Handlers - map exceptions to the {"error": message} envelope the chat client reads.

Invariants:
    - Assistant0Error -> its own http_status, body {"error": message}
    - RequestValidationError -> 400 {"error": "Invalid request data", "details": [...]}
    - Anything else -> 500 {"error": "An unexpected error occurred"}, details only in logs
    - Errors raised after the SSE response started never reach these handlers;
      they travel as in-stream error events (services/request_handler.py)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from assistant0.core.errors import Assistant0Error

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


async def handle_assistant0_error(request: Request, exc: Assistant0Error) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "%s on %s: %s", exc.code, request.url.path, exc.message,
        extra={"error_code": exc.code, "status_code": exc.http_status,
               "path": request.url.path},
    )
    return JSONResponse(exc.to_response(), status_code=exc.http_status)


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Rejected request body on %s (%d issues)", request.url.path, len(details),
        extra={"status_code": 400, "path": request.url.path},
    )
    return JSONResponse(
        {"error": "Invalid request data", "details": details},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled %s on %s", type(exc).__name__, request.url.path,
        extra={"status_code": 500, "path": request.url.path},
    )
    return JSONResponse(
        {"error": UNEXPECTED_ERROR_MESSAGE},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Assistant0Error, handle_assistant0_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
