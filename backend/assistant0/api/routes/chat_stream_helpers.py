"""Chat Stream Helpers - SSE framing and the process-wide clients behind /api/chat.

Invariants:
    - sse_lines() emits one "data: {json}\\n\\n" frame per wire event, in order
    - One shared httpx.AsyncClient and one Gemini client per process
    - build_request_handler() wires a fresh handler per request (no request state shared)

Design Decisions:
    - All SSE wiring helpers live here (clients, handler, format) so routes stay thin
    - Gemini client created lazily: a missing key must fail the request with a
      structured 500, not the process at import time
"""

import json
import logging
from collections.abc import AsyncIterator

import httpx

from assistant0.config import Settings
from assistant0.infrastructure.gemini_client import ResilientGeminiClient
from assistant0.infrastructure.token_vault import Auth0TokenVault
from assistant0.services.agent_runner import AgentInvoker
from assistant0.services.capability_provisioner import CapabilityProvisioner
from assistant0.services.request_handler import ChatRequestHandler
from assistant0.services.tools_registry import (
    build_base_capabilities,
    google_capability_builder,
)

logger = logging.getLogger(__name__)

# SSE headers prevent proxy/browser buffering of streamed events.
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


async def sse_lines(events: AsyncIterator[dict]) -> AsyncIterator[str]:
    async for event in events:
        yield sse_line(event)


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# -- Process-wide clients ------------------------------------------------------

_http_client: httpx.AsyncClient | None = None
_gemini_client: ResilientGeminiClient | None = None


def get_http_client(settings: Settings) -> httpx.AsyncClient:
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def get_gemini_client(settings: Settings) -> ResilientGeminiClient:
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = ResilientGeminiClient(
            api_key=settings.google_api_key,
            model=settings.gemini_model,
            temperature=settings.gemini_temperature,
            max_retries=settings.gemini_max_retries,
            base_delay_ms=settings.gemini_base_delay_ms,
            max_delay_ms=settings.gemini_max_delay_ms,
            timeout_seconds=settings.gemini_timeout_seconds,
        )
    return _gemini_client


def build_request_handler(settings: Settings) -> ChatRequestHandler:
    http = get_http_client(settings)
    token_vault = None
    build_extended = None
    if settings.google_integrations_configured:
        token_vault = Auth0TokenVault(
            settings.auth0_domain, settings.auth0_client_id,
            settings.auth0_client_secret, http,
        )
        build_extended = google_capability_builder(http, settings.google_calendar_id)

    provisioner = CapabilityProvisioner(
        base=build_base_capabilities(http, settings.serpapi_api_key),
        token_provider=token_vault,
        build_extended=build_extended,
        connection=settings.google_connection,
    )
    return ChatRequestHandler(
        settings,
        provisioner,
        lambda: AgentInvoker(
            get_gemini_client(settings), settings.agent_max_iterations,
        ),
    )
