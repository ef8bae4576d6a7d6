"""Tools Registry - binds tool schemas to handlers as Capability objects.

Invariants:
    - Base order is fixed: calculator, then web_search (when configured)
    - Missing SERPAPI_API_KEY omits web_search with a warning; it is not a degradation
    - Google capabilities are built per access token and flagged requires_credential

Design Decisions:
    - Explicit pairs (schema, handler) instead of reflection: every mapping visible here
"""

import logging

import httpx

from assistant0.core.provisioning import Capability, ExtendedBuilder
from assistant0.services.define_basic_tools import CALCULATOR_TOOL, WEB_SEARCH_TOOL
from assistant0.services.define_google_tools import (
    CALENDAR_CREATE_TOOL,
    CALENDAR_VIEW_TOOL,
    GMAIL_CREATE_DRAFT_TOOL,
    GMAIL_SEARCH_TOOL,
)
from assistant0.services.handle_basic import BasicHandlers
from assistant0.services.handle_google import GoogleHandlers

logger = logging.getLogger(__name__)


def _capability(schema: dict, handler, requires_credential: bool = False) -> Capability:
    return Capability(
        name=schema["name"],
        description=schema["description"],
        parameters=schema["parameters"],
        handler=handler,
        requires_credential=requires_credential,
    )


def build_base_capabilities(
    http: httpx.AsyncClient, serpapi_api_key: str | None,
) -> tuple[Capability, ...]:
    basic = BasicHandlers(http, serpapi_api_key)
    capabilities = [_capability(CALCULATOR_TOOL, basic.calculator)]
    if serpapi_api_key:
        capabilities.append(_capability(WEB_SEARCH_TOOL, basic.web_search))
    else:
        logger.warning(
            "SERPAPI_API_KEY not configured - web search functionality will be unavailable",
        )
    return tuple(capabilities)


def google_capability_builder(
    http: httpx.AsyncClient, calendar_id: str = "primary",
) -> ExtendedBuilder:
    """Return a builder: access token -> Gmail/Calendar capabilities."""

    def build(access_token: str) -> tuple[Capability, ...]:
        google = GoogleHandlers(access_token, http, calendar_id)
        return (
            _capability(GMAIL_SEARCH_TOOL, google.gmail_search, True),
            _capability(GMAIL_CREATE_DRAFT_TOOL, google.gmail_create_draft, True),
            _capability(CALENDAR_CREATE_TOOL, google.google_calendar_create, True),
            _capability(CALENDAR_VIEW_TOOL, google.google_calendar_view, True),
        )

    return build
