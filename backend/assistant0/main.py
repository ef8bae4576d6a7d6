"""Assistant0 API - FastAPI application entry point.

Invariants:
    - Routers registered explicitly: health, chat
    - Domain errors rendered as {"error": message} by api/error_handlers.py
    - Allowed CORS origins come from Settings.cors_origins
    - The pooled HTTP client is closed when the app shuts down
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assistant0.api.error_handlers import register_error_handlers
from assistant0.api.routes import chat, health
from assistant0.api.routes.chat_stream_helpers import close_http_client
from assistant0.config import Settings, get_settings
from assistant0.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if not settings.google_api_key:
        logger.warning("GOOGLE_API_KEY not set - every /api/chat request will fail with 500")
    if not settings.google_integrations_configured:
        logger.info("Auth0 settings incomplete - Gmail/Calendar tools disabled")
    yield
    await close_http_client()
    logger.info("HTTP client closed")


def create_app(settings: Settings) -> FastAPI:
    application = FastAPI(title="Assistant0 API", version="0.1.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    application.include_router(health.router)
    application.include_router(chat.router)
    register_error_handlers(application)
    return application


app = create_app(get_settings())
