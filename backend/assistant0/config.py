"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process
    - Missing GOOGLE_API_KEY is a request-time precondition failure, not a startup crash

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Optional integrations default to None: absence of SERPAPI_API_KEY or the Auth0
      settings disables the matching capabilities instead of failing the request
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Gemini (hard precondition for /api/chat)
    google_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.0
    gemini_max_retries: int = 3
    gemini_base_delay_ms: int = 1000
    gemini_max_delay_ms: int = 30_000
    gemini_timeout_seconds: int = 120

    # Web search (soft - absence only omits the search tool)
    serpapi_api_key: str | None = None

    # Identity provider (Auth0 token vault) for Google access tokens
    auth0_domain: str | None = None
    auth0_client_id: str | None = None
    auth0_client_secret: str | None = None
    google_connection: str = "google-oauth2"
    google_calendar_id: str = "primary"

    # Agent
    agent_max_iterations: int = 10

    # Runtime
    environment: str = "production"
    http_timeout_seconds: float = 30.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator(
        "google_api_key", "serpapi_api_key", "auth0_domain", mode="before",
    )
    @classmethod
    def blank_as_none(cls, v):
        """Empty env vars (GOOGLE_API_KEY=) count as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def google_integrations_configured(self) -> bool:
        """Extended (credential-requiring) capabilities need the token vault."""
        return bool(
            self.auth0_domain and self.auth0_client_id
            and self.auth0_client_secret
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
