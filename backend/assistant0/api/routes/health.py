"""Health & Readiness Probes - liveness and readiness endpoints.

Invariants:
    - GET /api/health/ always returns 200 if process is up (liveness)
    - GET /api/health/ready returns 503 if the Gemini key is missing (readiness)
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from assistant0.config import Settings, get_settings

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe."""
    return {"status": "healthy", "service": "assistant0-api", "version": "0.1.0"}


@router.get("/ready")
async def readiness_check(settings: Settings = Depends(get_settings)):
    """Readiness probe - mandatory configuration present."""
    checks = {
        "gemini": "configured" if settings.google_api_key else "missing",
        "web_search": "configured" if settings.serpapi_api_key else "disabled",
        "google_integrations": (
            "configured" if settings.google_integrations_configured else "disabled"
        ),
    }
    if not settings.google_api_key:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
