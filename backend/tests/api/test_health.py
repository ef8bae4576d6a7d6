"""Health & Readiness - liveness always 200, readiness gated on the Gemini key."""

from assistant0.config import get_settings
from assistant0.main import app

from tests.api.helpers import make_settings


async def test_liveness(client):
    response = await client.get("/api/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_ready_with_key(client):
    app.dependency_overrides[get_settings] = lambda: make_settings()
    try:
        response = await client.get("/api/health/ready")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    assert response.json()["checks"]["web_search"] == "disabled"


async def test_not_ready_without_key(client):
    app.dependency_overrides[get_settings] = lambda: make_settings(google_api_key=None)
    try:
        response = await client.get("/api/health/ready")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 503
    assert response.json()["checks"]["gemini"] == "missing"
