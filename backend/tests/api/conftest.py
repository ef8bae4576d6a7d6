"""API test fixtures - FastAPI app over httpx ASGITransport.

Invariants:
    - get_request_handler overridden per test; no real Gemini or Auth0 traffic
    - Overrides cleared after every test
"""

import pytest
from httpx import ASGITransport, AsyncClient

from assistant0.api.routes.chat import get_request_handler
from assistant0.main import app
from assistant0.services.request_handler import ChatRequestHandler


@pytest.fixture
def use_handler():
    def install(handler: ChatRequestHandler):
        app.dependency_overrides[get_request_handler] = lambda: handler
        return handler
    yield install
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as ac:
        yield ac
