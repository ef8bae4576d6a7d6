"""Root conftest - shared test configuration."""

import os

# Ensure tests don't accidentally use real API keys or a developer's .env
os.environ.setdefault("GOOGLE_API_KEY", "test-fake-gemini-key")
os.environ.setdefault("ENVIRONMENT", "production")
for _name in ("SERPAPI_API_KEY", "AUTH0_DOMAIN", "AUTH0_CLIENT_ID", "AUTH0_CLIENT_SECRET"):
    os.environ.pop(_name, None)
