"""
Pytest configuration and fixtures for popup builder backend tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("USE_MOCK_LLM", "true")
os.environ.setdefault("MOCK_LLM_SCENARIO", "welcome_modal")
os.environ.setdefault("MOCK_LLM_PROFILE", "instant")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.config import settings  # noqa: E402
from backend.main import app  # noqa: E402


@pytest_asyncio.fixture
async def async_client():
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch):
    """Settings singleton with mock LLM on and no real keys. Tests tweak it further."""
    monkeypatch.setattr(settings, "USE_MOCK_LLM", True)
    monkeypatch.setattr(settings, "MOCK_LLM_SCENARIO", "welcome_modal")
    monkeypatch.setattr(settings, "MOCK_LLM_PROFILE", "instant")
    monkeypatch.setattr(settings, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
    return settings


@pytest.fixture
def override_generator():
    """Install a PopupGenerator for the routes; removed after the test."""
    from backend.routes.popups import get_generator

    def _install(generator):
        app.dependency_overrides[get_generator] = lambda: generator

    yield _install
    app.dependency_overrides.pop(get_generator, None)
