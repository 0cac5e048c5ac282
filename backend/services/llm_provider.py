"""
LLM provider factory.

Returns MockLLM when USE_MOCK_LLM=true (tests / UX simulation),
an AIProvider when the configured provider has an API key,
or None, which means deterministic generation only.
"""

from __future__ import annotations

from backend.config import settings
from backend.services.ai_provider import AIProvider
from engine.kernel.mock_llm import MockLLM


def get_llm() -> MockLLM | AIProvider | None:
    """
    Return the configured LLM implementation.

    - USE_MOCK_LLM=true             → MockLLM (canned replies, no API calls)
    - key for LLM_PROVIDER present  → AIProvider (real API)
    - default                       → None (offline, deterministic generator)
    """
    if settings.USE_MOCK_LLM:
        return MockLLM(scenario=settings.MOCK_LLM_SCENARIO, profile=settings.MOCK_LLM_PROFILE)

    if settings.LLM_API_KEY:
        return AIProvider(provider=settings.LLM_PROVIDER, model=settings.LLM_MODEL)

    return None


def describe_llm() -> str:
    """Short label for logs and /health: mock, openai, anthropic or offline."""
    if settings.USE_MOCK_LLM:
        return "mock"
    if settings.LLM_API_KEY:
        return settings.LLM_PROVIDER
    return "offline"
