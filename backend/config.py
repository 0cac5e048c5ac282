"""
Popup builder configuration. All environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
Nothing is required: without an API key the service runs on the
deterministic generator only.
"""

from __future__ import annotations

import os

_DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}


class Settings:
    """Application settings from environment variables."""

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # AI Providers
    OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
    ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
    LLM_PROVIDER: str = os.environ.get("LLM_PROVIDER", "openai").lower()

    # Generation limits
    LLM_TIMEOUT_SECONDS: float = float(os.environ.get("LLM_TIMEOUT_SECONDS", "20"))
    LLM_MAX_RETRIES: int = int(os.environ.get("LLM_MAX_RETRIES", "1"))
    LLM_MAX_TOKENS: int = int(os.environ.get("LLM_MAX_TOKENS", "2048"))

    # Mock LLM (tests / UX simulation)
    USE_MOCK_LLM: bool = os.environ.get("USE_MOCK_LLM", "").lower() == "true"
    MOCK_LLM_SCENARIO: str = os.environ.get("MOCK_LLM_SCENARIO", "welcome_modal")
    MOCK_LLM_PROFILE: str = os.environ.get("MOCK_LLM_PROFILE", "instant")

    # Style used when a request doesn't pick a brand color
    DEFAULT_BRAND_COLOR: str = os.environ.get("DEFAULT_BRAND_COLOR", "#2563EB")

    @property
    def LLM_MODEL(self) -> str:
        model = os.environ.get("LLM_MODEL")
        if model:
            return model
        return _DEFAULT_MODELS.get(self.LLM_PROVIDER, "")

    @property
    def LLM_API_KEY(self) -> str:
        """Key for the configured provider, empty when unset."""
        if self.LLM_PROVIDER == "anthropic":
            return self.ANTHROPIC_API_KEY
        return self.OPENAI_API_KEY


# Singleton instance
settings = Settings()

if settings.LLM_PROVIDER not in _DEFAULT_MODELS:
    raise RuntimeError(f"LLM_PROVIDER must be one of {list(_DEFAULT_MODELS)}, got {settings.LLM_PROVIDER!r}")
if settings.LLM_TIMEOUT_SECONDS <= 0:
    raise RuntimeError("LLM_TIMEOUT_SECONDS must be positive")
if settings.LLM_MAX_RETRIES < 0:
    raise RuntimeError("LLM_MAX_RETRIES must be zero or more")
