"""AI provider abstraction for Anthropic and OpenAI models."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import anthropic
import openai

from backend.config import settings

logger = logging.getLogger(__name__)

# Transient error types that warrant a retry
_RETRYABLE_ANTHROPIC = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
)
_RETRYABLE_OPENAI = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class AIProvider:
    """
    Unified interface for AI providers (Anthropic, OpenAI).

    Only the configured provider's client is created, so a missing key for
    the other provider is never an error.
    """

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        max_retries: int | None = None,
    ) -> None:
        """Initialize the AI client for `provider` with its API key from settings."""
        self.provider = provider or settings.LLM_PROVIDER
        self.model = model or settings.LLM_MODEL
        self.max_retries = settings.LLM_MAX_RETRIES if max_retries is None else max_retries
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be zero or more, got {self.max_retries}")
        self.anthropic_client: anthropic.AsyncAnthropic | None = None
        self.openai_client: openai.AsyncOpenAI | None = None
        if self.provider == "anthropic":
            self.anthropic_client = anthropic.AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
        elif self.provider == "openai":
            self.openai_client = openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        else:
            raise ValueError(f"Unknown LLM provider: {self.provider!r}")

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 1.0,
    ) -> dict[str, Any]:
        """Call the configured provider. Same return shape as call_claude/call_gpt."""
        if self.provider == "anthropic":
            return await self.call_claude(
                self.model, system, messages, max_tokens, temperature, max_retries=self.max_retries
            )
        return await self.call_gpt(self.model, system, messages, max_tokens, temperature, max_retries=self.max_retries)

    async def call_claude(
        self,
        model: str,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 1.0,
        max_retries: int = 1,
    ) -> dict[str, Any]:
        """
        Call Claude API with streaming and timing telemetry.

        Args:
            model: Model name (e.g., "claude-sonnet-4-20250514")
            system: System prompt
            messages: List of message dicts with "role" and "content"
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            max_retries: Number of retries on transient failures (default 1)

        Returns:
            Dict with:
            - content: Generated text
            - usage: Token counts (input_tokens, output_tokens)
            - timing: Timing telemetry (ttft_ms, total_ms)

        Raises:
            anthropic.APIError: If all retries exhausted
        """
        if self.anthropic_client is None:
            raise RuntimeError("AIProvider was not configured for anthropic")
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                request_sent_at = time.perf_counter()
                first_token_at: float | None = None
                content_text = ""
                input_tokens = 0
                output_tokens = 0

                # Use prompt caching for system prompt (5 min cache)
                system_with_cache = [
                    {
                        "type": "text",
                        "text": system,
                        "cache_control": {"type": "ephemeral"},
                    }
                ]

                async with self.anthropic_client.messages.stream(
                    model=model,
                    system=system_with_cache,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ) as stream:
                    async for event in stream:
                        if event.type == "content_block_delta":
                            if first_token_at is None:
                                first_token_at = time.perf_counter()
                            if hasattr(event.delta, "text"):
                                content_text += event.delta.text
                        elif event.type == "message_delta":
                            if hasattr(event.usage, "output_tokens"):
                                output_tokens = event.usage.output_tokens
                        elif event.type == "message_start":
                            if hasattr(event.message, "usage"):
                                input_tokens = event.message.usage.input_tokens

                last_token_at = time.perf_counter()
                total_ms = int((last_token_at - request_sent_at) * 1000)
                ttft_ms = int((first_token_at - request_sent_at) * 1000) if first_token_at else total_ms
                logger.info("Claude %s: TTFT=%dms total=%dms out=%d tokens", model, ttft_ms, total_ms, output_tokens)

                return {
                    "content": content_text,
                    "usage": {
                        "input_tokens": input_tokens,
                        "output_tokens": output_tokens,
                    },
                    "timing": {
                        "ttft_ms": ttft_ms,
                        "total_ms": total_ms,
                    },
                }
            except _RETRYABLE_ANTHROPIC as e:
                last_error = e
                if attempt < max_retries:
                    wait_time = 2**attempt  # Exponential backoff: 1s, 2s, 4s...
                    logger.warning("Claude API error (attempt %d), retrying in %ds: %s", attempt + 1, wait_time, e)
                    await asyncio.sleep(wait_time)
                else:
                    logger.warning("Claude API error, retries exhausted: %s", e)

        # All retries failed
        raise last_error  # type: ignore[misc]

    async def call_gpt(
        self,
        model: str,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 1.0,
        max_retries: int = 1,
    ) -> dict[str, Any]:
        """
        Call OpenAI GPT API in JSON mode with retry on transient failures.

        Args:
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini")
            system: System prompt
            messages: List of message dicts with "role" and "content"
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            max_retries: Number of retries on transient failures (default 1)

        Returns:
            Dict with "content" (text) and "usage" (token counts)

        Raises:
            openai.APIError: If all retries exhausted
        """
        if self.openai_client is None:
            raise RuntimeError("AIProvider was not configured for openai")

        # Prepend system message
        full_messages = [{"role": "system", "content": system}] + messages
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                response = await self.openai_client.chat.completions.create(
                    model=model,
                    messages=full_messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    response_format={"type": "json_object"},
                )

                usage = response.usage
                return {
                    "content": response.choices[0].message.content or "",
                    "usage": {
                        "input_tokens": usage.prompt_tokens if usage else 0,
                        "output_tokens": usage.completion_tokens if usage else 0,
                    },
                }
            except _RETRYABLE_OPENAI as e:
                last_error = e
                if attempt < max_retries:
                    wait_time = 2**attempt
                    logger.warning("OpenAI API error (attempt %d), retrying in %ds: %s", attempt + 1, wait_time, e)
                    await asyncio.sleep(wait_time)
                else:
                    logger.warning("OpenAI API error, retries exhausted: %s", e)

        raise last_error  # type: ignore[misc]
