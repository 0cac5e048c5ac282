"""
Popup generation orchestrator.

Prompt → LLM → parse → repair → lint, with the deterministic generator as
the fallback for every failure mode:

  offline         no LLM configured
  timeout         call exceeded LLM_TIMEOUT_SECONDS
  aborted         caller set the abort event
  provider_error  API, transport or mock fixture error
  malformed       reply had no JSON object
  invalid         repaired reply still failed validation

The caller always gets a valid document plus a status it can show the user.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import anthropic
import httpx
import openai

from backend.config import settings
from backend.services.prompt_builder import build_messages, build_system_prompt
from backend.services.response_parser import MalformedResponseError, parse_response
from engine.kernel.generator import generate, generate_demo, resolve_style
from engine.kernel.lint import with_warnings
from engine.kernel.repair import repair
from engine.kernel.types import EnforcedContext, PopupDocument, StyleParams
from engine.kernel.validator import validate

logger = logging.getLogger(__name__)

STATUS_MESSAGES: dict[str, str] = {
    "ok": "Generated.",
    "repaired": "Generated. Some fields were corrected.",
    "offline": "AI is not configured. Showing a template popup.",
    "timeout": "AI took too long. Showing a template popup.",
    "aborted": "Generation cancelled. Showing a template popup.",
    "provider_error": "AI service error. Showing a template popup.",
    "malformed": "AI reply was unreadable. Showing a template popup.",
    "invalid": "AI reply could not be repaired. Showing a template popup.",
    "demo": "Offline demo.",
}


class CompletionLLM(Protocol):
    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = ...,
        temperature: float = ...,
    ) -> dict[str, Any]: ...


class GenerationAborted(Exception):
    """The caller's abort event fired before the model replied."""


@dataclass
class GenerationOutcome:
    """A valid document and how it was produced."""

    document: PopupDocument
    source: str  # "llm" | "fallback" | "demo"
    status: str
    error: str | None = None
    usage: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return STATUS_MESSAGES.get(self.status, self.status)


class PopupGenerator:
    """Runs one generation with timeout, abort and fallback handling."""

    def __init__(
        self,
        llm: CompletionLLM | None,
        timeout_seconds: float | None = None,
        max_tokens: int | None = None,
    ):
        self.llm = llm
        self.timeout_seconds = settings.LLM_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.max_tokens = settings.LLM_MAX_TOKENS if max_tokens is None else max_tokens

    async def generate(
        self,
        prompt: str,
        style: StyleParams | None = None,
        current: PopupDocument | None = None,
        abort: asyncio.Event | None = None,
    ) -> GenerationOutcome:
        """
        Generate a popup. Never raises for model failures.

        Args:
            prompt: Free-text instruction
            style: Style to enforce on the result
            current: Document being refined, sent to the model as context
            abort: Optional event; setting it cancels the model call

        Returns:
            GenerationOutcome with a document that passes validate()
        """
        style = resolve_style(style)

        if self.llm is None:
            return self._fallback(prompt, style, "offline")
        if abort is not None and abort.is_set():
            return self._fallback(prompt, style, "aborted")

        system = build_system_prompt()
        messages = build_messages(prompt, style, current)

        try:
            reply = await self._call(system, messages, abort)
        except asyncio.TimeoutError:
            logger.warning("popup_generator: LLM call timed out after %.1fs", self.timeout_seconds)
            return self._fallback(prompt, style, "timeout")
        except GenerationAborted:
            logger.info("popup_generator: generation aborted by caller")
            return self._fallback(prompt, style, "aborted")
        except (openai.APIError, anthropic.APIError) as e:
            logger.warning("popup_generator: LLM provider error: %s", e)
            return self._fallback(prompt, style, "provider_error", str(e))
        except (httpx.TransportError, OSError) as e:
            logger.warning("popup_generator: LLM transport error: %s", e)
            return self._fallback(prompt, style, "provider_error", str(e))

        try:
            candidate = parse_response(reply.get("content"))
        except MalformedResponseError as e:
            logger.warning("popup_generator: %s", e)
            return self._fallback(prompt, style, "malformed", str(e))

        strict = validate(candidate)
        document = with_warnings(repair(candidate, EnforcedContext.from_style(style)), policy="reset")

        result = validate(document)
        if not result.ok:
            detail = "; ".join(str(v) for v in result.violations)
            logger.error("popup_generator: repaired document failed validation: %s", detail)
            return self._fallback(prompt, style, "invalid", detail)

        if not strict.ok:
            logger.info("popup_generator: repaired %d violation(s) in model output", len(strict.violations))

        return GenerationOutcome(
            document=document,
            source="llm",
            status="ok" if strict.ok else "repaired",
            usage=reply.get("usage") or {},
        )

    def demo(self, index: int, style: StyleParams | None = None) -> GenerationOutcome:
        """Offline demo preset, no model involved."""
        return GenerationOutcome(document=generate_demo(index, style), source="demo", status="demo")

    async def _call(
        self,
        system: str,
        messages: list[dict[str, Any]],
        abort: asyncio.Event | None,
    ) -> dict[str, Any]:
        call = asyncio.wait_for(
            self.llm.complete(system, messages, max_tokens=self.max_tokens),
            timeout=self.timeout_seconds,
        )
        if abort is None:
            return await call

        # Race the model call against the abort event
        call_task = asyncio.ensure_future(call)
        abort_task = asyncio.ensure_future(abort.wait())
        try:
            await asyncio.wait({call_task, abort_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            abort_task.cancel()
            finished = call_task.done()
            if not finished:
                call_task.cancel()

        if not finished:
            raise GenerationAborted()
        return call_task.result()

    def _fallback(self, prompt: str, style: StyleParams, status: str, error: str | None = None) -> GenerationOutcome:
        return GenerationOutcome(document=generate(prompt, style), source="fallback", status=status, error=error)
