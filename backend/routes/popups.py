"""Popup routes — generate, validate, repair, lint, demos."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from backend.models.popup import (
    DemoPresetResponse,
    DocumentResponse,
    GenerateRequest,
    GenerateResponse,
    LintResponse,
    RepairRequest,
    StyleRequest,
    ValidateResponse,
    ViolationResponse,
)
from backend.services.llm_provider import get_llm
from backend.services.popup_generator import GenerationOutcome, PopupGenerator
from engine.kernel.generator import DEMO_PRESETS
from engine.kernel.lint import lint, with_warnings
from engine.kernel.repair import repair
from engine.kernel.types import EnforcedContext
from engine.kernel.validator import validate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/popups", tags=["popups"])


def get_generator() -> PopupGenerator:
    """One generator per request, bound to the configured LLM."""
    return PopupGenerator(get_llm())


def _generate_response(outcome: GenerationOutcome) -> GenerateResponse:
    return GenerateResponse(
        document=outcome.document.to_dict(),
        source=outcome.source,
        status=outcome.status,
        error=outcome.error,
        warnings=list(outcome.document.warnings),
    )


@router.post("/generate", status_code=200)
async def generate_popup(
    req: GenerateRequest,
    generator: PopupGenerator = Depends(get_generator),
) -> GenerateResponse:
    """
    Generate a popup from a free-text instruction.

    Always returns a valid document. `source` says whether it came from the
    model or the deterministic fallback, `status` says why.
    """
    current = repair(req.current) if req.current is not None else None
    outcome = await generator.generate(req.prompt, req.style.to_params(), current=current)
    logger.info("generate: source=%s status=%s", outcome.source, outcome.status)
    return _generate_response(outcome)


@router.post("/validate", status_code=200)
async def validate_popup(candidate: Any = Body(None)) -> ValidateResponse:
    """Strict check. Invalid documents are a 200 with violations, not an error."""
    result = validate(candidate)
    return ValidateResponse(
        ok=result.ok,
        violations=[ViolationResponse.from_violation(v) for v in result.violations],
        document=result.document.to_dict() if result.document is not None else None,
    )


@router.post("/repair", status_code=200)
async def repair_popup(req: RepairRequest) -> DocumentResponse:
    """Coerce anything into a valid document, forcing the `enforce` fields."""
    enforced = req.enforce.to_context() if req.enforce is not None else EnforcedContext()
    doc = with_warnings(repair(req.document, enforced), policy="reset")
    return DocumentResponse(document=doc.to_dict(), warnings=list(doc.warnings))


@router.post("/lint", status_code=200)
async def lint_popup(candidate: Any = Body(None)) -> LintResponse:
    """Lint a valid document. Invalid documents are rejected with their violations."""
    result = validate(candidate)
    if not result.ok:
        raise HTTPException(
            status_code=422,
            detail=[v.to_dict() for v in result.violations],
        )
    return LintResponse(warnings=lint(result.document))


@router.get("/demos", status_code=200)
async def list_demos() -> list[DemoPresetResponse]:
    """Offline demo presets."""
    return [DemoPresetResponse(index=i, title=p.title, prompt=p.prompt) for i, p in enumerate(DEMO_PRESETS)]


@router.post("/demos/{index}", status_code=200)
async def run_demo(
    index: int,
    style: StyleRequest | None = None,
    generator: PopupGenerator = Depends(get_generator),
) -> GenerateResponse:
    """Generate a demo preset without calling the model. Index wraps around."""
    params = style.to_params() if style is not None else None
    return _generate_response(generator.demo(index, params))
