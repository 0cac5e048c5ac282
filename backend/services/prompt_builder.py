"""
Prompt builder for popup generation.

System prompt comes from backend/prompts/popup_system.md; the user message
carries the instruction, the enforced style, and the current document when
refining.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from engine.kernel.types import PopupDocument, StyleParams

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

SYSTEM_PROMPT_NAME = "popup_system"

# Cache loaded prompts in memory (they don't change at runtime)
_cache: dict[str, str] = {}


def _load(name: str) -> str:
    """Load and cache a prompt file."""
    if name not in _cache:
        path = PROMPTS_DIR / f"{name}.md"
        _cache[name] = path.read_text()
    return _cache[name]


def build_system_prompt() -> str:
    return _load(SYSTEM_PROMPT_NAME)


def build_user_message(prompt: str, style: StyleParams, current: PopupDocument | None = None) -> str:
    """
    Assemble the user turn.

    Args:
        prompt: Free-text instruction from the user
        style: Style the result must use
        current: Document to refine, or None for a fresh popup

    Returns:
        Plain-text message with JSON sections
    """
    style_json = json.dumps(
        {"brandColor": style.brand_color, "mode": style.mode, "popupType": style.popup_type},
        ensure_ascii=False,
    )
    parts = [
        f"Instruction: {prompt.strip() or '(none, make a sensible generic popup)'}",
        f"Style (use exactly): {style_json}",
    ]
    if current is not None:
        parts.append("Current document:\n" + json.dumps(current.to_dict(), indent=2, ensure_ascii=False))
    return "\n\n".join(parts)


def build_messages(prompt: str, style: StyleParams, current: PopupDocument | None = None) -> list[dict[str, Any]]:
    """Messages array for AIProvider.complete()."""
    return [{"role": "user", "content": build_user_message(prompt, style, current)}]
