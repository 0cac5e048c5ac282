"""
Popup Kernel — the pure engine.

Components:
  validator   — strict schema check: anything → ValidationResult
  repair      — total coercion: anything → valid PopupDocument
  ordering    — dense 10/20/30 element ordering under append/move/duplicate/delete
  generator   — (instruction text, style) → PopupDocument, deterministic
  lint        — advisory warnings stored on the document
  editor      — typed edits and selection for editor surfaces
  codec       — JSON text in and out

No IO, no AI. The backend wraps these with the model call and the HTTP API.
"""

from engine.kernel.codec import decode, encode
from engine.kernel.editor import EditorState
from engine.kernel.generator import DEMO_PRESETS, generate, generate_demo
from engine.kernel.lint import lint, with_warnings
from engine.kernel.ordering import reindex
from engine.kernel.repair import repair
from engine.kernel.types import (
    EnforcedContext,
    PopupDocument,
    StyleParams,
    ValidationResult,
    Violation,
)
from engine.kernel.validator import validate

__all__ = [
    "validate",
    "repair",
    "reindex",
    "generate",
    "generate_demo",
    "DEMO_PRESETS",
    "lint",
    "with_warnings",
    "encode",
    "decode",
    "EditorState",
    "PopupDocument",
    "StyleParams",
    "EnforcedContext",
    "ValidationResult",
    "Violation",
]
