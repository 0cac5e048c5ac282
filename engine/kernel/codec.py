"""
Popup Kernel — JSON codec

encode(document) → JSON text; decode(text) → ValidationResult.
The wire form is whatever PopupDocument.to_dict() produces. Decoding always
goes back through the validator, so decode(encode(doc)) re-validates.
"""

from __future__ import annotations

import json

from engine.kernel.types import PopupDocument, ValidationResult, Violation
from engine.kernel.validator import ROOT_PATH, validate


def encode(doc: PopupDocument, *, indent: int | None = None) -> str:
    """Serialize a document. Keys keep schema order so output is stable."""
    return json.dumps(doc.to_dict(), indent=indent, ensure_ascii=False)


def decode(text: str | bytes) -> ValidationResult:
    """Parse and validate. Malformed JSON is reported as a violation, not raised."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        return ValidationResult(document=None, violations=[Violation(ROOT_PATH, f"Malformed JSON: {e}")])
    except RecursionError:
        return ValidationResult(document=None, violations=[Violation(ROOT_PATH, "Malformed JSON: nested too deeply")])
    return validate(data)
