"""
Popup Kernel — Lint

Advisory checks over a document. Pure and read-only: lint never mutates,
never rejects. Each rule returns at most one message.

Rules run on any PopupDocument, including hand-built ones that never went
through validate(), so some of them (empty URL action, half-filled image)
catch states the validator would also refuse.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable

from engine.kernel.ordering import sorted_elements
from engine.kernel.types import (
    CtaElement,
    ImageElement,
    PopupDocument,
    TextElement,
    UrlAction,
    UrlImage,
    hex_luminance,
)

HEADLINE_MAX_CHARS = 60
BODY_MAX_CHARS = 180
CTA_LABEL_MAX_CHARS = 24

WARNING_POLICIES: tuple[str, ...] = ("reset", "append")

# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _texts(doc: PopupDocument) -> list[TextElement]:
    return [el for el in sorted_elements(doc) if isinstance(el, TextElement)]


def _rule_headline_length(doc: PopupDocument) -> str | None:
    texts = _texts(doc)
    if texts and len(texts[0].text) > HEADLINE_MAX_CHARS:
        return f"Headline is {len(texts[0].text)} characters; keep it under {HEADLINE_MAX_CHARS}."
    return None


def _rule_body_length(doc: PopupDocument) -> str | None:
    for el in _texts(doc)[1:]:
        if len(el.text) > BODY_MAX_CHARS:
            return f"Body text '{el.name}' is {len(el.text)} characters; keep it under {BODY_MAX_CHARS}."
    return None


def _rule_cta_label_length(doc: PopupDocument) -> str | None:
    for el in sorted_elements(doc):
        if isinstance(el, CtaElement) and len(el.label) > CTA_LABEL_MAX_CHARS:
            return f"CTA label '{el.label}' is longer than {CTA_LABEL_MAX_CHARS} characters."
    return None


def _rule_layout_image_mismatch(doc: PopupDocument) -> str | None:
    has_image = any(isinstance(el, ImageElement) and el.visible for el in doc.elements)
    if doc.container.layout == "with_image" and not has_image:
        return "Layout reserves an image slot but no image element is shown."
    if doc.container.layout == "text_only" and has_image:
        return "Layout is text-only but the popup contains an image element."
    return None


def _rule_image_incomplete(doc: PopupDocument) -> str | None:
    for el in sorted_elements(doc):
        if isinstance(el, ImageElement) and isinstance(el.source, UrlImage):
            if not el.source.url.strip() or not el.source.alt.strip():
                return f"Image '{el.name}' is enabled but missing its url or alt text."
    return None


def _rule_empty_url_action(doc: PopupDocument) -> str | None:
    for el in sorted_elements(doc):
        if isinstance(el, CtaElement) and isinstance(el.action, UrlAction) and not el.action.value.strip():
            return f"CTA '{el.label}' opens a URL but the URL is empty."
    return None


def _rule_mode_background_mismatch(doc: PopupDocument) -> str | None:
    background = doc.container.background_color or doc.theme.background_color
    luminance = hex_luminance(background)
    if luminance is None:
        return None
    if doc.theme.mode == "dark" and luminance > 0.6:
        return f"Theme is dark but the container background {background} is light."
    if doc.theme.mode == "light" and luminance < 0.4:
        return f"Theme is light but the container background {background} is dark."
    return None


RULES: list[Callable[[PopupDocument], str | None]] = [
    _rule_headline_length,
    _rule_body_length,
    _rule_cta_label_length,
    _rule_layout_image_mismatch,
    _rule_image_incomplete,
    _rule_empty_url_action,
    _rule_mode_background_mismatch,
]

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def lint(doc: PopupDocument) -> list[str]:
    """Run every rule; return the messages in rule order."""
    warnings: list[str] = []
    for rule in RULES:
        message = rule(doc)
        if message is not None:
            warnings.append(message)
    return warnings


def with_warnings(doc: PopupDocument, policy: str = "reset") -> PopupDocument:
    """
    Store lint output on the document.

    policy="reset"   replace existing warnings (what generation does)
    policy="append"  add to existing warnings without de-duplication,
                     the historical editor behaviour
    """
    if policy not in WARNING_POLICIES:
        raise ValueError(f"Unknown warning policy: {policy!r}. Valid policies: {list(WARNING_POLICIES)}")
    found = tuple(lint(doc))
    if policy == "append":
        return dataclasses.replace(doc, warnings=doc.warnings + found)
    return dataclasses.replace(doc, warnings=found)
