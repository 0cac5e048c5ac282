"""
Popup Kernel — Deterministic Generator

(instruction text, style) → PopupDocument. No IO, no AI, no randomness.
This is the always-available degraded mode: when the model is slow, down,
or talks nonsense, the caller lands here.

Content is chosen by ordered rule tables, one per axis, first match wins:

  IMAGE_RULE          image block on/off
  SECONDARY_RULE      dismiss CTA on/off
  TONE_RULES          headline + body copy
  CTA_LABEL_RULES     primary CTA label
  URGENCY_RULE        rewrite the trailing "Limited time only."
  MINIMAL_RULE        truncate the body at a word boundary

Matching is case-insensitive substring/regex search. Style (brand color,
mode, popup type) is applied verbatim and never inferred from text.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any

from engine.kernel.lint import with_warnings
from engine.kernel.ordering import reindex_elements
from engine.kernel.types import (
    DEFAULT_BRAND_COLOR,
    MODES,
    PLACEHOLDER_IMAGE_URL,
    PLACEHOLDER_URL,
    POPUP_TYPES,
    Container,
    CtaElement,
    DismissAction,
    Element,
    ImageElement,
    PopupDocument,
    Spacing,
    StyleParams,
    TextElement,
    Theme,
    UrlAction,
    UrlImage,
    is_valid_color,
)

logger = logging.getLogger(__name__)

MINIMAL_BODY_MAX_CHARS = 32

# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tone:
    name: str
    headline: str
    body: str


GENERIC_TONE = Tone("generic", "Quick update", "Take a moment to review this message.")

IMAGE_RULE = re.compile(r"image|banner|visual|product|logo|photo")
SECONDARY_RULE = re.compile(r"secondary|later|not now|dismiss|no thanks|two cta|2 cta")

TONE_RULES: list[tuple[re.Pattern[str], Tone]] = [
    (
        re.compile(r"welcome|onboard|new user"),
        Tone("welcome", "Welcome!", "Here's a quick tour to help you get started."),
    ),
    (
        re.compile(r"discount|offer|sale|%|coupon|black friday"),
        Tone("promo", "Limited-time offer", "Unlock your deal now. Limited time only."),
    ),
    (
        re.compile(r"update|announce|new feature"),
        Tone("feature", "What's new", "We just shipped something you'll like. Take a look."),
    ),
]

CTA_LABEL_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"shop"), "Shop Now"),
    (re.compile(r"learn"), "Learn More"),
    (re.compile(r"start"), "Get Started"),
    (re.compile(r"survey"), "Start Survey"),
]
DEFAULT_CTA_LABEL = "Continue"
SECONDARY_CTA_LABEL = "Not now"

URGENCY_RULE = re.compile(r"urgent|hurry|last chance|ends soon|today only")
URGENCY_REWRITE: tuple[str, str] = ("Limited time only.", "Offer ends soon!")

MINIMAL_RULE = re.compile(r"minimal|shorten|short|concise|brief")


@dataclass(frozen=True)
class DemoPreset:
    title: str
    prompt: str


DEMO_PRESETS: tuple[DemoPreset, ...] = (
    DemoPreset("Welcome", "Welcome new users with a product photo and a Get started button, plus a not now option."),
    DemoPreset("Flash sale", "Black friday sale: 30% off everything. Shop now. Urgent, ends soon."),
    DemoPreset("New feature", "Announce our new feature with a short, minimal message and a learn more button."),
    DemoPreset("Survey", "Ask users to take a quick survey, with a no thanks dismiss option."),
)


def first_match(rules: list[tuple[re.Pattern[str], Any]], text: str, default: Any) -> Any:
    """Effect of the first rule whose pattern occurs in text, else default."""
    for pattern, effect in rules:
        if pattern.search(text):
            return effect
    return default


def truncate_at_word(text: str, limit: int) -> str:
    """Cut to at most `limit` chars at a word boundary and end with a single period."""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    if " " in cut and not text[limit].isspace():
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" .,;:!?") + "."


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_style(style: StyleParams | None) -> StyleParams:
    """Replace any invalid style field with its default."""
    style = style or StyleParams()
    brand = style.brand_color.strip() if is_valid_color(style.brand_color) else DEFAULT_BRAND_COLOR
    mode = style.mode if style.mode in MODES else "light"
    popup_type = style.popup_type if style.popup_type in POPUP_TYPES else "modal"
    if (brand, mode, popup_type) != (style.brand_color, style.mode, style.popup_type):
        logger.debug("generator: normalised style %r", style)
    return StyleParams(brand_color=brand, mode=mode, popup_type=popup_type)


def generate(instruction_text: str | None, style: StyleParams | None = None) -> PopupDocument:
    """
    Build a popup from free text.

    Total and deterministic: same arguments, same document. The result
    validates without repair and carries fresh lint warnings.
    """
    style = resolve_style(style)
    text = (instruction_text or "").lower()
    is_banner = style.popup_type == "banner"

    wants_image = bool(IMAGE_RULE.search(text))
    wants_secondary = bool(SECONDARY_RULE.search(text))
    tone: Tone = first_match(TONE_RULES, text, GENERIC_TONE)
    cta_label: str = first_match(CTA_LABEL_RULES, text, DEFAULT_CTA_LABEL)

    body = tone.body
    if URGENCY_RULE.search(text) and body.endswith(URGENCY_REWRITE[0]):
        body = body[: -len(URGENCY_REWRITE[0])] + URGENCY_REWRITE[1]
    if MINIMAL_RULE.search(text):
        body = truncate_at_word(body, MINIMAL_BODY_MAX_CHARS)

    theme = Theme.for_mode(style.mode, style.brand_color)
    container = dataclasses.replace(
        Container.for_popup_type(style.popup_type),
        layout="with_image" if wants_image else "text_only",
    )

    elements: list[Element] = []
    if wants_image:
        elements.append(
            ImageElement(
                id="image_1",
                name="Image 1",
                source=UrlImage(url=PLACEHOLDER_IMAGE_URL, alt="Placeholder image"),
                height=140 if is_banner else 220,
                radius=16,
                margin=Spacing(bottom=16),
            )
        )

    elements.append(
        TextElement(
            id="text_1",
            name="Headline",
            text=tone.headline,
            font_size=18 if is_banner else 22,
            font_weight=700,
            margin=Spacing(bottom=8),
        )
    )
    elements.append(
        TextElement(
            id="text_2",
            name="Body",
            text=body,
            font_size=14,
            font_weight=500,
            color=theme.muted_text_color,
            margin=Spacing(bottom=16),
        )
    )
    elements.append(
        CtaElement(
            id="cta_1",
            name="Primary CTA",
            label=cta_label,
            variant="primary",
            full_width=not is_banner,
            action=UrlAction(value=PLACEHOLDER_URL),
            margin=Spacing(bottom=8),
        )
    )
    if wants_secondary:
        elements.append(
            CtaElement(
                id="cta_2",
                name="Secondary CTA",
                label=SECONDARY_CTA_LABEL,
                variant="secondary",
                full_width=not is_banner,
                action=DismissAction(),
            )
        )

    # Positional orders, then the canonical 10/20/30 numbering
    elements = [dataclasses.replace(el, order=i) for i, el in enumerate(elements)]
    doc = PopupDocument(
        popup_type=style.popup_type,
        theme=theme,
        container=container,
        elements=reindex_elements(elements),
    )
    return with_warnings(doc, policy="reset")


def generate_demo(index: int, style: StyleParams | None = None) -> PopupDocument:
    """Offline demo: run a preset prompt through the generator. Index wraps around."""
    preset = DEMO_PRESETS[index % len(DEMO_PRESETS)]
    return generate(preset.prompt, style)
