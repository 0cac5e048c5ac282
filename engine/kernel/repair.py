"""
Popup Kernel — Repair

Total function: (anything, enforced context) → valid PopupDocument.

This is the safety net between best-effort structured text (LLM output,
legacy documents, half-edited JSON) and a document the renderer can trust.
It never raises and never returns something validate() would reject.

Policy, per field:
  - unknown enum value      → the field's default variant
  - out-of-range number     → nearest bound
  - non-number              → type default (numeric strings are parsed, floats rounded)
  - unknown font weight     → nearest allowed weight
  - invalid color           → theme default for the mode (optional overrides → absent)
  - url action w/o good URL → PLACEHOLDER_URL
  - image w/o good URL      → {"kind": "none"}

Policy, per element:
  - unrecognised type tag   → dropped (LLMs emit speculative blocks)
  - recognised, incomplete  → repaired field by field, never dropped

Legacy shapes are read too: element-level `kind` instead of `type`, `button`
for `cta`, flat `actionType`/`actionValue`, and flat image `url`/`alt` with an
`enabled` flag.

Enforced context (brand color, mode, popup type) comes from trusted caller
state and always overwrites whatever the candidate says.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from engine.kernel.ordering import reindex_elements, unique_id
from engine.kernel.types import (
    ALIGNMENTS,
    ASPECT_RATIOS,
    CONTAINER_ID,
    CTA_VARIANTS,
    DEFAULT_BRAND_COLOR,
    DEFAULT_IMAGE_ALT,
    FONT_WEIGHTS,
    IMAGE_FITS,
    LAYOUTS,
    MODES,
    ORDER_STEP,
    PLACEHOLDER_URL,
    POPUP_TYPES,
    THEME_DEFAULTS,
    Container,
    CtaAction,
    CtaElement,
    DismissAction,
    Element,
    EnforcedContext,
    ImageElement,
    ImageSource,
    NoImage,
    PopupDocument,
    Spacing,
    TextElement,
    Theme,
    UrlAction,
    UrlImage,
    clamp,
    is_number,
    is_valid_color,
    is_valid_url,
)

logger = logging.getLogger(__name__)

_TYPE_ALIASES: dict[str, str] = {
    "text": "text",
    "image": "image",
    "cta": "cta",
    "button": "cta",
}

_DEFAULT_NAMES: dict[str, str] = {"text": "Text", "image": "Image", "cta": "CTA"}
_DEFAULT_ALIGN: dict[str, str] = {"text": "left", "image": "center", "cta": "center"}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def repair(candidate: Any, enforced: EnforcedContext | None = None) -> PopupDocument:
    """
    Coerce a candidate into a valid document.

    Args:
        candidate: Any value, usually a dict parsed from model output
        enforced: Caller-owned fields to force onto the result

    Returns:
        A PopupDocument with zero validation violations, elements reindexed
    """
    enforced = enforced or EnforcedContext()
    if isinstance(candidate, PopupDocument):
        candidate = candidate.to_dict()
    raw = _as_dict(candidate)

    popup_type = _enforced_enum(enforced.popup_type, POPUP_TYPES, "popup_type")
    if popup_type is None:
        popup_type = coerce_enum(raw.get("popupType"), POPUP_TYPES, "modal")

    theme = _repair_theme(_as_dict(raw.get("theme")), enforced)
    elements = _repair_elements(raw.get("elements"))
    container = _repair_container(_as_dict(raw.get("container")), popup_type, elements)

    warnings = raw.get("warnings")
    kept_warnings = tuple(w for w in warnings if isinstance(w, str)) if isinstance(warnings, list) else ()

    return PopupDocument(
        popup_type=popup_type,
        theme=theme,
        container=container,
        elements=reindex_elements(elements),
        warnings=kept_warnings,
    )


def repair_element(candidate: Any, index: int = 0, taken: set[str] | None = None) -> Element | None:
    """
    Repair one element. Returns None when the type tag is unrecognised.
    `taken` collects ids already in use and is updated with the result's id.
    """
    return _repair_element(candidate, index, taken if taken is not None else set())


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def coerce_int(value: Any, default: int, bound: str | None = None) -> int:
    """Number-ish → int, rounded and clamped to BOUNDS[bound]. Anything else → default."""
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
        if not math.isfinite(value):
            return default
    if not is_number(value):
        return default
    n = int(round(value))
    return clamp(n, bound) if bound is not None else n


def coerce_enum(value: Any, allowed: tuple, default: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        lowered = value.lower()
        for option in allowed:
            if isinstance(option, str) and option.lower() == lowered:
                return option
        return default
    if isinstance(value, bool):
        return default
    return value if value in allowed else default


def coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return default


def coerce_color(value: Any, default: str) -> str:
    if is_valid_color(value):
        return value.strip()
    return default


def coerce_str(value: Any, default: str, non_empty: bool = False) -> str:
    if not isinstance(value, str):
        return default
    if non_empty and not value.strip():
        return default
    return value


def nearest_font_weight(value: Any, default: int = 600) -> int:
    if isinstance(value, str):
        value = coerce_int(value, default)
    if not is_number(value):
        return default
    return min(FONT_WEIGHTS, key=lambda w: (abs(w - value), w))


# ---------------------------------------------------------------------------
# Section repair
# ---------------------------------------------------------------------------


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _enforced_enum(value: str | None, allowed: tuple, label: str) -> str | None:
    if value is None:
        return None
    if value in allowed:
        return value
    logger.debug("repair: ignoring invalid enforced %s %r", label, value)
    return None


def _repair_theme(raw: dict[str, Any], enforced: EnforcedContext) -> Theme:
    mode = _enforced_enum(enforced.mode, MODES, "mode")
    if mode is None:
        mode = coerce_enum(raw.get("mode"), MODES, "light")
    defaults = THEME_DEFAULTS[mode]

    brand = enforced.brand_color if is_valid_color(enforced.brand_color) else None
    if enforced.brand_color is not None and brand is None:
        logger.debug("repair: ignoring invalid enforced brand color %r", enforced.brand_color)
    if brand is None:
        brand = coerce_color(raw.get("brandColor"), DEFAULT_BRAND_COLOR)

    return Theme(
        mode=mode,
        brand_color=brand.strip(),
        background_color=coerce_color(raw.get("backgroundColor"), defaults["backgroundColor"]),
        text_color=coerce_color(raw.get("textColor"), defaults["textColor"]),
        muted_text_color=coerce_color(raw.get("mutedTextColor"), defaults["mutedTextColor"]),
    )


def _repair_container(raw: dict[str, Any], popup_type: str, elements: list[Element]) -> Container:
    d = Container.for_popup_type(popup_type)

    background = raw.get("backgroundColor")
    background = "" if background == "" else coerce_color(background, d.background_color)

    has_image = any(isinstance(el, ImageElement) and el.visible for el in elements)
    derived_layout = "with_image" if has_image else "text_only"

    return Container(
        aspect_ratio=coerce_enum(raw.get("aspectRatio"), ASPECT_RATIOS, "auto"),
        max_width=coerce_int(raw.get("maxWidth"), d.max_width, "maxWidth"),
        corner_radius=coerce_int(raw.get("cornerRadius"), d.corner_radius, "cornerRadius"),
        padding=coerce_int(raw.get("padding"), d.padding, "containerPadding"),
        show_close_icon=coerce_bool(raw.get("showCloseIcon"), d.show_close_icon),
        backdrop=coerce_bool(raw.get("backdrop"), d.backdrop),
        dismissible=coerce_bool(raw.get("dismissible"), d.dismissible),
        background_color=background,
        layout=coerce_enum(raw.get("layout"), LAYOUTS, derived_layout),
    )


def _repair_spacing(raw: Any) -> Spacing:
    if is_number(raw) or isinstance(raw, str):
        n = coerce_int(raw, 0, "spacing")
        return Spacing(top=n, right=n, bottom=n, left=n)
    d = _as_dict(raw)
    return Spacing(
        top=coerce_int(d.get("top"), 0, "spacing"),
        right=coerce_int(d.get("right"), 0, "spacing"),
        bottom=coerce_int(d.get("bottom"), 0, "spacing"),
        left=coerce_int(d.get("left"), 0, "spacing"),
    )


def _repair_elements(raw: Any) -> list[Element]:
    if not isinstance(raw, list):
        return []
    taken: set[str] = set()
    out: list[Element] = []
    for i, item in enumerate(raw):
        el = _repair_element(item, i, taken)
        if el is not None:
            out.append(el)
    return out


def _element_type(item: dict[str, Any]) -> str | None:
    tag = item.get("type", item.get("kind"))
    if not isinstance(tag, str):
        return None
    return _TYPE_ALIASES.get(tag.strip().lower())


def _repair_element(item: Any, index: int, taken: set[str]) -> Element | None:
    if not isinstance(item, dict):
        logger.debug("repair: dropping non-object element at index %d", index)
        return None

    el_type = _element_type(item)
    if el_type is None:
        logger.debug("repair: dropping element with unknown type %r", item.get("type", item.get("kind")))
        return None

    raw_id = item.get("id")
    if isinstance(raw_id, str) and raw_id.strip() and raw_id.strip() != CONTAINER_ID and raw_id.strip() not in taken:
        el_id = raw_id.strip()
    else:
        el_id = unique_id(f"{el_type}_{index + 1}", taken)
    taken.add(el_id)

    common: dict[str, Any] = {
        "id": el_id,
        "name": coerce_str(item.get("name"), _DEFAULT_NAMES[el_type]),
        "order": coerce_int(item.get("order"), (index + 1) * ORDER_STEP),
        "align": coerce_enum(item.get("align"), ALIGNMENTS, _DEFAULT_ALIGN[el_type]),
        "margin": _repair_spacing(item.get("margin")),
        "padding": _repair_spacing(item.get("padding")),
    }
    return _REPAIRERS[el_type](item, common)


# ---------------------------------------------------------------------------
# Per-type repair
# ---------------------------------------------------------------------------


def _repair_text(item: dict[str, Any], common: dict[str, Any]) -> TextElement:
    color = item.get("color")
    return TextElement(
        **common,
        text=coerce_str(item.get("text"), ""),
        font_size=coerce_int(item.get("fontSize"), 16, "fontSize"),
        font_weight=nearest_font_weight(item.get("fontWeight")),
        color=color.strip() if is_valid_color(color) else None,
    )


def _repair_image_source(item: dict[str, Any]) -> ImageSource:
    src = item.get("source")
    if isinstance(src, dict):
        if src.get("kind") == "none":
            return NoImage()
        url, alt, enabled = src.get("url"), src.get("alt"), True
    else:
        # Legacy flat form: url/alt on the element, optional enabled flag
        url, alt, enabled = item.get("url"), item.get("alt"), coerce_bool(item.get("enabled"), True)

    if isinstance(url, str):
        url = url.strip()
    if not enabled or not is_valid_url(url):
        return NoImage()
    alt = alt.strip() if isinstance(alt, str) and alt.strip() else DEFAULT_IMAGE_ALT
    return UrlImage(url=url, alt=alt)


def _repair_image(item: dict[str, Any], common: dict[str, Any]) -> ImageElement:
    return ImageElement(
        **common,
        source=_repair_image_source(item),
        height=coerce_int(item.get("height"), 160, "height"),
        radius=coerce_int(item.get("radius", item.get("cornerRadius")), 12, "radius"),
        fit=coerce_enum(item.get("fit"), IMAGE_FITS, "cover"),
    )


def _repair_action(item: dict[str, Any]) -> CtaAction:
    act = item.get("action")
    if isinstance(act, dict):
        action_type, value = act.get("type"), act.get("value")
    elif isinstance(act, str):
        action_type, value = act, None
    else:
        action_type, value = item.get("actionType"), item.get("actionValue")

    if isinstance(value, str):
        value = value.strip()
    if action_type is None and is_valid_url(value):
        action_type = "url"

    if isinstance(action_type, str) and action_type.strip().lower() == "url":
        return UrlAction(value=value if is_valid_url(value) else PLACEHOLDER_URL)
    return DismissAction()


def _repair_cta(item: dict[str, Any], common: dict[str, Any]) -> CtaElement:
    label = item.get("label")
    return CtaElement(
        **common,
        label=label.strip() if isinstance(label, str) and label.strip() else "Continue",
        variant=coerce_enum(item.get("variant"), CTA_VARIANTS, "primary"),
        full_width=coerce_bool(item.get("fullWidth"), True),
        action=_repair_action(item),
    )


_REPAIRERS: dict[str, Any] = {
    "text": _repair_text,
    "image": _repair_image,
    "cta": _repair_cta,
}
