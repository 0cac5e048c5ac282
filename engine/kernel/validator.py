"""
Popup Kernel — Document Validation

Checks an arbitrary value against the 2.0 schema and, when it conforms,
decodes it into a PopupDocument.

Validation is strict: unknown keys, wrong types, out-of-range numbers and
unknown enum values are all violations. Nothing is coerced here; coercion is
repair's job (engine.kernel.repair).

Every violation carries the wire path of the offending field so editors can
point at it, e.g. `container.maxWidth` or `elements[2].action.value`.
"""

from __future__ import annotations

from typing import Any

from engine.kernel.types import (
    ACTION_TYPES,
    ALIGNMENTS,
    ASPECT_RATIOS,
    BOUNDS,
    CONTAINER_ID,
    CTA_VARIANTS,
    ELEMENT_TYPES,
    FONT_WEIGHTS,
    IMAGE_FITS,
    IMAGE_KINDS,
    LAYOUTS,
    MODES,
    POPUP_TYPES,
    SCHEMA_VERSION,
    Container,
    CtaElement,
    DismissAction,
    Element,
    ImageElement,
    NoImage,
    PopupDocument,
    Spacing,
    TextElement,
    Theme,
    UrlAction,
    UrlImage,
    ValidationResult,
    Violation,
    is_int,
    is_valid_color,
    is_valid_url,
)

ROOT_PATH = "document"

_ROOT_REQUIRED = ("version", "popupType", "theme", "container", "elements")
_ROOT_OPTIONAL = ("warnings",)
_THEME_REQUIRED = ("mode", "brandColor", "backgroundColor", "textColor", "mutedTextColor")
_CONTAINER_REQUIRED = (
    "aspectRatio",
    "maxWidth",
    "cornerRadius",
    "padding",
    "showCloseIcon",
    "backdrop",
    "dismissible",
    "backgroundColor",
    "layout",
)
_SPACING_REQUIRED = ("top", "right", "bottom", "left")
_COMMON_REQUIRED = ("id", "type", "name", "order", "align", "margin", "padding")

# Per-type element keys: (required, optional)
_ELEMENT_KEYS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "text": (("text", "fontSize", "fontWeight"), ("color",)),
    "image": (("source", "height", "radius", "fit"), ()),
    "cta": (("label", "variant", "fullWidth", "action"), ()),
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate(candidate: Any) -> ValidationResult:
    """
    Validate a candidate document.
    Returns a ValidationResult: `document` is set only when there are no violations.

    Accepts anything: dicts from JSON, garbage, or a PopupDocument (validated
    through its wire form, so hand-built documents get the same checks).
    Never raises for bad input.
    """
    if isinstance(candidate, PopupDocument):
        candidate = candidate.to_dict()

    errors: list[Violation] = []

    if not isinstance(candidate, dict):
        errors.append(Violation(ROOT_PATH, "Document must be an object"))
        return ValidationResult(document=None, violations=errors)

    _check_keys(errors, candidate, _ROOT_REQUIRED, _ROOT_OPTIONAL, "")

    # Version is checked first and is never coerced
    if "version" in candidate and candidate["version"] != SCHEMA_VERSION:
        errors.append(
            Violation("version", f"Unsupported schema version: {candidate['version']!r} (expected {SCHEMA_VERSION!r})")
        )

    if "popupType" in candidate:
        _check_enum(errors, candidate, "popupType", POPUP_TYPES, "")

    if "theme" in candidate:
        errors.extend(_validate_theme(candidate["theme"]))

    if "container" in candidate:
        errors.extend(_validate_container(candidate["container"]))

    if "elements" in candidate:
        errors.extend(_validate_elements(candidate["elements"]))

    if "warnings" in candidate:
        warnings = candidate["warnings"]
        if not isinstance(warnings, list):
            errors.append(Violation("warnings", "'warnings' must be a list"))
        else:
            for i, w in enumerate(warnings):
                if not isinstance(w, str):
                    errors.append(Violation(f"warnings[{i}]", "Warning must be a string"))

    if errors:
        return ValidationResult(document=None, violations=errors)

    return ValidationResult(document=_decode_document(candidate), violations=[])


def validate_element(candidate: Any, path: str = "element") -> list[Violation]:
    """Validate a single element in isolation. Empty list = valid."""
    return _validate_element(candidate, path)


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _check_keys(
    errors: list[Violation],
    obj: dict,
    required: tuple[str, ...],
    optional: tuple[str, ...],
    path: str,
) -> None:
    for key in required:
        if key not in obj:
            errors.append(Violation(_join(path, key), f"Missing required field '{key}'"))
    known = set(required) | set(optional)
    for key in obj:
        if key not in known:
            errors.append(Violation(_join(path, str(key)), f"Unknown field '{key}'"))


def _check_enum(errors: list[Violation], obj: dict, key: str, allowed: tuple, path: str) -> None:
    value = obj[key]
    if value not in allowed or isinstance(value, bool):
        errors.append(Violation(_join(path, key), f"Unknown value {value!r}. Known: {list(allowed)}"))


def _check_int(errors: list[Violation], obj: dict, key: str, path: str, bound: str | None = None) -> None:
    value = obj[key]
    if not is_int(value):
        errors.append(Violation(_join(path, key), f"'{key}' must be an integer"))
        return
    if bound is not None:
        lo, hi = BOUNDS[bound]
        if not lo <= value <= hi:
            errors.append(Violation(_join(path, key), f"'{key}' must be between {lo} and {hi}, got {value}"))


def _check_bool(errors: list[Violation], obj: dict, key: str, path: str) -> None:
    if not isinstance(obj[key], bool):
        errors.append(Violation(_join(path, key), f"'{key}' must be a boolean"))


def _check_str(errors: list[Violation], obj: dict, key: str, path: str, non_empty: bool = False) -> None:
    value = obj[key]
    if not isinstance(value, str):
        errors.append(Violation(_join(path, key), f"'{key}' must be a string"))
    elif non_empty and not value.strip():
        errors.append(Violation(_join(path, key), f"'{key}' must not be empty"))


def _check_color(errors: list[Violation], obj: dict, key: str, path: str, allow_empty: bool = False) -> None:
    value = obj[key]
    if allow_empty and value == "":
        return
    if not is_valid_color(value):
        errors.append(Violation(_join(path, key), f"Invalid color: {value!r}"))


# ---------------------------------------------------------------------------
# Section validators
# ---------------------------------------------------------------------------


def _validate_theme(theme: Any) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(theme, dict):
        errors.append(Violation("theme", "'theme' must be an object"))
        return errors

    _check_keys(errors, theme, _THEME_REQUIRED, (), "theme")
    if "mode" in theme:
        _check_enum(errors, theme, "mode", MODES, "theme")
    for key in ("brandColor", "backgroundColor", "textColor", "mutedTextColor"):
        if key in theme:
            _check_color(errors, theme, key, "theme")
    return errors


def _validate_container(container: Any) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(container, dict):
        errors.append(Violation("container", "'container' must be an object"))
        return errors

    p = "container"
    _check_keys(errors, container, _CONTAINER_REQUIRED, (), p)
    if "aspectRatio" in container:
        _check_enum(errors, container, "aspectRatio", ASPECT_RATIOS, p)
    if "maxWidth" in container:
        _check_int(errors, container, "maxWidth", p, "maxWidth")
    if "cornerRadius" in container:
        _check_int(errors, container, "cornerRadius", p, "cornerRadius")
    if "padding" in container:
        _check_int(errors, container, "padding", p, "containerPadding")
    for key in ("showCloseIcon", "backdrop", "dismissible"):
        if key in container:
            _check_bool(errors, container, key, p)
    if "backgroundColor" in container:
        _check_color(errors, container, "backgroundColor", p, allow_empty=True)
    if "layout" in container:
        _check_enum(errors, container, "layout", LAYOUTS, p)
    return errors


def _validate_spacing(spacing: Any, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(spacing, dict):
        errors.append(Violation(path, "Spacing must be an object"))
        return errors
    _check_keys(errors, spacing, _SPACING_REQUIRED, (), path)
    for side in _SPACING_REQUIRED:
        if side in spacing:
            _check_int(errors, spacing, side, path, "spacing")
    return errors


def _validate_elements(elements: Any) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(elements, list):
        errors.append(Violation("elements", "'elements' must be a list"))
        return errors

    seen: set[str] = set()
    for i, el in enumerate(elements):
        path = f"elements[{i}]"
        errors.extend(_validate_element(el, path))
        if isinstance(el, dict) and isinstance(el.get("id"), str):
            if el["id"] in seen:
                errors.append(Violation(f"{path}.id", f"Duplicate element id: {el['id']!r}"))
            seen.add(el["id"])
    return errors


def _validate_element(el: Any, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(el, dict):
        errors.append(Violation(path, "Element must be an object"))
        return errors

    el_type = el.get("type")
    if el_type not in ELEMENT_TYPES or isinstance(el_type, bool):
        errors.append(Violation(_join(path, "type"), f"Unknown element type: {el_type!r}. Known: {list(ELEMENT_TYPES)}"))
        return errors  # can't validate fields for unknown type

    required, optional = _ELEMENT_KEYS[el_type]
    _check_keys(errors, el, _COMMON_REQUIRED + required, optional, path)

    if "id" in el:
        _check_str(errors, el, "id", path, non_empty=True)
        if el["id"] == CONTAINER_ID:
            errors.append(Violation(_join(path, "id"), f"'{CONTAINER_ID}' is reserved"))
    if "name" in el:
        _check_str(errors, el, "name", path)
    if "order" in el:
        _check_int(errors, el, "order", path)
    if "align" in el:
        _check_enum(errors, el, "align", ALIGNMENTS, path)
    for key in ("margin", "padding"):
        if key in el:
            errors.extend(_validate_spacing(el[key], _join(path, key)))

    # Dispatch to type-specific validator
    errors.extend(_VALIDATORS[el_type](el, path))
    return errors


# ---------------------------------------------------------------------------
# Per-type validators
# ---------------------------------------------------------------------------


def _validate_text(el: dict, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if "text" in el:
        _check_str(errors, el, "text", path)
    if "fontSize" in el:
        _check_int(errors, el, "fontSize", path, "fontSize")
    if "fontWeight" in el and not (is_int(el["fontWeight"]) and el["fontWeight"] in FONT_WEIGHTS):
        errors.append(Violation(_join(path, "fontWeight"), f"Unknown font weight {el['fontWeight']!r}. Known: {list(FONT_WEIGHTS)}"))
    if "color" in el and el["color"] is not None:
        _check_color(errors, el, "color", path)
    return errors


def _validate_image(el: dict, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if "source" in el:
        errors.extend(_validate_image_source(el["source"], _join(path, "source")))
    if "height" in el:
        _check_int(errors, el, "height", path, "height")
    if "radius" in el:
        _check_int(errors, el, "radius", path, "radius")
    if "fit" in el:
        _check_enum(errors, el, "fit", IMAGE_FITS, path)
    return errors


def _validate_image_source(source: Any, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(source, dict):
        errors.append(Violation(path, "'source' must be an object"))
        return errors

    kind = source.get("kind")
    if kind not in IMAGE_KINDS:
        errors.append(Violation(_join(path, "kind"), f"Unknown image source kind: {kind!r}. Known: {list(IMAGE_KINDS)}"))
        return errors

    if kind == "none":
        _check_keys(errors, source, ("kind",), (), path)
        return errors

    # A visible image needs both halves; one without the other is invalid, not incomplete
    _check_keys(errors, source, ("kind", "url", "alt"), (), path)
    if "url" in source and not is_valid_url(source["url"]):
        errors.append(Violation(_join(path, "url"), f"Image url must be an absolute http(s) URL, got {source['url']!r}"))
    if "alt" in source:
        _check_str(errors, source, "alt", path, non_empty=True)
    return errors


def _validate_cta(el: dict, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if "label" in el:
        _check_str(errors, el, "label", path, non_empty=True)
    if "variant" in el:
        _check_enum(errors, el, "variant", CTA_VARIANTS, path)
    if "fullWidth" in el:
        _check_bool(errors, el, "fullWidth", path)
    if "action" in el:
        errors.extend(_validate_action(el["action"], _join(path, "action")))
    return errors


def _validate_action(action: Any, path: str) -> list[Violation]:
    errors: list[Violation] = []
    if not isinstance(action, dict):
        errors.append(Violation(path, "'action' must be an object"))
        return errors

    action_type = action.get("type")
    if action_type not in ACTION_TYPES:
        errors.append(Violation(_join(path, "type"), f"Unknown action type: {action_type!r}. Known: {list(ACTION_TYPES)}"))
        return errors

    if action_type == "dismiss":
        _check_keys(errors, action, ("type",), ("value",), path)
        if action.get("value") not in (None, ""):
            errors.append(Violation(_join(path, "value"), "A dismiss action must not carry a value"))
        return errors

    _check_keys(errors, action, ("type", "value"), (), path)
    if "value" in action and not is_valid_url(action["value"]):
        errors.append(Violation(_join(path, "value"), f"URL action needs an absolute http(s) URL, got {action['value']!r}"))
    return errors


_VALIDATORS: dict[str, Any] = {
    "text": _validate_text,
    "image": _validate_image,
    "cta": _validate_cta,
}


# ---------------------------------------------------------------------------
# Decoding (input already validated)
# ---------------------------------------------------------------------------


def _decode_spacing(d: dict) -> Spacing:
    return Spacing(top=d["top"], right=d["right"], bottom=d["bottom"], left=d["left"])


def _decode_element(d: dict) -> Element:
    common = {
        "id": d["id"],
        "name": d["name"],
        "order": d["order"],
        "align": d["align"],
        "margin": _decode_spacing(d["margin"]),
        "padding": _decode_spacing(d["padding"]),
    }
    if d["type"] == "text":
        return TextElement(
            **common,
            text=d["text"],
            font_size=d["fontSize"],
            font_weight=d["fontWeight"],
            color=d.get("color"),
        )
    if d["type"] == "image":
        src = d["source"]
        source = UrlImage(url=src["url"], alt=src["alt"]) if src["kind"] == "url" else NoImage()
        return ImageElement(**common, source=source, height=d["height"], radius=d["radius"], fit=d["fit"])
    if d["type"] == "cta":
        act = d["action"]
        action = UrlAction(value=act["value"]) if act["type"] == "url" else DismissAction()
        return CtaElement(
            **common,
            label=d["label"],
            variant=d["variant"],
            full_width=d["fullWidth"],
            action=action,
        )
    raise TypeError(f"Undecodable element type: {d['type']!r}")


def _decode_document(d: dict) -> PopupDocument:
    t = d["theme"]
    c = d["container"]
    return PopupDocument(
        version=d["version"],
        popup_type=d["popupType"],
        theme=Theme(
            mode=t["mode"],
            brand_color=t["brandColor"],
            background_color=t["backgroundColor"],
            text_color=t["textColor"],
            muted_text_color=t["mutedTextColor"],
        ),
        container=Container(
            aspect_ratio=c["aspectRatio"],
            max_width=c["maxWidth"],
            corner_radius=c["cornerRadius"],
            padding=c["padding"],
            show_close_icon=c["showCloseIcon"],
            backdrop=c["backdrop"],
            dismissible=c["dismissible"],
            background_color=c["backgroundColor"],
            layout=c["layout"],
        ),
        elements=tuple(_decode_element(el) for el in d["elements"]),
        warnings=tuple(d.get("warnings", [])),
    )
