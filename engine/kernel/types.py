"""
Popup Kernel — Shared Types (schema 2.0)

Data classes used across validator, repair, ordering, generator, lint, and editor.
These are the contracts that bind the kernel together.

Schema 2.0 key points:
- Python attributes are snake_case; the JSON wire form is camelCase (`to_dict()`)
- Elements are a closed tagged union: text | image | cta
- Optional imagery is a tagged variant: {"kind": "none"} | {"kind": "url", "url", "alt"}
- CTA actions are a tagged variant: {"type": "dismiss"} | {"type": "url", "value"}
- `order` defines render sequence; the ordering engine keeps it dense (10, 20, 30, ...)
- Everything is frozen: every mutation returns a new document
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar
from urllib.parse import urlsplit

# ---------------------------------------------------------------------------
# Schema constants
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "2.0"

# Selection sentinel used by editors; never a valid element id.
CONTAINER_ID = "container"

POPUP_TYPES: tuple[str, ...] = ("modal", "banner", "slideup")
MODES: tuple[str, ...] = ("light", "dark")
ALIGNMENTS: tuple[str, ...] = ("left", "center", "right")
ASPECT_RATIOS: tuple[str, ...] = ("auto", "1:1", "4:3", "16:9")
LAYOUTS: tuple[str, ...] = ("text_only", "with_image")
ELEMENT_TYPES: tuple[str, ...] = ("text", "image", "cta")
FONT_WEIGHTS: tuple[int, ...] = (400, 500, 600, 700)
IMAGE_FITS: tuple[str, ...] = ("cover", "contain")
IMAGE_KINDS: tuple[str, ...] = ("none", "url")
CTA_VARIANTS: tuple[str, ...] = ("primary", "secondary")
ACTION_TYPES: tuple[str, ...] = ("url", "dismiss")

# Inclusive (min, max) per bounded numeric field, keyed by wire name
BOUNDS: dict[str, tuple[int, int]] = {
    "maxWidth": (280, 860),
    "cornerRadius": (0, 40),
    "containerPadding": (0, 48),
    "spacing": (0, 80),
    "fontSize": (10, 72),
    "height": (80, 320),
    "radius": (0, 28),
}

ORDER_STEP = 10

PLACEHOLDER_URL = "https://example.com"
PLACEHOLDER_IMAGE_URL = "https://placehold.co/800x400/png"
DEFAULT_IMAGE_ALT = "Image"
DEFAULT_BRAND_COLOR = "#2563EB"

THEME_DEFAULTS: dict[str, dict[str, str]] = {
    "light": {
        "backgroundColor": "#FFFFFF",
        "textColor": "#0F172A",
        "mutedTextColor": "#475569",
    },
    "dark": {
        "backgroundColor": "#0B1220",
        "textColor": "#E5E7EB",
        "mutedTextColor": "#9CA3AF",
    },
}

# Container chrome per popup type (wire names)
CONTAINER_DEFAULTS: dict[str, dict[str, Any]] = {
    "modal": {"maxWidth": 420, "cornerRadius": 18, "padding": 24, "backdrop": True},
    "banner": {"maxWidth": 860, "cornerRadius": 14, "padding": 16, "backdrop": False},
    "slideup": {"maxWidth": 380, "cornerRadius": 16, "padding": 20, "backdrop": False},
}

# ---------------------------------------------------------------------------
# Color patterns
# ---------------------------------------------------------------------------

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
FUNC_COLOR_PATTERN = re.compile(r"^(?:rgb|rgba|hsl|hsla)\(\s*[0-9.,%\s/+-]+\)$")

# CSS Color Module Level 4 keywords, plus transparent and currentcolor
NAMED_COLORS: frozenset[str] = frozenset(
    """
    aliceblue antiquewhite aqua aquamarine azure beige bisque black blanchedalmond blue
    blueviolet brown burlywood cadetblue chartreuse chocolate coral cornflowerblue cornsilk
    crimson cyan darkblue darkcyan darkgoldenrod darkgray darkgreen darkgrey darkkhaki
    darkmagenta darkolivegreen darkorange darkorchid darkred darksalmon darkseagreen
    darkslateblue darkslategray darkslategrey darkturquoise darkviolet deeppink deepskyblue
    dimgray dimgrey dodgerblue firebrick floralwhite forestgreen fuchsia gainsboro ghostwhite
    gold goldenrod gray green greenyellow grey honeydew hotpink indianred indigo ivory khaki
    lavender lavenderblush lawngreen lemonchiffon lightblue lightcoral lightcyan
    lightgoldenrodyellow lightgray lightgreen lightgrey lightpink lightsalmon lightseagreen
    lightskyblue lightslategray lightslategrey lightsteelblue lightyellow lime limegreen linen
    magenta maroon mediumaquamarine mediumblue mediumorchid mediumpurple mediumseagreen
    mediumslateblue mediumspringgreen mediumturquoise mediumvioletred midnightblue mintcream
    mistyrose moccasin navajowhite navy oldlace olive olivedrab orange orangered orchid
    palegoldenrod palegreen paleturquoise palevioletred papayawhip peachpuff peru pink plum
    powderblue purple rebeccapurple red rosybrown royalblue saddlebrown salmon sandybrown
    seagreen seashell sienna silver skyblue slateblue slategray slategrey snow springgreen
    steelblue tan teal thistle tomato turquoise violet wheat white whitesmoke yellow
    yellowgreen transparent currentcolor
    """.split()
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_valid_color(value: Any) -> bool:
    """Check if a value is a CSS color string (hex, rgb/hsl functions, or keyword)."""
    if not isinstance(value, str):
        return False
    v = value.strip()
    return bool(HEX_COLOR_PATTERN.match(v) or FUNC_COLOR_PATTERN.match(v) or v.lower() in NAMED_COLORS)


def is_valid_url(value: Any) -> bool:
    """Check if a value is an absolute http(s) URL with a host."""
    if not isinstance(value, str) or not value or any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_int(value: Any) -> bool:
    """True for real integers. bool is excluded even though it subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    """True for finite int/float values, excluding bool."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def in_bounds(value: int, key: str) -> bool:
    lo, hi = BOUNDS[key]
    return lo <= value <= hi


def clamp(value: int, key: str) -> int:
    lo, hi = BOUNDS[key]
    return max(lo, min(hi, value))


def hex_luminance(color: str) -> float | None:
    """
    Relative luminance (0..1) of a hex color, or None for non-hex colors.
    Alpha channels are ignored.
    """
    if not isinstance(color, str) or not HEX_COLOR_PATTERN.match(color.strip()):
        return None
    digits = color.strip()[1:]
    if len(digits) in (3, 4):
        digits = "".join(c * 2 for c in digits[:3])
    r, g, b = (int(digits[i : i + 2], 16) / 255 for i in (0, 2, 4))
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def _encode(value: Any) -> Any:
    """Wire form of a nested value. Non-schema values pass through so the validator can flag them."""
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return value


# ---------------------------------------------------------------------------
# Data classes: chrome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Spacing:
    """Four-sided spacing in px. Each side is 0–80."""

    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}


@dataclass(frozen=True)
class Theme:
    mode: str = "light"
    brand_color: str = DEFAULT_BRAND_COLOR
    background_color: str = THEME_DEFAULTS["light"]["backgroundColor"]
    text_color: str = THEME_DEFAULTS["light"]["textColor"]
    muted_text_color: str = THEME_DEFAULTS["light"]["mutedTextColor"]

    @classmethod
    def for_mode(cls, mode: str, brand_color: str = DEFAULT_BRAND_COLOR) -> Theme:
        colors = THEME_DEFAULTS[mode]
        return cls(
            mode=mode,
            brand_color=brand_color,
            background_color=colors["backgroundColor"],
            text_color=colors["textColor"],
            muted_text_color=colors["mutedTextColor"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "brandColor": self.brand_color,
            "backgroundColor": self.background_color,
            "textColor": self.text_color,
            "mutedTextColor": self.muted_text_color,
        }


@dataclass(frozen=True)
class Container:
    """
    Popup chrome. `background_color` of "" means "inherit theme background".
    `layout` is the structural flag the renderer uses to reserve an image slot.
    """

    aspect_ratio: str = "auto"
    max_width: int = 420
    corner_radius: int = 18
    padding: int = 24
    show_close_icon: bool = True
    backdrop: bool = True
    dismissible: bool = True
    background_color: str = ""
    layout: str = "text_only"

    @classmethod
    def for_popup_type(cls, popup_type: str) -> Container:
        d = CONTAINER_DEFAULTS[popup_type]
        return cls(
            max_width=d["maxWidth"],
            corner_radius=d["cornerRadius"],
            padding=d["padding"],
            backdrop=d["backdrop"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "aspectRatio": self.aspect_ratio,
            "maxWidth": self.max_width,
            "cornerRadius": self.corner_radius,
            "padding": self.padding,
            "showCloseIcon": self.show_close_icon,
            "backdrop": self.backdrop,
            "dismissible": self.dismissible,
            "backgroundColor": self.background_color,
            "layout": self.layout,
        }


# ---------------------------------------------------------------------------
# Data classes: tagged variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoImage:
    kind: ClassVar[str] = "none"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "none"}


@dataclass(frozen=True)
class UrlImage:
    url: str
    alt: str
    kind: ClassVar[str] = "url"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "url", "url": self.url, "alt": self.alt}


ImageSource = NoImage | UrlImage


@dataclass(frozen=True)
class DismissAction:
    type: ClassVar[str] = "dismiss"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "dismiss"}


@dataclass(frozen=True)
class UrlAction:
    value: str
    type: ClassVar[str] = "url"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "url", "value": self.value}


CtaAction = DismissAction | UrlAction


# ---------------------------------------------------------------------------
# Data classes: elements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextElement:
    id: str
    name: str = "Text"
    order: int = 0
    text: str = "New text"
    font_size: int = 16
    font_weight: int = 600
    color: str | None = None
    align: str = "left"
    margin: Spacing = field(default_factory=Spacing)
    padding: Spacing = field(default_factory=Spacing)
    type: ClassVar[str] = "text"

    def to_dict(self) -> dict[str, Any]:
        d = _common_dict(self)
        d["text"] = self.text
        d["fontSize"] = self.font_size
        d["fontWeight"] = self.font_weight
        if self.color is not None:
            d["color"] = self.color
        return d


@dataclass(frozen=True)
class ImageElement:
    id: str
    name: str = "Image"
    order: int = 0
    source: ImageSource = field(default_factory=NoImage)
    height: int = 160
    radius: int = 12
    fit: str = "cover"
    align: str = "center"
    margin: Spacing = field(default_factory=Spacing)
    padding: Spacing = field(default_factory=Spacing)
    type: ClassVar[str] = "image"

    @property
    def visible(self) -> bool:
        return isinstance(self.source, UrlImage)

    def to_dict(self) -> dict[str, Any]:
        d = _common_dict(self)
        d["source"] = _encode(self.source)
        d["height"] = self.height
        d["radius"] = self.radius
        d["fit"] = self.fit
        return d


@dataclass(frozen=True)
class CtaElement:
    id: str
    name: str = "CTA"
    order: int = 0
    label: str = "Continue"
    variant: str = "primary"
    full_width: bool = True
    action: CtaAction = field(default_factory=DismissAction)
    align: str = "center"
    margin: Spacing = field(default_factory=Spacing)
    padding: Spacing = field(default_factory=Spacing)
    type: ClassVar[str] = "cta"

    def to_dict(self) -> dict[str, Any]:
        d = _common_dict(self)
        d["label"] = self.label
        d["variant"] = self.variant
        d["fullWidth"] = self.full_width
        d["action"] = _encode(self.action)
        return d


Element = TextElement | ImageElement | CtaElement

ELEMENT_CLASSES: dict[str, type] = {
    "text": TextElement,
    "image": ImageElement,
    "cta": CtaElement,
}


def _common_dict(el: Element) -> dict[str, Any]:
    return {
        "id": el.id,
        "type": el.type,
        "name": el.name,
        "order": el.order,
        "align": el.align,
        "margin": _encode(el.margin),
        "padding": _encode(el.padding),
    }


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PopupDocument:
    """
    The root value: one popup's theme, container chrome, and ordered elements.

    `elements` is stored in render order after any kernel mutation, but
    consumers should still walk it via ordering.sorted_elements().
    `warnings` is written by lint only.
    """

    popup_type: str = "modal"
    theme: Theme = field(default_factory=Theme)
    container: Container = field(default_factory=Container)
    elements: tuple[Element, ...] = ()
    warnings: tuple[str, ...] = ()
    version: str = SCHEMA_VERSION

    def element(self, element_id: str) -> Element | None:
        for el in self.elements:
            if el.id == element_id:
                return el
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "popupType": self.popup_type,
            "theme": _encode(self.theme),
            "container": _encode(self.container),
            "elements": [_encode(el) for el in self.elements],
            "warnings": list(self.warnings),
        }


# ---------------------------------------------------------------------------
# Results and parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """One structural problem, addressed by its wire path (e.g. `elements[1].action.value`)."""

    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class ValidationResult:
    """
    Result of validating an arbitrary value.
    The validator never throws; it always returns one of these.
    """

    document: PopupDocument | None
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.document is not None and not self.violations


@dataclass
class EditResult:
    """
    Result of one typed edit. On rejection `document` is the unchanged input.
    """

    document: PopupDocument
    applied: bool
    error: str | None = None


@dataclass(frozen=True)
class StyleParams:
    """Caller-chosen style for generation. Applied verbatim, never inferred from text."""

    brand_color: str = DEFAULT_BRAND_COLOR
    mode: str = "light"
    popup_type: str = "modal"


@dataclass(frozen=True)
class EnforcedContext:
    """Fields the caller insists on during repair. Non-None values are force-overwritten."""

    brand_color: str | None = None
    mode: str | None = None
    popup_type: str | None = None

    @classmethod
    def from_style(cls, style: StyleParams) -> EnforcedContext:
        return cls(brand_color=style.brand_color, mode=style.mode, popup_type=style.popup_type)
