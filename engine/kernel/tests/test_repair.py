"""
Popup Repair — Totality and Coercion Tests

repair() must accept anything and always return a document that validates.
These tests throw hostile and legacy inputs at it and check both the
outcome and the specific coercion policy.
"""

import pytest

from engine.kernel.repair import coerce_enum, coerce_int, nearest_font_weight, repair, repair_element
from engine.kernel.types import (
    PLACEHOLDER_URL,
    CtaElement,
    DismissAction,
    EnforcedContext,
    ImageElement,
    NoImage,
    TextElement,
    UrlAction,
    UrlImage,
)
from engine.kernel.validator import validate

# ============================================================================
# Totality
# ============================================================================

HOSTILE_INPUTS = [
    None,
    42,
    "popup",
    [],
    [1, 2, 3],
    True,
    float("nan"),
    {},
    {"elements": "nope"},
    {"elements": [None, 1, "x", [], {}]},
    {"theme": [], "container": "wide", "popupType": 7},
    {"elements": [{"type": "text", "fontSize": float("inf"), "fontWeight": "heavy"}]},
    {"elements": [{"type": "cta", "action": 12, "label": None}]},
    {"elements": [{"type": "image", "source": "https://example.com/a.png"}]},
    {"elements": [{"type": "image", "source": {"kind": "url", "url": 5, "alt": []}}]},
    {"elements": [{"type": "text", "margin": "lots", "padding": [1, 2]}]},
    {"elements": [{"type": "text", "order": "first"}, {"type": "text", "order": None}]},
    {"warnings": "bad", "version": 2},
    {"container": {"maxWidth": 10**12, "cornerRadius": -5, "padding": "1e400"}},
]


class TestTotality:
    @pytest.mark.parametrize("candidate", HOSTILE_INPUTS)
    def test_repair_output_always_validates(self, candidate):
        """No input makes repair raise or produce an invalid document."""
        doc = repair(candidate)
        result = validate(doc)
        assert result.ok, result.violations

    @pytest.mark.parametrize("candidate", HOSTILE_INPUTS)
    def test_repair_output_is_densely_ordered(self, candidate):
        doc = repair(candidate)
        assert [el.order for el in doc.elements] == [(i + 1) * 10 for i in range(len(doc.elements))]

    def test_garbage_becomes_empty_default_modal(self):
        doc = repair("not a popup")
        assert doc.popup_type == "modal"
        assert doc.theme.mode == "light"
        assert doc.elements == ()
        assert doc.container.max_width == 420

    def test_valid_document_is_unchanged(self, full_doc):
        """Repair is a no-op on a document that already validates."""
        assert repair(full_doc) == full_doc
        assert repair(full_doc.to_dict()) == full_doc

    def test_repair_is_idempotent(self):
        messy = {"elements": [{"kind": "button", "label": " Go ", "order": 3}, {"type": "text", "order": 1}]}
        once = repair(messy)
        assert repair(once) == once


# ============================================================================
# Enforced context
# ============================================================================


class TestEnforcedContext:
    def test_enforced_fields_overwrite_candidate(self):
        candidate = {"popupType": "banner", "theme": {"mode": "dark", "brandColor": "#000000"}}
        enforced = EnforcedContext(brand_color="#FF5500", mode="light", popup_type="slideup")
        doc = repair(candidate, enforced)
        assert doc.popup_type == "slideup"
        assert doc.theme.mode == "light"
        assert doc.theme.brand_color == "#FF5500"

    def test_partial_enforcement_keeps_other_candidate_fields(self):
        candidate = {"popupType": "banner", "theme": {"mode": "dark"}}
        doc = repair(candidate, EnforcedContext(brand_color="#112233"))
        assert doc.popup_type == "banner"
        assert doc.theme.mode == "dark"

    def test_invalid_enforced_values_are_ignored(self):
        """A bad enforced value falls back to the candidate rather than breaking validity."""
        candidate = {"popupType": "banner", "theme": {"brandColor": "#00AA00"}}
        doc = repair(candidate, EnforcedContext(brand_color="###", popup_type="toast"))
        assert doc.popup_type == "banner"
        assert doc.theme.brand_color == "#00AA00"
        assert validate(doc).ok

    def test_mode_drives_theme_color_defaults(self):
        doc = repair({"theme": {"backgroundColor": "??"}}, EnforcedContext(mode="dark"))
        assert doc.theme.background_color == "#0B1220"

    def test_popup_type_drives_container_defaults(self):
        doc = repair({}, EnforcedContext(popup_type="banner"))
        assert doc.container.max_width == 860
        assert doc.container.backdrop is False


# ============================================================================
# Field coercion
# ============================================================================


class TestFieldCoercion:
    def test_numbers_are_clamped(self):
        doc = repair({"container": {"maxWidth": 2000, "cornerRadius": -3}})
        assert doc.container.max_width == 860
        assert doc.container.corner_radius == 0

    def test_invented_color_word_is_replaced(self):
        doc = repair({"theme": {"brandColor": "banana", "textColor": "navy"}})
        assert doc.theme.brand_color == repair({}).theme.brand_color
        assert doc.theme.text_color == "navy"

    def test_numeric_strings_and_floats(self):
        doc = repair({"elements": [{"type": "text", "fontSize": "20"}, {"type": "text", "fontSize": 15.6}]})
        assert [el.font_size for el in doc.elements] == [20, 16]

    def test_unknown_enums_fall_back(self):
        doc = repair({"popupType": "fullscreen", "container": {"aspectRatio": "21:9", "layout": "split"}})
        assert doc.popup_type == "modal"
        assert doc.container.aspect_ratio == "auto"
        assert doc.container.layout == "text_only"

    def test_enums_match_case_insensitively(self):
        doc = repair({"popupType": " Banner ", "theme": {"mode": "DARK"}})
        assert doc.popup_type == "banner"
        assert doc.theme.mode == "dark"

    def test_booleans_from_strings_only_when_exact(self):
        doc = repair({"popupType": "modal", "container": {"backdrop": "false", "dismissible": "nah"}})
        assert doc.container.backdrop is False
        assert doc.container.dismissible is True

    @pytest.mark.parametrize(
        "weight,expected",
        [(850, 700), (480, 500), (550, 500), (401, 400), ("650", 600), ("bold", 600), (None, 600)],
    )
    def test_nearest_font_weight(self, weight, expected):
        assert nearest_font_weight(weight) == expected

    def test_invalid_text_color_becomes_inherit(self):
        el = repair_element({"type": "text", "color": "sparkly!"})
        assert isinstance(el, TextElement)
        assert el.color is None

    def test_empty_container_background_is_kept(self):
        doc = repair({"container": {"backgroundColor": ""}})
        assert doc.container.background_color == ""

    def test_scalar_spacing_applies_to_all_sides(self):
        el = repair_element({"type": "text", "margin": 12})
        assert (el.margin.top, el.margin.right, el.margin.bottom, el.margin.left) == (12, 12, 12, 12)

    def test_warnings_keep_only_strings(self):
        doc = repair({"warnings": ["keep", 1, None, "also"]})
        assert doc.warnings == ("keep", "also")

    def test_coerce_helpers(self):
        assert coerce_int("nan", 5) == 5
        assert coerce_int(True, 5) == 5
        assert coerce_int(99.5, 0, "radius") == 28
        assert coerce_enum(1, ("a", "b"), "a") == "a"


# ============================================================================
# Elements
# ============================================================================


class TestElementRepair:
    def test_unknown_types_are_dropped_known_are_kept(self):
        doc = repair(
            {
                "elements": [
                    {"type": "video", "id": "v"},
                    {"type": "text", "id": "t", "text": "Hi"},
                    {"id": "typeless"},
                ]
            }
        )
        assert [el.id for el in doc.elements] == ["t"]

    def test_missing_fields_are_filled_not_dropped(self):
        doc = repair({"elements": [{"type": "cta"}]})
        (el,) = doc.elements
        assert isinstance(el, CtaElement)
        assert el.id == "cta_1"
        assert el.label == "Continue"
        assert isinstance(el.action, DismissAction)

    def test_duplicate_and_reserved_ids_are_replaced(self):
        doc = repair(
            {
                "elements": [
                    {"type": "text", "id": "a"},
                    {"type": "text", "id": "a"},
                    {"type": "text", "id": "container"},
                    {"type": "text", "id": ""},
                ]
            }
        )
        assert [el.id for el in doc.elements] == ["a", "text_2", "text_3", "text_4"]

    def test_generated_id_avoids_later_collisions(self):
        doc = repair({"elements": [{"type": "text", "id": "text_2"}, {"type": "text"}]})
        assert [el.id for el in doc.elements] == ["text_2", "text_2_2"]

    def test_elements_are_reindexed_stably(self):
        doc = repair(
            {
                "elements": [
                    {"type": "text", "id": "b", "order": 5},
                    {"type": "text", "id": "c", "order": 5},
                    {"type": "text", "id": "a", "order": 1},
                ]
            }
        )
        assert [el.id for el in doc.elements] == ["a", "b", "c"]
        assert [el.order for el in doc.elements] == [10, 20, 30]

    def test_missing_order_defaults_to_position(self):
        doc = repair({"elements": [{"type": "text", "id": "x", "order": 15}, {"type": "text", "id": "y"}]})
        assert [el.id for el in doc.elements] == ["x", "y"]


class TestLegacyShapes:
    def test_kind_button_is_a_cta(self):
        el = repair_element({"kind": "button", "label": "Go", "actionType": "url", "actionValue": "https://example.com/go"})
        assert isinstance(el, CtaElement)
        assert el.action == UrlAction(value="https://example.com/go")

    def test_string_action_is_the_type(self):
        el = repair_element({"type": "cta", "action": "dismiss"})
        assert isinstance(el.action, DismissAction)

    def test_bare_valid_url_value_implies_url_action(self):
        el = repair_element({"type": "cta", "actionValue": "https://example.com/x"})
        assert el.action == UrlAction(value="https://example.com/x")

    def test_flat_image_fields(self):
        el = repair_element({"type": "image", "url": "https://example.com/a.png", "alt": "Hero", "cornerRadius": 8})
        assert isinstance(el, ImageElement)
        assert el.source == UrlImage(url="https://example.com/a.png", alt="Hero")
        assert el.radius == 8

    def test_flat_image_disabled(self):
        el = repair_element({"type": "image", "url": "https://example.com/a.png", "enabled": False})
        assert el.source == NoImage()


class TestUrlPolicy:
    @pytest.mark.parametrize("value", ["", "   ", None, "not a url", "www.example.com"])
    def test_invalid_cta_url_becomes_placeholder(self, value):
        el = repair_element({"type": "cta", "action": {"type": "url", "value": value}})
        assert el.action == UrlAction(value=PLACEHOLDER_URL)

    def test_unknown_action_type_becomes_dismiss(self):
        el = repair_element({"type": "cta", "action": {"type": "navigate", "value": "https://example.com"}})
        assert isinstance(el.action, DismissAction)

    def test_image_without_valid_url_becomes_no_image(self):
        el = repair_element({"type": "image", "source": {"kind": "url", "url": "", "alt": "Hero"}})
        assert el.source == NoImage()

    def test_image_missing_alt_gets_default(self):
        el = repair_element({"type": "image", "source": {"kind": "url", "url": "https://example.com/a.png"}})
        assert el.source == UrlImage(url="https://example.com/a.png", alt="Image")

    def test_layout_derived_from_visible_image(self):
        with_image = repair({"elements": [{"type": "image", "source": {"kind": "url", "url": "https://example.com/a.png"}}]})
        without = repair({"elements": [{"type": "image", "source": {"kind": "none"}}]})
        assert with_image.container.layout == "with_image"
        assert without.container.layout == "text_only"


class TestMessyModelOutput:
    def test_typical_llm_reply(self):
        """A reply with the usual mistakes comes out valid and recognisable."""
        candidate = {
            "version": "1.0",
            "popupType": "fullscreen",
            "theme": {"mode": "dark", "brandColor": "#7C3AED"},
            "container": {"maxWidth": 2000, "cornerRadius": "12", "backdrop": "yes"},
            "elements": [
                {"type": "video", "id": "v1"},
                {"type": "image", "id": "hero", "url": "https://cdn.example.com/hero.png", "order": 5},
                {"kind": "text", "id": "hero", "text": "Big news", "fontSize": 120, "fontWeight": 850, "order": 5},
                {"kind": "button", "label": "Read more", "actionType": "url", "actionValue": "not a url", "order": 1},
            ],
            "confidence": 0.4,
        }
        doc = repair(candidate, EnforcedContext(popup_type="modal"))

        assert validate(doc).ok
        assert doc.version == "2.0"
        assert [el.type for el in doc.elements] == ["cta", "image", "text"]
        cta, image, text = doc.elements
        assert cta.action == UrlAction(value=PLACEHOLDER_URL)
        assert image.id == "hero"
        assert text.id == "text_3"
        assert (text.font_size, text.font_weight) == (72, 700)
        assert doc.container.max_width == 860
        assert doc.container.corner_radius == 12
        assert doc.container.layout == "with_image"
