"""
Popup Editor — Typed Edit and Selection Tests

Edits never raise for bad input; a rejected edit returns the original
document with an error code. Selection never dangles.
"""

import pytest

from engine.kernel import editor
from engine.kernel.editor import EditorState
from engine.kernel.types import (
    CONTAINER_ID,
    PLACEHOLDER_URL,
    CtaElement,
    DismissAction,
    ImageElement,
    Spacing,
    TextElement,
    UrlAction,
)


def error_code(result) -> str:
    return result.error.split(":", 1)[0]


@pytest.fixture
def state(full_doc) -> EditorState:
    return EditorState(document=full_doc)


# ============================================================================
# Container and theme
# ============================================================================


class TestContainerEdits:
    def test_valid_edit_applies(self, full_doc):
        result = editor.update_container(full_doc, backdrop=False, aspect_ratio="16:9")
        assert result.applied
        assert result.document.container.backdrop is False
        assert result.document.container.aspect_ratio == "16:9"
        assert full_doc.container.backdrop is True

    @pytest.mark.parametrize("value,expected", [(2000, 860), (10, 280), (500, 500)])
    def test_bounded_numbers_are_clamped(self, full_doc, value, expected):
        result = editor.update_container(full_doc, max_width=value)
        assert result.applied
        assert result.document.container.max_width == expected

    def test_unknown_field_rejected(self, full_doc):
        result = editor.update_container(full_doc, max_width=500, shadow=True)
        assert not result.applied
        assert error_code(result) == "UNKNOWN_FIELD"
        assert result.document is full_doc

    def test_invalid_value_rejected(self, full_doc):
        result = editor.update_container(full_doc, aspect_ratio="21:9")
        assert not result.applied
        assert error_code(result) == "INVALID_EDIT"
        assert "container.aspectRatio" in result.error
        assert result.document is full_doc


class TestThemeEdits:
    def test_brand_color(self, full_doc):
        result = editor.update_theme(full_doc, brand_color="#FF0066")
        assert result.applied
        assert result.document.theme.brand_color == "#FF0066"

    def test_invalid_color_rejected(self, full_doc):
        result = editor.update_theme(full_doc, brand_color="#GGG")
        assert error_code(result) == "INVALID_EDIT"
        assert result.document is full_doc

    def test_unknown_field_rejected(self, full_doc):
        result = editor.update_theme(full_doc, font="Inter")
        assert error_code(result) == "UNKNOWN_FIELD"


# ============================================================================
# Elements
# ============================================================================


class TestElementEdits:
    def test_text_edit(self, full_doc):
        result = editor.update_element(full_doc, "text_1", text="Hello", align="center")
        assert result.applied
        el = result.document.element("text_1")
        assert (el.text, el.align) == ("Hello", "center")

    def test_font_size_clamped(self, full_doc):
        result = editor.update_element(full_doc, "text_1", font_size=5)
        assert result.document.element("text_1").font_size == 10

    def test_spacing_sides_clamped(self, full_doc):
        result = editor.update_element(full_doc, "text_1", margin=Spacing(top=500, bottom=-4))
        assert result.applied
        assert result.document.element("text_1").margin == Spacing(top=80, bottom=0)

    def test_id_and_order_are_read_only(self, full_doc):
        for changes in ({"id": "renamed"}, {"order": 5}):
            result = editor.update_element(full_doc, "text_1", **changes)
            assert error_code(result) == "UNKNOWN_FIELD"

    def test_field_from_another_type_rejected(self, full_doc):
        result = editor.update_element(full_doc, "text_1", label="Go")
        assert error_code(result) == "UNKNOWN_FIELD"

    def test_missing_element(self, full_doc):
        result = editor.update_element(full_doc, "ghost", text="Boo")
        assert error_code(result) == "NOT_FOUND"
        assert result.document is full_doc

    def test_invalid_font_weight_rejected(self, full_doc):
        result = editor.update_element(full_doc, "text_1", font_weight=650)
        assert error_code(result) == "INVALID_EDIT"

    def test_empty_url_action_rejected(self, full_doc):
        """Strict URL policy: an editor can't store an empty URL action."""
        result = editor.update_element(full_doc, "cta_1", action=UrlAction(value=""))
        assert error_code(result) == "INVALID_EDIT"
        assert "elements[3].action.value" in result.error


class TestCtaAction:
    def test_switch_to_dismiss(self, full_doc):
        result = editor.set_cta_action(full_doc, "cta_1", "dismiss")
        assert result.applied
        assert isinstance(result.document.element("cta_1").action, DismissAction)

    def test_switch_to_url_uses_placeholder(self, full_doc):
        result = editor.set_cta_action(full_doc, "cta_2", "url")
        assert result.document.element("cta_2").action == UrlAction(value=PLACEHOLDER_URL)

    def test_switch_to_url_keeps_existing_url(self, full_doc):
        doc = editor.update_element(full_doc, "cta_1", action=UrlAction(value="https://shop.example.com")).document
        result = editor.set_cta_action(doc, "cta_1", "url")
        assert result.document.element("cta_1").action.value == "https://shop.example.com"

    def test_wrong_element_type(self, full_doc):
        result = editor.set_cta_action(full_doc, "text_1", "dismiss")
        assert error_code(result) == "WRONG_TYPE"

    def test_unknown_action(self, full_doc):
        result = editor.set_cta_action(full_doc, "cta_1", "mailto")
        assert error_code(result) == "UNKNOWN_ACTION"

    def test_missing_cta(self, full_doc):
        assert error_code(editor.set_cta_action(full_doc, "ghost", "url")) == "NOT_FOUND"


class TestNewElement:
    @pytest.mark.parametrize("element_type,cls", [("text", TextElement), ("image", ImageElement), ("cta", CtaElement)])
    def test_defaults(self, element_type, cls):
        el = editor.new_element(element_type, "x", "X")
        assert isinstance(el, cls)
        assert el.margin.bottom == 12

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown element type"):
            editor.new_element("video", "x", "X")


# ============================================================================
# Selection
# ============================================================================


class TestSelection:
    def test_starts_on_container(self, state):
        assert state.selected_id == CONTAINER_ID
        assert state.selected is None

    def test_select_element(self, state):
        assert editor.select(state, "text_2").selected.id == "text_2"

    def test_select_unknown_falls_back_to_container(self, state):
        assert editor.select(state, "ghost").selected_id == CONTAINER_ID

    def test_add_element_selects_it(self, state):
        new_state = editor.add_element(state, "text")
        assert new_state.selected_id == "text_3"
        assert new_state.selected.name == "Text 3"
        assert new_state.document.elements[-1].id == "text_3"
        assert new_state.document.elements[-1].order == 60

    def test_add_element_avoids_taken_ids(self, state):
        s1 = editor.add_element(state, "cta")
        assert s1.selected_id == "cta_3"
        s2 = editor.delete_element(s1, "cta_1")
        s3 = editor.add_element(s2, "cta")
        assert s3.selected_id == "cta_3_2"

    def test_delete_selected_moves_to_container(self, state):
        s = editor.select(state, "text_1")
        s = editor.delete_selected(s)
        assert s.selected_id == CONTAINER_ID
        assert s.document.element("text_1") is None
        assert [el.order for el in s.document.elements] == [10, 20, 30, 40]

    def test_delete_other_keeps_selection(self, state):
        s = editor.select(state, "text_1")
        s = editor.delete_element(s, "cta_2")
        assert s.selected_id == "text_1"

    def test_delete_with_container_selected_is_noop(self, state):
        assert editor.delete_selected(state) is state

    def test_duplicate_selects_copy(self, state):
        s = editor.duplicate_selected(editor.select(state, "cta_1"))
        assert s.selected_id == "cta_1_copy"
        ids = [el.id for el in s.document.elements]
        assert ids.index("cta_1_copy") == ids.index("cta_1") + 1

    def test_move_selected(self, state):
        s = editor.move_selected(editor.select(state, "cta_1"), -1)
        assert [el.id for el in s.document.elements] == ["image_1", "text_1", "cta_1", "text_2", "cta_2"]
        assert s.selected_id == "cta_1"

    def test_reorder(self, state):
        s = editor.reorder(state, "cta_2", "image_1")
        assert s.document.elements[0].id == "cta_2"

    def test_apply_rejected_edit_keeps_document(self, state):
        s = editor.select(state, "text_1")
        rejected = editor.update_element(s.document, "text_1", font_weight=1)
        s2 = editor.apply_edit(s, rejected)
        assert s2.document is s.document
        assert s2.selected_id == "text_1"

    def test_apply_edit(self, state):
        result = editor.update_container(state.document, show_close_icon=False)
        assert editor.apply_edit(state, result).document.container.show_close_icon is False
