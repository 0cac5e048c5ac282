"""
Popup Kernel — Editor

Typed edits and selection for an editor surface.

Edits are explicit per field group (container, theme, one element) instead of
free-form patches: an unknown key rejects the whole edit. Edit functions
never throw for bad input; they return an EditResult and leave the input
document untouched on rejection.

Rejection codes:
  UNKNOWN_FIELD   key doesn't exist on the target (or isn't editable: id, order)
  NOT_FOUND       no element with that id
  WRONG_TYPE      element exists but is the wrong kind for this edit
  UNKNOWN_ACTION  CTA action type isn't url/dismiss
  INVALID_EDIT    the edited document fails validation

Bounded numbers are clamped before validation, matching the inspector's
number inputs. Everything else must already be valid.

Selection lives in EditorState. It is either an element id or CONTAINER_ID,
and it is never left pointing at an element that no longer exists.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from engine.kernel import ordering
from engine.kernel.types import (
    CONTAINER_ID,
    ELEMENT_CLASSES,
    PLACEHOLDER_IMAGE_URL,
    PLACEHOLDER_URL,
    Container,
    CtaElement,
    DismissAction,
    EditResult,
    Element,
    ImageElement,
    PopupDocument,
    Spacing,
    TextElement,
    Theme,
    UrlAction,
    UrlImage,
    clamp,
    is_int,
)
from engine.kernel.validator import validate

_READONLY_ELEMENT_FIELDS = ("id", "order")

_CONTAINER_BOUNDS: dict[str, str] = {
    "max_width": "maxWidth",
    "corner_radius": "cornerRadius",
    "padding": "containerPadding",
}
_ELEMENT_BOUNDS: dict[str, str] = {
    "font_size": "fontSize",
    "height": "height",
    "radius": "radius",
}

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(doc: PopupDocument, error: str) -> EditResult:
    return EditResult(document=doc, applied=False, error=error)


def _ok(doc: PopupDocument) -> EditResult:
    return EditResult(document=doc, applied=True)


def _field_names(cls: type) -> set[str]:
    return {f.name for f in dataclasses.fields(cls)}


def _unknown_keys(allowed: set[str], changes: dict[str, Any]) -> list[str]:
    return sorted(k for k in changes if k not in allowed)


def _clamp_spacing(value: Spacing) -> Spacing:
    sides = {}
    for side in ("top", "right", "bottom", "left"):
        n = getattr(value, side)
        sides[side] = clamp(n, "spacing") if is_int(n) else n
    return Spacing(**sides)


def _clamp_changes(changes: dict[str, Any], bounds: dict[str, str]) -> dict[str, Any]:
    out = dict(changes)
    for key, bound in bounds.items():
        if key in out and is_int(out[key]):
            out[key] = clamp(out[key], bound)
    for key, value in out.items():
        if isinstance(value, Spacing):
            out[key] = _clamp_spacing(value)
    return out


def _commit(original: PopupDocument, candidate: PopupDocument) -> EditResult:
    result = validate(candidate)
    if not result.ok:
        detail = "; ".join(str(v) for v in result.violations)
        return _reject(original, f"INVALID_EDIT: {detail}")
    return _ok(result.document)


# ---------------------------------------------------------------------------
# Typed edits
# ---------------------------------------------------------------------------


def update_container(doc: PopupDocument, **changes: Any) -> EditResult:
    """Edit container chrome, e.g. update_container(doc, max_width=480, backdrop=False)."""
    unknown = _unknown_keys(_field_names(Container), changes)
    if unknown:
        return _reject(doc, f"UNKNOWN_FIELD: container has no field(s) {unknown}")
    changes = _clamp_changes(changes, _CONTAINER_BOUNDS)
    return _commit(doc, dataclasses.replace(doc, container=dataclasses.replace(doc.container, **changes)))


def update_theme(doc: PopupDocument, **changes: Any) -> EditResult:
    """Edit theme colors or mode."""
    unknown = _unknown_keys(_field_names(Theme), changes)
    if unknown:
        return _reject(doc, f"UNKNOWN_FIELD: theme has no field(s) {unknown}")
    return _commit(doc, dataclasses.replace(doc, theme=dataclasses.replace(doc.theme, **changes)))


def update_element(doc: PopupDocument, element_id: str, **changes: Any) -> EditResult:
    """
    Edit one element's fields. Allowed keys depend on the element's type;
    `id` and `order` are owned by the ordering engine and can't be set here.
    """
    el = doc.element(element_id)
    if el is None:
        return _reject(doc, f"NOT_FOUND: no element {element_id!r}")

    allowed = _field_names(type(el)) - set(_READONLY_ELEMENT_FIELDS)
    unknown = _unknown_keys(allowed, changes)
    if unknown:
        return _reject(doc, f"UNKNOWN_FIELD: {el.type} element has no editable field(s) {unknown}")

    changes = _clamp_changes(changes, _ELEMENT_BOUNDS)
    updated = dataclasses.replace(el, **changes)
    elements = tuple(updated if e.id == element_id else e for e in doc.elements)
    return _commit(doc, dataclasses.replace(doc, elements=elements))


def set_cta_action(doc: PopupDocument, element_id: str, action_type: str) -> EditResult:
    """
    Switch a CTA between url and dismiss.
    Switching to url keeps an existing URL or falls back to the placeholder.
    """
    el = doc.element(element_id)
    if el is None:
        return _reject(doc, f"NOT_FOUND: no element {element_id!r}")
    if not isinstance(el, CtaElement):
        return _reject(doc, f"WRONG_TYPE: {element_id!r} is a {el.type} element, not a cta")

    if action_type == "dismiss":
        action: DismissAction | UrlAction = DismissAction()
    elif action_type == "url":
        action = el.action if isinstance(el.action, UrlAction) else UrlAction(value=PLACEHOLDER_URL)
    else:
        return _reject(doc, f"UNKNOWN_ACTION: {action_type!r}")
    return update_element(doc, element_id, action=action)


# ---------------------------------------------------------------------------
# Element factory
# ---------------------------------------------------------------------------


def new_element(element_type: str, element_id: str, name: str) -> Element:
    """A fresh element with the editor's defaults. Order is assigned on append."""
    if element_type not in ELEMENT_CLASSES:
        raise ValueError(f"Unknown element type: {element_type!r}. Known: {list(ELEMENT_CLASSES)}")

    margin = Spacing(bottom=12)
    if element_type == "text":
        return TextElement(id=element_id, name=name, text="New text", font_size=16, font_weight=600, margin=margin)
    if element_type == "image":
        return ImageElement(
            id=element_id,
            name=name,
            source=UrlImage(url=PLACEHOLDER_IMAGE_URL, alt="Image"),
            height=160,
            radius=12,
            margin=margin,
        )
    return CtaElement(
        id=element_id,
        name=name,
        label="Click here",
        variant="primary",
        full_width=True,
        action=UrlAction(value=PLACEHOLDER_URL),
        margin=margin,
    )


# ---------------------------------------------------------------------------
# Editor state (selection)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EditorState:
    """The document being edited plus what the inspector is showing."""

    document: PopupDocument
    selected_id: str = CONTAINER_ID

    @property
    def selected(self) -> Element | None:
        if self.selected_id == CONTAINER_ID:
            return None
        return self.document.element(self.selected_id)


def _with_document(state: EditorState, doc: PopupDocument, selected_id: str | None = None) -> EditorState:
    """Swap the document; selection falls back to the container if it would dangle."""
    selected = state.selected_id if selected_id is None else selected_id
    if selected != CONTAINER_ID and doc.element(selected) is None:
        selected = CONTAINER_ID
    return EditorState(document=doc, selected_id=selected)


def select(state: EditorState, element_id: str) -> EditorState:
    """Select an element, or the container for unknown ids."""
    return _with_document(state, state.document, element_id)


def apply_edit(state: EditorState, result: EditResult) -> EditorState:
    """Adopt an edit result's document (unchanged on rejection)."""
    return _with_document(state, result.document)


def add_element(state: EditorState, element_type: str) -> EditorState:
    """
    Append a new element of the given type and select it.
    Names are numbered per type ("Text 2"); ids are unique and deterministic.
    """
    doc = state.document
    count = sum(1 for el in doc.elements if el.type == element_type)
    label = {"text": "Text", "image": "Image", "cta": "CTA"}.get(element_type, element_type)
    element_id = ordering.unique_id(f"{element_type}_{count + 1}", {el.id for el in doc.elements})
    el = new_element(element_type, element_id, f"{label} {count + 1}")
    return _with_document(state, ordering.append(doc, el), el.id)


def delete_element(state: EditorState, element_id: str) -> EditorState:
    """Delete by id. If it was selected, selection moves to the container."""
    return _with_document(state, ordering.delete(state.document, element_id))


def delete_selected(state: EditorState) -> EditorState:
    if state.selected_id == CONTAINER_ID:
        return state
    return delete_element(state, state.selected_id)


def duplicate_selected(state: EditorState) -> EditorState:
    """Duplicate the selected element and select the copy."""
    if state.selected_id == CONTAINER_ID:
        return state
    doc, copy_id = ordering.duplicate(state.document, state.selected_id)
    if copy_id is None:
        return state
    return _with_document(state, doc, copy_id)


def move_selected(state: EditorState, step: int) -> EditorState:
    """Up (-1) / down (+1) toolbar buttons."""
    if state.selected_id == CONTAINER_ID:
        return state
    return _with_document(state, ordering.move_by(state.document, state.selected_id, step))


def reorder(state: EditorState, drag_id: str, drop_id: str) -> EditorState:
    """Tree drag/drop."""
    return _with_document(state, ordering.move_onto(state.document, drag_id, drop_id))
