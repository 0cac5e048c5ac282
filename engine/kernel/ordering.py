"""
Popup Kernel — Ordering

Keeps the element sequence dense and strictly ordered under
append / move / duplicate / delete.

Canonical reindex: stable-sort by current `order` (ties keep their prior
relative position), then assign order = (position + 1) * 10. The gap of 10
leaves room for manual fine-tuning; correctness never depends on it.

Every function takes a document and returns a new one. Operations on an id
that isn't in the document are no-ops, not errors.
"""

from __future__ import annotations

import dataclasses

from engine.kernel.types import CONTAINER_ID, ORDER_STEP, Element, PopupDocument

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def sorted_elements(doc: PopupDocument) -> list[Element]:
    """Elements in render order. Stable on ties."""
    return sorted(doc.elements, key=lambda el: el.order)


def reindex_elements(elements: list[Element] | tuple[Element, ...]) -> tuple[Element, ...]:
    """Stable-sort by order, then renumber 10, 20, 30, ..."""
    ordered = sorted(elements, key=lambda el: el.order)
    return _renumber(ordered)


def reindex(doc: PopupDocument) -> PopupDocument:
    """
    Reindex the document's elements.
    Idempotent: an already-dense sequence comes back with the same orders.
    """
    return dataclasses.replace(doc, elements=reindex_elements(doc.elements))


def is_dense(doc: PopupDocument) -> bool:
    """True when orders are exactly 10, 20, 30, ... in stored sequence."""
    return [el.order for el in doc.elements] == [(i + 1) * ORDER_STEP for i in range(len(doc.elements))]


def append(doc: PopupDocument, element: Element) -> PopupDocument:
    """
    Add an element at the end. It gets order (count + 1) * 10.
    Raises ValueError if the id is already taken or reserved; callers mint ids.
    """
    if element.id == CONTAINER_ID:
        raise ValueError(f"Element id is reserved: {element.id!r}")
    if doc.element(element.id) is not None:
        raise ValueError(f"Element id already in document: {element.id!r}")
    ordered = list(sorted_elements(doc))
    ordered.append(dataclasses.replace(element, order=(len(ordered) + 1) * ORDER_STEP))
    return dataclasses.replace(doc, elements=_renumber(ordered))


def move_to(doc: PopupDocument, element_id: str, position: int) -> PopupDocument:
    """
    Move an element to a zero-based position in render order.
    Position is clamped to the list bounds.
    """
    ordered = sorted_elements(doc)
    index = _index_of(ordered, element_id)
    if index is None:
        return doc
    moved = ordered.pop(index)
    target = max(0, min(position, len(ordered)))
    ordered.insert(target, moved)
    return dataclasses.replace(doc, elements=_renumber(ordered))


def move_onto(doc: PopupDocument, drag_id: str, drop_id: str) -> PopupDocument:
    """
    Drag/drop: the dragged element takes the drop target's slot.
    Dropping onto itself or onto a missing id is a no-op.
    """
    if drag_id == drop_id:
        return doc
    ordered = sorted_elements(doc)
    if _index_of(ordered, drag_id) is None:
        return doc
    target = _index_of(ordered, drop_id)
    if target is None:
        return doc
    return move_to(doc, drag_id, target)


def move_by(doc: PopupDocument, element_id: str, step: int) -> PopupDocument:
    """Up/down step (step=-1 moves up). Moving past either end is a no-op."""
    ordered = sorted_elements(doc)
    index = _index_of(ordered, element_id)
    if index is None:
        return doc
    target = index + step
    if target < 0 or target >= len(ordered):
        return doc
    return move_to(doc, element_id, target)


def duplicate(doc: PopupDocument, element_id: str, new_id: str | None = None) -> tuple[PopupDocument, str | None]:
    """
    Clone an element directly after its source.

    The copy gets a fresh unique id (`<id>_copy`, `<id>_copy_2`, ...) unless
    `new_id` is given, and its name is suffixed with " (copy)".
    Returns (document, copy_id); copy_id is None when the source is missing.
    """
    ordered = sorted_elements(doc)
    index = _index_of(ordered, element_id)
    if index is None:
        return doc, None

    source = ordered[index]
    taken = {el.id for el in ordered} | {CONTAINER_ID}
    copy_id = new_id if new_id is not None and new_id not in taken else unique_id(f"{source.id}_copy", taken)
    copy = dataclasses.replace(source, id=copy_id, name=f"{source.name} (copy)")

    ordered.insert(index + 1, copy)
    return dataclasses.replace(doc, elements=_renumber(ordered)), copy_id


def delete(doc: PopupDocument, element_id: str) -> PopupDocument:
    """Remove an element by id, then reindex."""
    ordered = sorted_elements(doc)
    index = _index_of(ordered, element_id)
    if index is None:
        return doc
    ordered.pop(index)
    return dataclasses.replace(doc, elements=_renumber(ordered))


def unique_id(base: str, taken: set[str]) -> str:
    """`base` if free, else base_2, base_3, ..."""
    if base not in taken:
        return base
    n = 2
    while f"{base}_{n}" in taken:
        n += 1
    return f"{base}_{n}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _index_of(ordered: list[Element], element_id: str) -> int | None:
    for i, el in enumerate(ordered):
        if el.id == element_id:
            return i
    return None


def _renumber(ordered: list[Element]) -> tuple[Element, ...]:
    out: list[Element] = []
    for i, el in enumerate(ordered):
        order = (i + 1) * ORDER_STEP
        out.append(el if el.order == order else dataclasses.replace(el, order=order))
    return tuple(out)
