"""
Engine kernel test configuration.

Shared document fixtures. Kernel tests are pure: no network, no database,
no model calls.
"""

import pytest

from engine.kernel.generator import generate
from engine.kernel.types import PopupDocument, StyleParams, TextElement

FULL_PROMPT = "Welcome new users with a product image and a not now option"


@pytest.fixture
def full_doc() -> PopupDocument:
    """Generated modal with every element kind: image_1, text_1, text_2, cta_1, cta_2."""
    return generate(FULL_PROMPT, StyleParams())


@pytest.fixture
def full_dict(full_doc) -> dict:
    """Wire form of full_doc. Fresh per test, safe to mutate."""
    return full_doc.to_dict()


@pytest.fixture
def abc_doc() -> PopupDocument:
    """Three text elements a, b, c already in dense order."""
    return PopupDocument(
        elements=(
            TextElement(id="a", name="A", order=10, text="a"),
            TextElement(id="b", name="B", order=20, text="b"),
            TextElement(id="c", name="C", order=30, text="c"),
        )
    )
