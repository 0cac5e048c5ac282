"""
Tests for backend/services/prompt_builder.py
"""

from __future__ import annotations

import json

from backend.services.prompt_builder import (
    PROMPTS_DIR,
    build_messages,
    build_system_prompt,
    build_user_message,
)
from engine.kernel.generator import generate
from engine.kernel.types import StyleParams


class TestSystemPrompt:
    def test_prompt_file_exists(self):
        assert (PROMPTS_DIR / "popup_system.md").is_file()

    def test_describes_schema(self):
        prompt = build_system_prompt()
        assert '"version": "2.0"' in prompt
        for key in ("popupType", "maxWidth", "fontWeight", '"kind": "none"', '"type": "dismiss"'):
            assert key in prompt

    def test_cached(self):
        assert build_system_prompt() is build_system_prompt()


class TestUserMessage:
    def test_contains_instruction_and_style(self):
        style = StyleParams(brand_color="#FF0066", mode="dark", popup_type="banner")
        message = build_user_message("  Black friday sale  ", style)
        assert "Instruction: Black friday sale" in message
        style_line = next(line for line in message.splitlines() if line.startswith("Style"))
        assert json.loads(style_line.split(": ", 1)[1]) == {
            "brandColor": "#FF0066",
            "mode": "dark",
            "popupType": "banner",
        }

    def test_empty_instruction(self):
        assert "(none" in build_user_message("", StyleParams())

    def test_no_current_document(self):
        assert "Current document" not in build_user_message("hi", StyleParams())

    def test_current_document_included_as_wire_json(self):
        current = generate("welcome")
        message = build_user_message("make it shorter", StyleParams(), current)
        payload = message.split("Current document:\n", 1)[1]
        assert json.loads(payload) == current.to_dict()

    def test_build_messages(self):
        messages = build_messages("hi", StyleParams())
        assert len(messages) == 1
        assert messages[0]["role"] == "user"
        assert messages[0]["content"].startswith("Instruction: hi")
