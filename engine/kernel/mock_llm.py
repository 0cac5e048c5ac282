"""
Mock LLM for deterministic testing and UX timing simulation.

Returns canned model replies (golden files) with configurable delays.
Same call shape as backend.services.ai_provider.AIProvider.complete(), so the
generation orchestrator can't tell the difference.
Used in tests (instant profile) and UX testing (realistic/slow profiles).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

GOLDEN_DIR = Path(__file__).parent / "tests" / "fixtures" / "golden"

DELAY_PROFILES: dict[str, dict[str, int]] = {
    "instant": {"think_ms": 0},
    "realistic": {"think_ms": 1200},
    "slow": {"think_ms": 5000},
}


class MockLLM:
    """Replies with the contents of a golden file after a configurable delay."""

    def __init__(
        self,
        scenario: str = "welcome_modal",
        profile: str = "instant",
        golden_dir: Path = GOLDEN_DIR,
    ):
        if profile not in DELAY_PROFILES:
            raise ValueError(f"Unknown delay profile: {profile!r}. Valid profiles: {list(DELAY_PROFILES)}")
        self.scenario = scenario
        self.profile = profile
        self.golden_dir = golden_dir
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 1.0,
    ) -> dict[str, Any]:
        """
        Return the scenario's golden reply.

        Returns:
            Dict with "content" (raw reply text) and "usage" (zeroed token counts)

        Raises:
            FileNotFoundError: If the golden file does not exist
        """
        self.calls.append({"system": system, "messages": messages})

        path = self.golden_dir / f"{self.scenario}.txt"
        if not path.exists():
            raise FileNotFoundError(f"Golden file not found: {path}")

        think_ms = DELAY_PROFILES[self.profile]["think_ms"]
        if think_ms > 0:
            await asyncio.sleep(think_ms / 1000)

        return {
            "content": path.read_text(),
            "usage": {"input_tokens": 0, "output_tokens": 0},
        }

    def list_scenarios(self) -> list[str]:
        """Return names of all available golden file scenarios."""
        return sorted(p.stem for p in self.golden_dir.glob("*.txt"))
