"""Popup API models. Documents travel as their camelCase wire dicts."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from backend.config import settings
from engine.kernel.types import EnforcedContext, StyleParams, Violation, is_valid_color

PopupTypeName = Literal["modal", "banner", "slideup"]
ModeName = Literal["light", "dark"]


def _check_color(value: str | None) -> str | None:
    if value is not None and not is_valid_color(value):
        raise ValueError(f"Invalid color: {value!r}")
    return value


class StyleRequest(BaseModel):
    """Caller-chosen style. Applied verbatim to generated popups."""

    model_config = {"extra": "forbid"}

    brand_color: str = Field(default_factory=lambda: settings.DEFAULT_BRAND_COLOR, max_length=64)
    mode: ModeName = "light"
    popup_type: PopupTypeName = "modal"

    @field_validator("brand_color")
    @classmethod
    def check_brand_color(cls, value: str | None) -> str | None:
        return _check_color(value)

    def to_params(self) -> StyleParams:
        return StyleParams(brand_color=self.brand_color, mode=self.mode, popup_type=self.popup_type)


class EnforceRequest(BaseModel):
    """Fields repair must force onto the result. Omitted fields are left to the candidate."""

    model_config = {"extra": "forbid"}

    brand_color: str | None = Field(default=None, max_length=64)
    mode: ModeName | None = None
    popup_type: PopupTypeName | None = None

    @field_validator("brand_color")
    @classmethod
    def check_brand_color(cls, value: str | None) -> str | None:
        return _check_color(value)

    def to_context(self) -> EnforcedContext:
        return EnforcedContext(brand_color=self.brand_color, mode=self.mode, popup_type=self.popup_type)


class GenerateRequest(BaseModel):
    """What the client sends to POST /api/popups/generate."""

    model_config = {"extra": "forbid"}

    prompt: str = Field(max_length=2000)
    style: StyleRequest = Field(default_factory=StyleRequest)
    current: dict[str, Any] | None = None  # document being refined, wire form


class GenerateResponse(BaseModel):
    """What the generate endpoint returns."""

    document: dict[str, Any]
    source: Literal["llm", "fallback", "demo"]
    status: str
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)


class RepairRequest(BaseModel):
    """What the client sends to POST /api/popups/repair."""

    model_config = {"extra": "forbid"}

    document: Any = None
    enforce: EnforceRequest | None = None


class DocumentResponse(BaseModel):
    document: dict[str, Any]
    warnings: list[str] = Field(default_factory=list)


class ViolationResponse(BaseModel):
    path: str
    message: str

    @classmethod
    def from_violation(cls, v: Violation) -> ViolationResponse:
        return cls(path=v.path, message=v.message)


class ValidateResponse(BaseModel):
    """`document` is the normalised wire form, present only when ok."""

    ok: bool
    violations: list[ViolationResponse] = Field(default_factory=list)
    document: dict[str, Any] | None = None


class LintResponse(BaseModel):
    warnings: list[str]


class DemoPresetResponse(BaseModel):
    index: int
    title: str
    prompt: str
