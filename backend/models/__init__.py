"""
Pydantic models for the popup builder API.

All data shapes defined here. No imports from routes or services.
"""

from backend.models.popup import (
    DemoPresetResponse,
    DocumentResponse,
    EnforceRequest,
    GenerateRequest,
    GenerateResponse,
    LintResponse,
    RepairRequest,
    StyleRequest,
    ValidateResponse,
    ViolationResponse,
)

__all__ = [
    # Requests
    "StyleRequest",
    "EnforceRequest",
    "GenerateRequest",
    "RepairRequest",
    # Responses
    "GenerateResponse",
    "DocumentResponse",
    "ValidateResponse",
    "ViolationResponse",
    "LintResponse",
    "DemoPresetResponse",
]
