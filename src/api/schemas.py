"""
Pydantic Schemas and Response Envelope for the Social Battery REST API.

Every endpoint answers with the same envelope:

    {"success": bool, "data": Any, "error": {...} | None, "meta": {"timestamp": str}}
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.lib.errors import build_error_response
from src.models.battery import InteractionType, SocialContext

# =============================================================================
# Response Envelope
# =============================================================================


def _meta() -> dict[str, Any]:
    return {"timestamp": datetime.now(UTC).isoformat()}


def success_response(data: Any) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": data, "error": None, "meta": _meta()}


def error_response(
    code: str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Wrap an error code in the failure envelope."""
    return {
        "success": False,
        "data": None,
        "error": build_error_response(code, message, details),
        "meta": _meta(),
    }


# =============================================================================
# Request Models
# =============================================================================


class LogInteractionRequest(BaseModel):
    """Validated input for logging a social interaction."""

    type: InteractionType
    context: SocialContext
    duration: float = Field(..., gt=0, allow_inf_nan=False)  # minutes
    intensity: int = Field(..., ge=1, le=10)
    people_count: int = Field(..., ge=0)
    enjoyment: int = Field(..., ge=1, le=10)
    energy_before: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    energy_after: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    timestamp: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=200)

    @field_validator("notes", "location")
    @classmethod
    def strip_blank(cls, v: str | None) -> str | None:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None


class UpdateLevelRequest(BaseModel):
    """Manual battery level override."""

    level: float = Field(..., ge=0, le=100, allow_inf_nan=False)


class UpdateRecoveryRateRequest(BaseModel):
    """New passive recovery rate in %/hour."""

    rate: float = Field(..., ge=0, le=100, allow_inf_nan=False)


class AssistantRequest(BaseModel):
    """Question for the assistant."""

    question: str = Field(..., min_length=1, max_length=4000)
