"""
Recovery Recommendation Models.

Recommendations are ephemeral and context-dependent. They are
regenerated on every interaction commit and never persisted as
authoritative state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class RecommendationPriority(StrEnum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationType(StrEnum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


@dataclass(frozen=True)
class Recommendation:
    """A single recovery suggestion."""

    id: str
    priority: RecommendationPriority
    activity: str
    description: str
    estimated_benefit: float  # expected battery increase, percentage points
    duration: int             # minutes
    type: RecommendationType

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "priority": self.priority.value,
            "activity": self.activity,
            "description": self.description,
            "estimated_benefit": self.estimated_benefit,
            "duration": self.duration,
            "type": self.type.value,
        }
