"""
Pattern Analysis Models.

Input readings for the pattern analyzer and the patterns it emits.
Patterns are ephemeral: each analysis call regenerates them, they are
never the system of record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class PatternType(StrEnum):
    """The five pattern families."""
    RECOVERY_NEEDED = "recovery-needed"
    OPTIMAL_TIMING = "optimal-timing"
    INTERACTION_OVERLOAD = "interaction-overload"
    SOCIAL_DEFICIT = "social-deficit"
    ENERGY_CORRELATION = "energy-correlation"


class PatternFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"


class SocialTrend(StrEnum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    FLUCTUATING = "fluctuating"


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class SocialEvent:
    """A drain or recharge event inside a daily reading."""

    timestamp: datetime
    intensity: float  # 1-10


@dataclass(frozen=True)
class DailySocialReading:
    """One observation of the battery: level plus that day's activity."""

    timestamp: datetime
    level: float                                   # 0-100
    social_interactions: int = 0
    drain_events: tuple[SocialEvent, ...] = ()
    recharge_events: tuple[SocialEvent, ...] = ()


@dataclass(frozen=True)
class EnergyReading:
    """External overall-energy sample used for correlation."""

    timestamp: datetime
    overall: float  # 0-100


# =============================================================================
# Outputs
# =============================================================================


@dataclass(frozen=True)
class TimeMarker:
    """A peak or low point: hour of day, optional weekday (0 = Sunday), level."""

    hour: int
    level: float
    day_of_week: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"hour": self.hour, "level": self.level}
        if self.day_of_week is not None:
            data["day_of_week"] = self.day_of_week
        return data


@dataclass(frozen=True)
class Pattern:
    """A detected behavioral pattern with a heuristic confidence in [0, 1]."""

    id: str
    type: PatternType
    description: str
    confidence: float
    frequency: PatternFrequency
    peak_times: tuple[TimeMarker, ...] = ()
    low_times: tuple[TimeMarker, ...] = ()
    average_recovery_time: float | None = None   # hours
    optimal_interaction_count: int | None = None
    correlation_with_energy: float | None = None
    consecutive_days: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation, omitting empty payloads."""
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "description": self.description,
            "confidence": self.confidence,
            "frequency": self.frequency.value,
        }
        if self.peak_times:
            data["peak_times"] = [m.to_dict() for m in self.peak_times]
        if self.low_times:
            data["low_times"] = [m.to_dict() for m in self.low_times]
        for key in (
            "average_recovery_time",
            "optimal_interaction_count",
            "correlation_with_energy",
            "consecutive_days",
        ):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class InteractionWindow:
    """An hour range where the battery tends to be high."""

    start_hour: int
    end_hour: int
    confidence: float
    avg_level: float
    avg_interactions: float


@dataclass(frozen=True)
class AnalysisInsights:
    current_trend: SocialTrend
    avg_social_battery: float
    avg_recovery_time: float  # hours
    optimal_interaction_windows: tuple[InteractionWindow, ...] = ()
    risk_factors: tuple[str, ...] = ()
    strengths: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisSummary:
    immediate_actions: int
    routine_changes: int
    lifestyle_adjustments: int
    total_potential_improvement: int  # percent, capped at 30


@dataclass
class SocialPatternAnalysis:
    """Full report returned by SocialPatternAnalyzer.analyze()."""

    analysis_date: datetime
    start_date: datetime | None
    end_date: datetime | None
    days_analyzed: int
    patterns: list[Pattern] = field(default_factory=list)
    insights: AnalysisInsights | None = None
    summary: AnalysisSummary | None = None
