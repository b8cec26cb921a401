"""
Social Battery Models.

Domain records for the battery state model:
- SocialInteraction: immutable, append-only log entry
- PersonalLimits: history-derived caps and targets
- WeeklySocialStats: derived weekly summary
- BatteryState: current level, recovery rate, limits, stats
- DashboardMetrics: read model for the upstream producer

All timestamps are timezone-aware. They cross the persistence boundary
as ISO-8601 strings (see to_dict / from_dict).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from src.config.battery import (
    DEFAULT_DAILY_LIMIT,
    DEFAULT_LEVEL,
    DEFAULT_OPTIMAL_LEVEL,
    DEFAULT_RECOVERY_HOURS,
    DEFAULT_RECOVERY_RATE,
    DEFAULT_WEEKLY_LIMIT,
    MAX_LEVEL,
    MIN_LEVEL,
)
from src.lib.exceptions import SerializationError, ValidationError

# =============================================================================
# Enums
# =============================================================================


class InteractionType(StrEnum):
    """Kinds of social interaction the user can log."""
    WORK_MEETING = "work_meeting"
    SOCIAL_GATHERING = "social_gathering"
    CLOSE_FRIENDS = "close_friends"
    FAMILY_TIME = "family_time"
    SOLO_TIME = "solo_time"
    PUBLIC_EVENT = "public_event"
    ONLINE_MEETING = "online_meeting"
    PHONE_CALL = "phone_call"


class SocialContext(StrEnum):
    """Setting in which an interaction happened."""
    WORK = "work"
    PERSONAL = "personal"
    PUBLIC = "public"
    INTIMATE = "intimate"


class RiskLevel(StrEnum):
    """Discrete classification of the current battery level."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EnergyTrend(StrEnum):
    """Direction of the most recent post-interaction levels."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


# =============================================================================
# Helpers
# =============================================================================


def clamp_level(level: float) -> float:
    """Clamp a battery level into [0, 100]."""
    return min(MAX_LEVEL, max(MIN_LEVEL, float(level)))


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken as UTC; offsets are converted to UTC.

    Raises:
        SerializationError: If the value is not a valid ISO-8601 string
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as exc:
            raise SerializationError(f"Invalid timestamp: {value!r}") from exc
    else:
        raise SerializationError(f"Timestamp must be an ISO-8601 string, got {type(value).__name__}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_range(name: str, value: Any, low: float, high: float) -> None:
    if not _is_number(value) or not low <= value <= high:
        raise ValidationError(f"{name} must be between {low:g} and {high:g}, got {value!r}", field=name)


# =============================================================================
# Social Interaction
# =============================================================================


@dataclass(frozen=True)
class SocialInteraction:
    """
    A single logged social interaction.

    Created only by explicit user action and never mutated afterwards.
    energy_after is the authoritative battery level once the
    interaction is committed.
    """

    id: str
    timestamp: datetime
    type: InteractionType
    context: SocialContext
    duration: float           # minutes, > 0
    intensity: int            # 1-10 (how draining)
    people_count: int         # >= 0
    enjoyment: int            # 1-10
    energy_before: float      # 0-100
    energy_after: float       # 0-100
    notes: str | None = None
    location: str | None = None

    def validate(self) -> None:
        """
        Check every field against its documented range.

        Raises:
            ValidationError: On the first field that is out of range
        """
        if not isinstance(self.type, InteractionType):
            raise ValidationError(f"Unknown interaction type: {self.type!r}", field="type")
        if not isinstance(self.context, SocialContext):
            raise ValidationError(f"Unknown social context: {self.context!r}", field="context")
        if not _is_number(self.duration) or not math.isfinite(self.duration) or self.duration <= 0:
            raise ValidationError(f"duration must be a finite number above zero, got {self.duration!r}", field="duration")
        _check_range("intensity", self.intensity, 1, 10)
        _check_range("enjoyment", self.enjoyment, 1, 10)
        _check_range("energy_before", self.energy_before, MIN_LEVEL, MAX_LEVEL)
        _check_range("energy_after", self.energy_after, MIN_LEVEL, MAX_LEVEL)
        if not isinstance(self.people_count, int) or isinstance(self.people_count, bool) or self.people_count < 0:
            raise ValidationError(
                f"people_count must be a non-negative integer, got {self.people_count!r}",
                field="people_count",
            )
        if self.timestamp.tzinfo is None:
            raise ValidationError("timestamp must be timezone-aware", field="timestamp")

    @property
    def energy_delta(self) -> float:
        """Net change of the battery caused by this interaction."""
        return self.energy_after - self.energy_before

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "context": self.context.value,
            "duration": self.duration,
            "intensity": self.intensity,
            "people_count": self.people_count,
            "enjoyment": self.enjoyment,
            "energy_before": self.energy_before,
            "energy_after": self.energy_after,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        if self.location is not None:
            data["location"] = self.location
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SocialInteraction:
        """
        Rebuild an interaction from its serialized form.

        Raises:
            SerializationError: On missing keys, unknown enum values or bad timestamps
            ValidationError: If a rebuilt field is out of range
        """
        try:
            interaction = cls(
                id=str(data["id"]),
                timestamp=parse_timestamp(data["timestamp"]),
                type=InteractionType(data["type"]),
                context=SocialContext(data["context"]),
                duration=data["duration"],
                intensity=data["intensity"],
                people_count=data["people_count"],
                enjoyment=data["enjoyment"],
                energy_before=data["energy_before"],
                energy_after=data["energy_after"],
                notes=data.get("notes"),
                location=data.get("location"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise SerializationError(f"Malformed interaction record: {exc}") from exc
        interaction.validate()
        return interaction


# =============================================================================
# Limits and Stats
# =============================================================================


@dataclass(frozen=True)
class PersonalLimits:
    """Adaptive thresholds derived from the trailing interaction window."""

    daily_interaction_limit: int = DEFAULT_DAILY_LIMIT     # minutes
    weekly_interaction_limit: int = DEFAULT_WEEKLY_LIMIT   # minutes
    recovery_time_needed: int = DEFAULT_RECOVERY_HOURS     # hours
    optimal_social_level: int = DEFAULT_OPTIMAL_LEVEL      # 0-100

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "daily_interaction_limit": self.daily_interaction_limit,
            "weekly_interaction_limit": self.weekly_interaction_limit,
            "recovery_time_needed": self.recovery_time_needed,
            "optimal_social_level": self.optimal_social_level,
        }


@dataclass(frozen=True)
class RecoveryPattern:
    """How well one interaction type has restored the battery."""

    activity_type: str
    effectiveness_score: float  # 1-10
    duration: float             # mean minutes
    frequency: float            # times per week

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "activity_type": self.activity_type,
            "effectiveness_score": self.effectiveness_score,
            "duration": self.duration,
            "frequency": self.frequency,
        }


@dataclass(frozen=True)
class WeeklySocialStats:
    """Derived weekly summary; recomputed from the log, never authored."""

    total_interaction_time: float = 0.0
    average_energy_level: float = DEFAULT_LEVEL
    most_draining_day: str = "Monday"
    preferred_interaction_types: tuple[InteractionType, ...] = ()
    recovery_patterns: tuple[RecoveryPattern, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "total_interaction_time": self.total_interaction_time,
            "average_energy_level": self.average_energy_level,
            "most_draining_day": self.most_draining_day,
            "preferred_interaction_types": [t.value for t in self.preferred_interaction_types],
            "recovery_patterns": [p.to_dict() for p in self.recovery_patterns],
        }


# =============================================================================
# Battery State
# =============================================================================


@dataclass(frozen=True)
class BatteryState:
    """
    Current social battery.

    last_interaction is a lookup reference into the interaction log.
    It is serialized as the interaction id only.
    """

    current_level: float = DEFAULT_LEVEL
    recovery_rate: float = DEFAULT_RECOVERY_RATE
    personal_limits: PersonalLimits = field(default_factory=PersonalLimits)
    weekly_stats: WeeklySocialStats = field(default_factory=WeeklySocialStats)
    last_interaction: SocialInteraction | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready snapshot (derived fields included for readers)."""
        return {
            "current_level": self.current_level,
            "recovery_rate": self.recovery_rate,
            "last_interaction_id": self.last_interaction.id if self.last_interaction else None,
            "personal_limits": self.personal_limits.to_dict(),
            "weekly_stats": self.weekly_stats.to_dict(),
        }


@dataclass(frozen=True)
class DashboardMetrics:
    """Read model returned by get_dashboard_metrics()."""

    current_social_battery: float
    today_interaction_time: float
    weekly_interaction_time: float
    next_recovery_time: datetime | None
    energy_trend: EnergyTrend
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "current_social_battery": self.current_social_battery,
            "today_interaction_time": self.today_interaction_time,
            "weekly_interaction_time": self.weekly_interaction_time,
            "next_recovery_time": self.next_recovery_time.isoformat() if self.next_recovery_time else None,
            "energy_trend": self.energy_trend.value,
            "risk_level": self.risk_level.value,
        }
