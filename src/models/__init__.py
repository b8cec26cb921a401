"""
Models package for the Social Battery.

Domain records (frozen dataclasses) and the SQLAlchemy snapshot table.

Usage:
    from src.models import SocialInteraction, BatteryState, Pattern
    from src.models import SnapshotBlob
"""

from src.models.base import Base
from src.models.battery import (
    BatteryState,
    DashboardMetrics,
    EnergyTrend,
    InteractionType,
    PersonalLimits,
    RecoveryPattern,
    RiskLevel,
    SocialContext,
    SocialInteraction,
    WeeklySocialStats,
)
from src.models.patterns import (
    DailySocialReading,
    EnergyReading,
    Pattern,
    PatternFrequency,
    PatternType,
    SocialEvent,
    SocialPatternAnalysis,
    SocialTrend,
    TimeMarker,
)
from src.models.recommendation import (
    Recommendation,
    RecommendationPriority,
    RecommendationType,
)
from src.models.snapshot import SnapshotBlob

__all__ = [
    # Base
    "Base",
    # Battery
    "BatteryState",
    "DashboardMetrics",
    "EnergyTrend",
    "InteractionType",
    "PersonalLimits",
    "RecoveryPattern",
    "RiskLevel",
    "SocialContext",
    "SocialInteraction",
    "WeeklySocialStats",
    # Patterns
    "DailySocialReading",
    "EnergyReading",
    "Pattern",
    "PatternFrequency",
    "PatternType",
    "SocialEvent",
    "SocialPatternAnalysis",
    "SocialTrend",
    "TimeMarker",
    # Recommendations
    "Recommendation",
    "RecommendationPriority",
    "RecommendationType",
    # Persistence
    "SnapshotBlob",
]
