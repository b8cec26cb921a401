"""
Social Battery Services Package.

Pure battery math used by the state store:
- drain: interaction -> energy cost
- recovery: passive recovery and the tick gates
- limits: personal limits from the trailing 30 days
- stats: dashboard metrics and weekly stats
- readings: interaction log -> daily readings for pattern analysis
"""

from src.services.social_battery.drain import (
    compute_drain,
    context_multiplier,
    estimate_recovery_time,
    type_base_rate,
)
from src.services.social_battery.limits import estimate_limits
from src.services.social_battery.readings import build_daily_readings
from src.services.social_battery.recovery import (
    RecoveryPhase,
    recover,
    recovery_hours_due,
    recovery_phase,
)
from src.services.social_battery.stats import (
    build_dashboard_metrics,
    classify_risk,
    compute_weekly_stats,
    energy_trend,
    recovery_patterns,
)

__all__ = [
    # Drain
    "compute_drain",
    "context_multiplier",
    "type_base_rate",
    "estimate_recovery_time",
    # Recovery
    "recover",
    "recovery_hours_due",
    "recovery_phase",
    "RecoveryPhase",
    # Limits
    "estimate_limits",
    # Stats
    "build_dashboard_metrics",
    "classify_risk",
    "compute_weekly_stats",
    "energy_trend",
    "recovery_patterns",
    # Readings
    "build_daily_readings",
]
