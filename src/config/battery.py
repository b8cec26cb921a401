"""
Battery Configuration for the Social Battery core.

Holds the fixed numbers of the battery model (drain weights, recovery
gates, default limits, detector thresholds) and the runtime settings
read from the environment.

Environment variables:
    SOCIAL_BATTERY_RECOVERY_RATE   Default recovery rate in %/hour (8)
    SOCIAL_BATTERY_TICK_MINUTES    Recovery tick interval in minutes (15)
    SOCIAL_BATTERY_STORAGE         memory | sql | redis (memory)
    SOCIAL_BATTERY_DATABASE_URL    SQLAlchemy URL for the sql backend
    REDIS_URL                      Redis URL for the redis backend
    OPENAI_API_KEY                 Enables the OpenAI text generator
    SOCIAL_BATTERY_AI_MODEL        Chat model name (gpt-4o-mini)
    SOCIAL_BATTERY_CORS_ORIGINS    Comma-separated allowed origins
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

from src.lib.exceptions import ConfigurationError

# =============================================================================
# Battery bounds
# =============================================================================

MIN_LEVEL = 0.0
MAX_LEVEL = 100.0
DEFAULT_LEVEL = 75.0
DEFAULT_RECOVERY_RATE = 8.0  # % per hour

# =============================================================================
# Drain calculator
# =============================================================================

MIN_DRAIN = 1.0
MAX_DRAIN = 50.0
MAX_DURATION_FACTOR = 3.0
MAX_PEOPLE_FACTOR = 2.0
DEFAULT_TYPE_BASE_RATE = 15.0
DEFAULT_CONTEXT_MULTIPLIER = 1.0

# =============================================================================
# Recovery scheduler
# =============================================================================

MIN_TICK_HOURS = 0.25       # 15 minutes between applied updates
DRAIN_COOLDOWN_HOURS = 0.5  # 30 minutes after the last interaction
NO_INTERACTION_HOURS = 24.0
DEFAULT_TICK_MINUTES = 15.0

# =============================================================================
# Personal limits
# =============================================================================

LIMITS_WINDOW_DAYS = 30
DEFAULT_DAILY_LIMIT = 240      # minutes
DEFAULT_WEEKLY_LIMIT = 1200    # minutes
DEFAULT_RECOVERY_HOURS = 8
DEFAULT_OPTIMAL_LEVEL = 70
DAILY_LIMIT_BUFFER = 1.2
WEEKLY_LIMIT_BUFFER = 1.1

# =============================================================================
# Store / dashboard
# =============================================================================

RECENT_INTERACTIONS_FOR_RECOMMENDATIONS = 10
TREND_WINDOW = 5
TREND_THRESHOLD = 5.0
MAX_RECOMMENDATIONS = 5

INTERACTIONS_KEY = "social_battery:interactions"
STATE_KEY = "social_battery:state"

StorageBackend = Literal["memory", "sql", "redis"]
_VALID_BACKENDS: frozenset[str] = frozenset({"memory", "sql", "redis"})


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class BatterySettings:
    """Runtime settings for the store, scheduler, and integrations."""

    recovery_rate: float = DEFAULT_RECOVERY_RATE
    tick_minutes: float = DEFAULT_TICK_MINUTES
    storage_backend: StorageBackend = "memory"
    database_url: str = "sqlite:///social_battery.db"
    redis_url: str = "redis://localhost:6379/0"
    openai_api_key: str | None = None
    ai_model: str = "gpt-4o-mini"
    cors_origins: list[str] = field(default_factory=list)
    dev_mode: bool = False

    @classmethod
    def from_env(cls) -> BatterySettings:
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: If a numeric value or the backend name is invalid
        """
        backend = os.getenv("SOCIAL_BATTERY_STORAGE", "memory").strip().lower()
        if backend not in _VALID_BACKENDS:
            raise ConfigurationError(
                f"SOCIAL_BATTERY_STORAGE must be one of {sorted(_VALID_BACKENDS)}, got {backend!r}"
            )

        tick_minutes = _float_env("SOCIAL_BATTERY_TICK_MINUTES", DEFAULT_TICK_MINUTES)
        if tick_minutes == 0:
            raise ConfigurationError("SOCIAL_BATTERY_TICK_MINUTES must be greater than zero")

        origins_env = os.getenv("SOCIAL_BATTERY_CORS_ORIGINS", "")
        return cls(
            recovery_rate=_float_env("SOCIAL_BATTERY_RECOVERY_RATE", DEFAULT_RECOVERY_RATE),
            tick_minutes=tick_minutes,
            storage_backend=backend,  # type: ignore[arg-type]
            database_url=os.getenv("SOCIAL_BATTERY_DATABASE_URL", "sqlite:///social_battery.db"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            ai_model=os.getenv("SOCIAL_BATTERY_AI_MODEL", "gpt-4o-mini"),
            cors_origins=[o.strip() for o in origins_env.split(",") if o.strip()],
            dev_mode=os.getenv("SOCIAL_BATTERY_DEV_MODE") == "1",
        )
