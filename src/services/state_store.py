"""
Social Battery State Store.

All state changes go through one command funnel:

    new_state = reduce(state, command)

reduce() is pure. SocialBatteryStore.dispatch() applies one command at a
time under an asyncio.Lock and writes the snapshot after every committed
mutation. A failed write is logged and never reaches the caller; on the
next start the store loads the last written snapshot or the defaults.

Commands:
- AddInteraction: append to the log, level = energy_after, recompute
  limits, weekly stats and recommendations
- UpdateEnergyLevel: manual override, clamped to [0, 100]
- UpdateRecoveryRate: negative rates are clamped to 0
- TickRecovery: passive recovery, gated by the tick and cooldown windows
- LoadData: replace everything with a loaded snapshot
- ResetState: back to the defaults
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from src.config.battery import (
    DEFAULT_RECOVERY_RATE,
    RECENT_INTERACTIONS_FOR_RECOMMENDATIONS,
    BatterySettings,
)
from src.lib.exceptions import PersistenceError, SerializationError, StateError, ValidationError
from src.models.battery import (
    BatteryState,
    DashboardMetrics,
    InteractionType,
    PersonalLimits,
    SocialContext,
    SocialInteraction,
    clamp_level,
    parse_timestamp,
)
from src.models.patterns import DailySocialReading, EnergyReading, Pattern, SocialPatternAnalysis
from src.models.recommendation import Recommendation
from src.services.pattern_detection import get_pattern_analyzer
from src.services.persistence import MemoryBlobStore, SnapshotRepository
from src.services.recommendation_engine import recommend
from src.services.social_battery import (
    build_daily_readings,
    build_dashboard_metrics,
    compute_drain,
    compute_weekly_stats,
    estimate_limits,
    recover,
    recovery_hours_due,
)
from src.services.social_battery.stats import interactions_since, start_of_day, start_of_week

logger = logging.getLogger(__name__)


# =============================================================================
# State and commands
# =============================================================================


@dataclass(frozen=True)
class AppState:
    """Everything the store owns. Replaced, never mutated."""

    battery: BatteryState = field(default_factory=BatteryState)
    interactions: tuple[SocialInteraction, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    last_updated_at: datetime | None = None


@dataclass(frozen=True)
class AddInteraction:
    interaction: SocialInteraction
    now: datetime


@dataclass(frozen=True)
class UpdateEnergyLevel:
    level: float
    now: datetime


@dataclass(frozen=True)
class UpdateRecoveryRate:
    rate: float


@dataclass(frozen=True)
class TickRecovery:
    now: datetime


@dataclass(frozen=True)
class LoadData:
    interactions: tuple[SocialInteraction, ...]
    current_level: float
    recovery_rate: float
    last_interaction: SocialInteraction | None
    now: datetime


@dataclass(frozen=True)
class ResetState:
    recovery_rate: float = DEFAULT_RECOVERY_RATE


Command = AddInteraction | UpdateEnergyLevel | UpdateRecoveryRate | TickRecovery | LoadData | ResetState


# =============================================================================
# Reducer
# =============================================================================


def _with_derived(
    battery: BatteryState,
    interactions: Sequence[SocialInteraction],
    now: datetime,
) -> BatteryState:
    return replace(
        battery,
        personal_limits=estimate_limits(interactions, now),
        weekly_stats=compute_weekly_stats(interactions, now),
    )


def reduce(state: AppState, command: Command) -> AppState:
    """
    Apply one command and return the new state.

    Returns the same object when the command changes nothing (a gated
    recovery tick).

    Raises:
        StateError: For an unknown command
    """
    if isinstance(command, AddInteraction):
        interaction = command.interaction
        interactions = (*state.interactions, interaction)
        level = clamp_level(interaction.energy_after)
        battery = _with_derived(
            replace(state.battery, current_level=level, last_interaction=interaction),
            interactions,
            command.now,
        )
        recommendations = recommend(
            level,
            interactions[-RECENT_INTERACTIONS_FOR_RECOMMENDATIONS:],
            command.now.hour,
        )
        return AppState(
            battery=battery,
            interactions=interactions,
            recommendations=tuple(recommendations),
            last_updated_at=command.now,
        )

    if isinstance(command, UpdateEnergyLevel):
        return replace(
            state,
            battery=replace(state.battery, current_level=clamp_level(command.level)),
            last_updated_at=command.now,
        )

    if isinstance(command, UpdateRecoveryRate):
        return replace(state, battery=replace(state.battery, recovery_rate=max(0.0, command.rate)))

    if isinstance(command, TickRecovery):
        if state.last_updated_at is None:
            return replace(state, last_updated_at=command.now)

        last = state.battery.last_interaction
        hours = recovery_hours_due(
            command.now,
            state.last_updated_at,
            last.timestamp if last is not None else None,
        )
        if hours is None:
            return state

        level = recover(state.battery.current_level, hours, state.battery.recovery_rate)
        return replace(
            state,
            battery=replace(state.battery, current_level=level),
            last_updated_at=command.now,
        )

    if isinstance(command, LoadData):
        battery = _with_derived(
            BatteryState(
                current_level=clamp_level(command.current_level),
                recovery_rate=max(0.0, command.recovery_rate),
                last_interaction=command.last_interaction,
            ),
            command.interactions,
            command.now,
        )
        return AppState(
            battery=battery,
            interactions=command.interactions,
            last_updated_at=command.now,
        )

    if isinstance(command, ResetState):
        return AppState(battery=BatteryState(recovery_rate=command.recovery_rate))

    raise StateError(f"Unknown command: {type(command).__name__}")


# =============================================================================
# Input parsing
# =============================================================================

_REQUIRED_FIELDS = (
    "type",
    "context",
    "duration",
    "intensity",
    "people_count",
    "enjoyment",
    "energy_before",
    "energy_after",
)


def build_interaction(data: Mapping[str, Any], now: datetime) -> SocialInteraction:
    """
    Turn user input into a validated interaction with a fresh id.

    The timestamp defaults to `now` when the input carries none.

    Raises:
        ValidationError: On a missing field, unknown enum value or out-of-range value
    """
    for name in _REQUIRED_FIELDS:
        if data.get(name) is None:
            raise ValidationError(f"{name} is required", field=name)

    try:
        interaction_type = InteractionType(data["type"])
    except ValueError as exc:
        raise ValidationError(f"Unknown interaction type: {data['type']!r}", field="type") from exc
    try:
        context = SocialContext(data["context"])
    except ValueError as exc:
        raise ValidationError(f"Unknown social context: {data['context']!r}", field="context") from exc

    timestamp = now
    if data.get("timestamp") is not None:
        try:
            timestamp = parse_timestamp(data["timestamp"])
        except SerializationError as exc:
            raise ValidationError(str(exc), field="timestamp") from exc

    interaction = SocialInteraction(
        id=f"interaction_{uuid.uuid4().hex}",
        timestamp=timestamp,
        type=interaction_type,
        context=context,
        duration=data["duration"],
        intensity=data["intensity"],
        people_count=data["people_count"],
        enjoyment=data["enjoyment"],
        energy_before=data["energy_before"],
        energy_after=data["energy_after"],
        notes=data.get("notes"),
        location=data.get("location"),
    )
    interaction.validate()
    return interaction


# =============================================================================
# Store
# =============================================================================


class SocialBatteryStore:
    """
    Owner of the social battery state.

    Usage:
        store = SocialBatteryStore(SnapshotRepository(MemoryBlobStore()))
        await store.load()
        await store.log_interaction({...})
        metrics = store.get_dashboard_metrics()
    """

    def __init__(
        self,
        repository: SnapshotRepository | None = None,
        settings: BatterySettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or BatterySettings()
        self._repository = repository or SnapshotRepository(MemoryBlobStore())
        self._clock = clock or (lambda: datetime.now(UTC))
        self._lock = asyncio.Lock()
        self._state = AppState(
            battery=BatteryState(recovery_rate=self._settings.recovery_rate),
            last_updated_at=self._clock(),
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def battery(self) -> BatteryState:
        return self._state.battery

    @property
    def interactions(self) -> tuple[SocialInteraction, ...]:
        return self._state.interactions

    @property
    def recommendations(self) -> tuple[Recommendation, ...]:
        return self._state.recommendations

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Command funnel
    # ------------------------------------------------------------------

    async def dispatch(self, command: Command) -> AppState:
        """Apply one command, then persist if the state changed."""
        async with self._lock:
            new_state = reduce(self._state, command)
            if new_state is self._state:
                return new_state
            self._state = new_state
            if not isinstance(command, LoadData):
                await self._persist()
            return new_state

    async def _persist(self) -> None:
        try:
            await self._repository.save(self._state.interactions, self._state.battery)
        except PersistenceError:
            logger.exception("Failed to persist social battery snapshot")

    async def load(self) -> AppState:
        """Replace the state with the stored snapshot (defaults if unreadable)."""
        snapshot = await self._repository.load()
        logger.info(
            "Loaded social battery: %d interactions, level %.1f",
            len(snapshot.interactions),
            snapshot.current_level,
        )
        return await self.dispatch(LoadData(
            interactions=snapshot.interactions,
            current_level=snapshot.current_level,
            recovery_rate=snapshot.recovery_rate,
            last_interaction=snapshot.last_interaction,
            now=self._clock(),
        ))

    async def log_interaction(
        self,
        data: Mapping[str, Any],
        now: datetime | None = None,
    ) -> SocialInteraction:
        """
        Validate and commit a new interaction.

        Args:
            data: Interaction fields without id (timestamp optional)
            now: Commit time (defaults to the store clock)

        Returns:
            The committed interaction

        Raises:
            ValidationError: If the input is rejected; nothing is committed
        """
        commit_time = now or self._clock()
        try:
            interaction = build_interaction(data, commit_time)
        except ValidationError as exc:
            logger.info("Rejected interaction (%s): %s", exc.field, exc)
            raise

        drain = compute_drain(interaction)
        await self.dispatch(AddInteraction(interaction, commit_time))
        logger.info(
            "Interaction committed: id=%s type=%s drain=%.1f level=%.1f",
            interaction.id,
            interaction.type.value,
            drain,
            self._state.battery.current_level,
        )
        return interaction

    async def update_energy_level(self, level: float) -> BatteryState:
        state = await self.dispatch(UpdateEnergyLevel(level, self._clock()))
        return state.battery

    async def update_recovery_rate(self, rate: float) -> BatteryState:
        state = await self.dispatch(UpdateRecoveryRate(rate))
        return state.battery

    async def tick(self, now: datetime | None = None) -> bool:
        """
        Run one recovery tick.

        Returns:
            True if recovery was applied
        """
        before = self._state
        after = await self.dispatch(TickRecovery(now or self._clock()))
        applied = after is not before and after.battery.current_level != before.battery.current_level
        if applied:
            logger.debug(
                "Recovery tick: %.1f -> %.1f",
                before.battery.current_level,
                after.battery.current_level,
            )
        return applied

    async def reset(self) -> AppState:
        return await self.dispatch(ResetState(recovery_rate=self._settings.recovery_rate))

    async def close(self) -> None:
        await self._repository.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_dashboard_metrics(self, now: datetime | None = None) -> DashboardMetrics:
        battery = self._state.battery
        return build_dashboard_metrics(
            battery.current_level,
            battery.recovery_rate,
            self._state.interactions,
            now or self._clock(),
        )

    def get_today_interactions(self, now: datetime | None = None) -> list[SocialInteraction]:
        return interactions_since(self._state.interactions, start_of_day(now or self._clock()))

    def get_weekly_interactions(self, now: datetime | None = None) -> list[SocialInteraction]:
        return interactions_since(self._state.interactions, start_of_week(now or self._clock()))

    def get_personal_limits(self) -> PersonalLimits:
        return self._state.battery.personal_limits

    def daily_readings(self) -> list[DailySocialReading]:
        return build_daily_readings(self._state.interactions, self._state.battery.recovery_rate)

    def detect_patterns(self, energy_readings: Sequence[EnergyReading] | None = None) -> list[Pattern]:
        return get_pattern_analyzer().detect_patterns(self.daily_readings(), energy_readings)

    def analyze_patterns(
        self,
        energy_readings: Sequence[EnergyReading] | None = None,
        now: datetime | None = None,
    ) -> SocialPatternAnalysis:
        return get_pattern_analyzer().analyze(
            self.daily_readings(),
            energy_readings,
            now=now or self._clock(),
        )
