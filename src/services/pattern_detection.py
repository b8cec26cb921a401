"""
Pattern Detection Service for the Social Battery.

Five independent detectors over daily battery readings:
- Recovery-needed: how long the battery takes to recover, and when
- Optimal-timing: hours and weekdays with the highest battery
- Interaction-overload: crowded low-battery days and drain streaks
- Social-deficit: quiet high-battery days and isolation
- Energy-correlation: social battery vs. overall energy (Pearson r)

Each detector needs a minimum sample size. Below it the detector simply
contributes no pattern; analysis never fails for lack of data. Confidence
values are heuristics in [0, 1], not p-values.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime

from src.models.patterns import (
    AnalysisInsights,
    AnalysisSummary,
    DailySocialReading,
    EnergyReading,
    InteractionWindow,
    Pattern,
    PatternFrequency,
    PatternType,
    SocialPatternAnalysis,
    SocialTrend,
    TimeMarker,
)
from src.services.social_battery.stats import DAY_NAMES, sunday_based_weekday

# ============================================================================
# Helpers
# ============================================================================


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _clamp_confidence(value: float) -> float:
    return min(1.0, max(0.0, value))


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two equal-length series.

    Returns 0.0 for empty or mismatched input and when either series has
    zero variance. The result is clamped to [-1, 1].
    """
    if len(x) != len(y) or not x:
        return 0.0

    n = len(x)
    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_xx = sum(a * a for a in x)
    sum_yy = sum(b * b for b in y)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_xx - sum_x * sum_x) * (n * sum_yy - sum_y * sum_y)
    if variance_product <= 0:
        return 0.0
    return max(-1.0, min(1.0, numerator / math.sqrt(variance_product)))


# ============================================================================
# Pattern Analyzer
# ============================================================================


class SocialPatternAnalyzer:
    """
    Batch analyzer over the social battery history.

    Runs on demand, not on every mutation. All methods are synchronous
    and pure: the same readings always yield the same patterns.

    Usage:
        analyzer = SocialPatternAnalyzer()
        patterns = analyzer.detect_patterns(readings, energy_readings)
        report = analyzer.analyze(readings, energy_readings)
    """

    # Recovery-needed
    RECOVERY_JUMP = 10.0
    MIN_RECOVERY_SAMPLES = 3
    MIN_RECHARGE_EVENTS = 5
    MIN_RECHARGE_HOUR_COUNT = 3

    # Optimal-timing
    MIN_SAMPLES_PER_HOUR = 3
    MIN_QUALIFYING_HOURS = 3
    MIN_SAMPLES_PER_WEEKDAY = 2
    MIN_QUALIFYING_WEEKDAYS = 2

    # Interaction-overload
    OVERLOAD_INTERACTIONS = 6
    OVERLOAD_LEVEL = 40.0
    MIN_OVERLOAD_DAYS = 3
    DRAIN_STREAK_LEVEL = 50.0
    MIN_DRAIN_STREAK = 3

    # Social-deficit
    DEFICIT_INTERACTIONS = 2
    DEFICIT_LEVEL = 80.0
    MIN_DEFICIT_DAYS = 3
    MIN_ISOLATION_DAYS = 2
    ISOLATION_AVG_INTERACTIONS = 3.0

    # Energy-correlation
    MIN_CORRELATION_PAIRS = 7
    CORRELATION_THRESHOLD = 0.4

    def detect_patterns(
        self,
        readings: Iterable[DailySocialReading],
        energy_readings: Iterable[EnergyReading] | None = None,
    ) -> list[Pattern]:
        """
        Run all five detectors.

        Args:
            readings: Daily social battery readings (any order)
            energy_readings: Optional overall-energy series for correlation

        Returns:
            Detected patterns (possibly empty), detector order preserved
        """
        ordered = sorted(readings, key=lambda r: r.timestamp)
        if not ordered:
            return []

        patterns = [
            *self.detect_recovery_patterns(ordered),
            *self.detect_optimal_timing_patterns(ordered),
            *self.detect_overload_patterns(ordered),
            *self.detect_deficit_patterns(ordered),
        ]
        if energy_readings is not None:
            patterns.extend(self.detect_energy_correlation_patterns(ordered, energy_readings))
        return patterns

    def analyze(
        self,
        readings: Iterable[DailySocialReading],
        energy_readings: Iterable[EnergyReading] | None = None,
        now: datetime | None = None,
    ) -> SocialPatternAnalysis:
        """Full report: data range, patterns, insights and summary."""
        ordered = sorted(readings, key=lambda r: r.timestamp)
        energy = list(energy_readings) if energy_readings is not None else None
        patterns = self.detect_patterns(ordered, energy)

        start = ordered[0].timestamp if ordered else None
        end = ordered[-1].timestamp if ordered else None
        days = math.ceil((end - start).total_seconds() / 86400) if start and end else 0

        return SocialPatternAnalysis(
            analysis_date=now or datetime.now(UTC),
            start_date=start,
            end_date=end,
            days_analyzed=days,
            patterns=patterns,
            insights=self.calculate_insights(ordered) if ordered else None,
            summary=self.summarize(patterns),
        )

    # ------------------------------------------------------------------
    # 1. Recovery-needed
    # ------------------------------------------------------------------

    def detect_recovery_patterns(self, readings: Sequence[DailySocialReading]) -> list[Pattern]:
        patterns: list[Pattern] = []

        recovery_hours: list[int] = []
        for current, following in zip(readings, readings[1:]):
            if following.level > current.level + self.RECOVERY_JUMP:
                elapsed = following.timestamp - current.timestamp
                recovery_hours.append(int(elapsed.total_seconds() / 3600))

        if len(recovery_hours) >= self.MIN_RECOVERY_SAMPLES:
            avg_hours = _mean(recovery_hours)
            patterns.append(Pattern(
                id="recovery-pattern-general",
                type=PatternType.RECOVERY_NEEDED,
                description=f"Average recovery time after social interactions is {avg_hours:.1f} hours",
                confidence=_clamp_confidence(min(0.9, len(recovery_hours) / 10)),
                frequency=PatternFrequency.DAILY,
                average_recovery_time=avg_hours,
            ))

        recharge_events = [e for r in readings for e in r.recharge_events]
        if len(recharge_events) >= self.MIN_RECHARGE_EVENTS:
            hour_counts: dict[int, int] = {}
            for event in recharge_events:
                hour_counts[event.timestamp.hour] = hour_counts.get(event.timestamp.hour, 0) + 1
            # Most frequent hour; earliest hour wins ties
            best_hour, count = min(hour_counts.items(), key=lambda kv: (-kv[1], kv[0]))

            if count >= self.MIN_RECHARGE_HOUR_COUNT:
                patterns.append(Pattern(
                    id="recovery-pattern-timing",
                    type=PatternType.RECOVERY_NEEDED,
                    description=f"Most effective recovery time appears to be around {best_hour}:00",
                    confidence=_clamp_confidence(min(0.8, count / len(recharge_events))),
                    frequency=PatternFrequency.DAILY,
                    peak_times=(TimeMarker(hour=best_hour, level=float(count)),),
                ))

        return patterns

    # ------------------------------------------------------------------
    # 2. Optimal-timing
    # ------------------------------------------------------------------

    def detect_optimal_timing_patterns(self, readings: Sequence[DailySocialReading]) -> list[Pattern]:
        patterns: list[Pattern] = []

        hourly: dict[int, list[float]] = {}
        weekly: dict[int, list[float]] = {}
        for reading in readings:
            hourly.setdefault(reading.timestamp.hour, []).append(reading.level)
            weekly.setdefault(sunday_based_weekday(reading.timestamp), []).append(reading.level)

        hourly_averages = sorted(
            (
                (hour, _mean(levels))
                for hour, levels in sorted(hourly.items())
                if len(levels) >= self.MIN_SAMPLES_PER_HOUR
            ),
            key=lambda item: item[1],
            reverse=True,
        )
        if len(hourly_averages) >= self.MIN_QUALIFYING_HOURS:
            top = hourly_averages[:3]
            hours_text = ", ".join(f"{hour}:00" for hour, _ in top[:2]) + f", and {top[2][0]}:00"
            patterns.append(Pattern(
                id="optimal-timing-hourly",
                type=PatternType.OPTIMAL_TIMING,
                description=f"Highest social battery typically occurs at {hours_text}",
                confidence=_clamp_confidence(min(0.9, len(readings) / 30)),
                frequency=PatternFrequency.DAILY,
                peak_times=tuple(TimeMarker(hour=hour, level=avg) for hour, avg in top),
                low_times=tuple(
                    TimeMarker(hour=hour, level=avg) for hour, avg in hourly_averages[-1:]
                ),
            ))

        weekly_averages = sorted(
            (
                (day, _mean(levels), len(levels))
                for day, levels in sorted(weekly.items())
                if len(levels) >= self.MIN_SAMPLES_PER_WEEKDAY
            ),
            key=lambda item: item[1],
            reverse=True,
        )
        if len(weekly_averages) >= self.MIN_QUALIFYING_WEEKDAYS:
            best_day, best_avg, samples = weekly_averages[0]
            patterns.append(Pattern(
                id="optimal-timing-weekly",
                type=PatternType.OPTIMAL_TIMING,
                description=f"{DAY_NAMES[best_day]} tends to be your best day for social activities",
                confidence=_clamp_confidence(min(0.8, samples / 5)),
                frequency=PatternFrequency.WEEKLY,
                peak_times=(TimeMarker(hour=12, level=best_avg, day_of_week=best_day),),
            ))

        return patterns

    # ------------------------------------------------------------------
    # 3. Interaction-overload
    # ------------------------------------------------------------------

    def detect_overload_patterns(self, readings: Sequence[DailySocialReading]) -> list[Pattern]:
        patterns: list[Pattern] = []

        overload_days = [
            r for r in readings
            if r.social_interactions > self.OVERLOAD_INTERACTIONS and r.level < self.OVERLOAD_LEVEL
        ]
        if len(overload_days) >= self.MIN_OVERLOAD_DAYS:
            avg_interactions = _mean([r.social_interactions for r in overload_days])
            avg_level = _mean([r.level for r in overload_days])
            patterns.append(Pattern(
                id="interaction-overload",
                type=PatternType.INTERACTION_OVERLOAD,
                description=(
                    f"When you have {_round_half_up(avg_interactions)}+ social interactions, "
                    f"your social battery drops to {_round_half_up(avg_level)}%"
                ),
                confidence=_clamp_confidence(min(0.85, len(overload_days) / 7)),
                frequency=PatternFrequency.WEEKLY,
                optimal_interaction_count=max(3, _round_half_up(avg_interactions * 0.7)),
            ))

        streak = 0
        longest = 0
        for reading in readings:
            draining = len(reading.drain_events) > len(reading.recharge_events)
            if draining and reading.level < self.DRAIN_STREAK_LEVEL:
                streak += 1
                longest = max(longest, streak)
            else:
                streak = 0

        if longest >= self.MIN_DRAIN_STREAK:
            patterns.append(Pattern(
                id="consecutive-drain-pattern",
                type=PatternType.INTERACTION_OVERLOAD,
                description=f"You experience {longest} consecutive days of social battery drain",
                confidence=0.8,
                frequency=PatternFrequency.WEEKLY,
                consecutive_days=longest,
            ))

        return patterns

    # ------------------------------------------------------------------
    # 4. Social-deficit
    # ------------------------------------------------------------------

    def detect_deficit_patterns(self, readings: Sequence[DailySocialReading]) -> list[Pattern]:
        patterns: list[Pattern] = []
        if not readings:
            return patterns

        quiet_days = [
            r for r in readings
            if r.social_interactions < self.DEFICIT_INTERACTIONS and r.level > self.DEFICIT_LEVEL
        ]
        if len(quiet_days) >= self.MIN_DEFICIT_DAYS:
            patterns.append(Pattern(
                id="social-deficit-pattern",
                type=PatternType.SOCIAL_DEFICIT,
                description=(
                    f"You have {len(quiet_days)} days with very few social interactions "
                    "but high social battery"
                ),
                confidence=_clamp_confidence(min(0.8, len(quiet_days) / 10)),
                frequency=PatternFrequency.WEEKLY,
            ))

        avg_interactions = _mean([r.social_interactions for r in readings])
        isolated_days = [r for r in readings if r.social_interactions == 0]
        if (
            len(isolated_days) >= self.MIN_ISOLATION_DAYS
            and avg_interactions < self.ISOLATION_AVG_INTERACTIONS
        ):
            patterns.append(Pattern(
                id="isolation-pattern",
                type=PatternType.SOCIAL_DEFICIT,
                description=f"You have {len(isolated_days)} days with no social interactions",
                confidence=0.7,
                frequency=PatternFrequency.WEEKLY,
            ))

        return patterns

    # ------------------------------------------------------------------
    # 5. Energy-correlation
    # ------------------------------------------------------------------

    def detect_energy_correlation_patterns(
        self,
        readings: Sequence[DailySocialReading],
        energy_readings: Iterable[EnergyReading],
    ) -> list[Pattern]:
        # First energy sample of each calendar day
        energy_by_day: dict[date, float] = {}
        for sample in energy_readings:
            energy_by_day.setdefault(sample.timestamp.date(), sample.overall)

        social: list[float] = []
        energy: list[float] = []
        for reading in readings:
            matching = energy_by_day.get(reading.timestamp.date())
            if matching is not None:
                social.append(reading.level)
                energy.append(matching)

        if len(social) < self.MIN_CORRELATION_PAIRS:
            return []

        r = pearson_correlation(social, energy)
        if abs(r) <= self.CORRELATION_THRESHOLD:
            return []

        relationship = "positively" if r > 0 else "negatively"
        return [Pattern(
            id="energy-correlation-pattern",
            type=PatternType.ENERGY_CORRELATION,
            description=(
                f"Your social battery is {relationship} correlated with your overall energy (r = {r:.2f})"
            ),
            confidence=_clamp_confidence(min(0.9, abs(r))),
            frequency=PatternFrequency.DAILY,
            correlation_with_energy=r,
        )]

    # ------------------------------------------------------------------
    # Insights and summary
    # ------------------------------------------------------------------

    def calculate_insights(self, readings: Sequence[DailySocialReading]) -> AnalysisInsights:
        """Trend, averages, good interaction windows, risks and strengths."""
        avg_battery = _mean([r.level for r in readings])

        trend = SocialTrend.STABLE
        recent = readings[-7:]
        older = readings[-14:-7]
        if len(recent) >= 3 and len(older) >= 3:
            recent_avg = _mean([r.level for r in recent])
            difference = recent_avg - _mean([r.level for r in older])
            if difference > 5:
                trend = SocialTrend.IMPROVING
            elif difference < -5:
                trend = SocialTrend.DECLINING
            else:
                variance = _mean([(r.level - recent_avg) ** 2 for r in recent])
                if variance > 400:
                    trend = SocialTrend.FLUCTUATING

        recharge_events = [e for r in readings for e in r.recharge_events]
        # Intensity 1-10 maps to 10-100 minutes of recharge
        avg_recovery = (
            _mean([e.intensity * 10 for e in recharge_events]) / 60 if recharge_events else 2.0
        )

        by_hour: dict[int, list[DailySocialReading]] = {}
        for reading in readings:
            by_hour.setdefault(reading.timestamp.hour, []).append(reading)
        windows = [
            InteractionWindow(
                start_hour=hour,
                end_hour=hour + 2,
                confidence=min(0.8, len(items) / 10),
                avg_level=_mean([r.level for r in items]),
                avg_interactions=_mean([r.social_interactions for r in items]),
            )
            for hour, items in sorted(by_hour.items())
            if len(items) >= 3
        ]
        windows = sorted(
            (w for w in windows if w.avg_level > 60),
            key=lambda w: w.avg_level,
            reverse=True,
        )[:3]

        total = len(readings)
        risk_factors: list[str] = []
        if avg_battery < 40:
            risk_factors.append("Consistently low social battery")
        if sum(1 for r in readings if r.social_interactions > 8) > total * 0.3:
            risk_factors.append("Frequent social overload")
        if sum(1 for r in readings if r.social_interactions == 0) > total * 0.2:
            risk_factors.append("Regular social isolation")

        strengths: list[str] = []
        if avg_battery > 70:
            strengths.append("Good overall social battery management")
        if trend is SocialTrend.IMPROVING:
            strengths.append("Improving social energy patterns")
        if len(windows) >= 2:
            strengths.append("Consistent optimal interaction windows")

        return AnalysisInsights(
            current_trend=trend,
            avg_social_battery=avg_battery,
            avg_recovery_time=avg_recovery,
            optimal_interaction_windows=tuple(windows),
            risk_factors=tuple(risk_factors),
            strengths=tuple(strengths),
        )

    @staticmethod
    def summarize(patterns: Sequence[Pattern]) -> AnalysisSummary:
        counts: dict[PatternType, int] = {}
        for pattern in patterns:
            counts[pattern.type] = counts.get(pattern.type, 0) + 1

        return AnalysisSummary(
            immediate_actions=(
                counts.get(PatternType.RECOVERY_NEEDED, 0)
                + counts.get(PatternType.INTERACTION_OVERLOAD, 0)
            ),
            routine_changes=(
                counts.get(PatternType.OPTIMAL_TIMING, 0)
                + counts.get(PatternType.SOCIAL_DEFICIT, 0)
            ),
            lifestyle_adjustments=counts.get(PatternType.ENERGY_CORRELATION, 0),
            total_potential_improvement=min(30, len(patterns) * 5),
        )


# ============================================================================
# Module-level singleton for easy access
# ============================================================================

_pattern_analyzer: SocialPatternAnalyzer | None = None


def get_pattern_analyzer() -> SocialPatternAnalyzer:
    """Get the singleton SocialPatternAnalyzer instance."""
    global _pattern_analyzer
    if _pattern_analyzer is None:
        _pattern_analyzer = SocialPatternAnalyzer()
    return _pattern_analyzer
