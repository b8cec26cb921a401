"""
Daily readings built from the interaction log.

The pattern analyzer works on one reading per day. Each logged day
becomes a reading at the time of its last interaction, with:
- level: energy_after of that last interaction
- social_interactions: interactions other than solo time
- drain_events: interactions that lowered the battery
- recharge_events: solo time and interactions that raised the battery

Calendar days between the first and last logged day with no
interactions become zero-interaction readings. Their level is the
previous reading's level plus passive recovery over the gap.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from src.config.battery import DEFAULT_RECOVERY_RATE
from src.models.battery import InteractionType, SocialInteraction
from src.models.patterns import DailySocialReading, SocialEvent
from src.services.social_battery.recovery import recover


def _is_recharge(interaction: SocialInteraction) -> bool:
    return interaction.type == InteractionType.SOLO_TIME or interaction.energy_delta > 0


def build_daily_readings(
    interactions: Iterable[SocialInteraction],
    recovery_rate: float = DEFAULT_RECOVERY_RATE,
) -> list[DailySocialReading]:
    """
    Aggregate the log into chronological daily readings.

    Args:
        interactions: Interaction log (any order)
        recovery_rate: %/hour credited across days without interactions

    Returns:
        One reading per calendar day from the first to the last logged day
    """
    by_day: dict[date, list[SocialInteraction]] = {}
    for interaction in sorted(interactions, key=lambda i: i.timestamp):
        by_day.setdefault(interaction.timestamp.date(), []).append(interaction)
    if not by_day:
        return []

    readings: list[DailySocialReading] = []
    days = sorted(by_day)
    current = days[0]
    while current <= days[-1]:
        items = by_day.get(current)
        if items:
            last = items[-1]
            readings.append(DailySocialReading(
                timestamp=last.timestamp,
                level=last.energy_after,
                social_interactions=sum(1 for i in items if i.type != InteractionType.SOLO_TIME),
                drain_events=tuple(
                    SocialEvent(timestamp=i.timestamp, intensity=i.intensity)
                    for i in items
                    if not _is_recharge(i)
                ),
                recharge_events=tuple(
                    SocialEvent(timestamp=i.timestamp, intensity=i.intensity)
                    for i in items
                    if _is_recharge(i)
                ),
            ))
        else:
            previous = readings[-1]
            timestamp = previous.timestamp + timedelta(days=1)
            readings.append(DailySocialReading(
                timestamp=timestamp,
                level=recover(previous.level, 24, recovery_rate),
            ))
        current += timedelta(days=1)
    return readings
