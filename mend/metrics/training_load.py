"""Training load and daily volume computation.

Per-activity load = duration_minutes x intensity_factor x duration_scaling
x activity_type_factor x recency_factor.

Properties:
- Deterministic: same activities and ``today`` always give the same load
- Calendar-day granularity for windows and recency
- Duration scaling is piecewise with progressively slower ramps, so strain
  per minute grows sub-linearly past the first hour
"""

from __future__ import annotations

import datetime as dt
import math
from collections import defaultdict
from collections.abc import Iterable

from loguru import logger

from mend.models.activity import Activity
from mend.models.enums import ActivityIntensity, ActivityType, Trend
from mend.models.metrics import MetricScore
from mend.models.training import DailyTrainingVolume, WorkRestRatio

INTENSITY_FACTORS: dict[ActivityIntensity, float] = {
    ActivityIntensity.LOW: 1.0,
    ActivityIntensity.MODERATE: 2.5,
    ActivityIntensity.HIGH: 4.0,
}

ACTIVITY_TYPE_FACTORS: dict[ActivityType, float] = {
    ActivityType.RUN: 1.2,
    ActivityType.WORKOUT: 1.1,
    ActivityType.RIDE: 1.0,
    ActivityType.SWIM: 0.8,
    ActivityType.WALK: 0.5,
    ActivityType.OTHER: 1.0,
}

# Ordinal intensity used for the duration-weighted daily average
INTENSITY_LEVELS: dict[ActivityIntensity, float] = {
    ActivityIntensity.LOW: 1.0,
    ActivityIntensity.MODERATE: 2.0,
    ActivityIntensity.HIGH: 3.0,
}

RECENCY_DECAY_PER_DAY = 0.05
RECENCY_FLOOR = 0.7

WORK_REST_WINDOW_DAYS = 7


def duration_scaling(duration_minutes: float) -> float:
    """Piecewise duration multiplier.

    0-30 min ramps 0 -> 1, 30-60 min ramps 1 -> 1.5, then 1.5+ at the
    slowest slope.
    """
    if duration_minutes <= 0:
        return 0.0
    if duration_minutes <= 30:
        return duration_minutes / 30.0
    if duration_minutes <= 60:
        return 1.0 + (duration_minutes - 30) / 60.0
    return 1.5 + (duration_minutes - 60) / 120.0


def recency_factor(days_since_activity: int) -> float:
    return max(RECENCY_FLOOR, 1.0 - RECENCY_DECAY_PER_DAY * max(0, days_since_activity))


class TrainingLoadCalculator:
    """Computes training load, daily volumes, and work:rest ratios."""

    def activity_load(self, activity: Activity, today: dt.date) -> int:
        """Load points contributed by one activity as of ``today``."""
        minutes = activity.duration_minutes
        days_since = (today - activity.day).days

        load = (
            minutes
            * INTENSITY_FACTORS.get(activity.intensity, INTENSITY_FACTORS[ActivityIntensity.MODERATE])
            * duration_scaling(minutes)
            * ACTIVITY_TYPE_FACTORS.get(activity.type, ACTIVITY_TYPE_FACTORS[ActivityType.OTHER])
            * recency_factor(days_since)
        )
        return int(load)

    def in_window(
        self,
        activities: Iterable[Activity],
        window_days: int,
        today: dt.date,
    ) -> list[Activity]:
        """Activities started within ``window_days`` of today, inclusive."""
        selected = []
        for activity in activities:
            days_since = (today - activity.day).days
            if days_since < 0:
                logger.warning(f"[LOAD] Ignoring activity {activity.id} dated after {today}")
                continue
            if days_since <= window_days:
                selected.append(activity)
        return selected

    def load(
        self,
        activities: Iterable[Activity],
        window_days: int = 7,
        *,
        today: dt.date | None = None,
    ) -> int:
        """Total training load for the window."""
        today = today or dt.date.today()
        recent = self.in_window(activities, window_days, today)
        total = sum(self.activity_load(a, today) for a in recent)
        logger.debug(f"[LOAD] {len(recent)} activities in {window_days}d window, load={total}")
        return total

    def daily_volumes(
        self,
        activities: Iterable[Activity],
        window_days: int = 7,
        *,
        today: dt.date | None = None,
    ) -> list[DailyTrainingVolume]:
        """One DailyTrainingVolume per day for the last ``window_days`` days.

        Rest days are included with zero values. Ordered oldest first.
        """
        today = today or dt.date.today()
        by_day: dict[dt.date, list[Activity]] = defaultdict(list)
        for activity in self.in_window(activities, window_days, today):
            by_day[activity.day].append(activity)

        volumes = []
        for offset in range(window_days - 1, -1, -1):
            day = today - dt.timedelta(days=offset)
            day_activities = by_day.get(day, [])

            total_minutes = sum(a.duration_minutes for a in day_activities)
            weighted = sum(INTENSITY_LEVELS[a.intensity] * a.duration_minutes for a in day_activities)
            average_intensity = weighted / total_minutes if total_minutes > 0 else 0.0

            volumes.append(
                DailyTrainingVolume(
                    date=day,
                    total_duration_minutes=total_minutes,
                    average_intensity=average_intensity,
                    activity_count=len(day_activities),
                    training_load=sum(self.activity_load(a, today) for a in day_activities),
                )
            )
        return volumes

    def work_rest_ratio(
        self,
        activities: Iterable[Activity],
        *,
        today: dt.date | None = None,
    ) -> WorkRestRatio:
        """Active days to rest days over the trailing 7 days."""
        volumes = self.daily_volumes(activities, WORK_REST_WINDOW_DAYS, today=today)
        return work_rest_ratio(volumes)

    def training_load_score(
        self,
        activities: Iterable[Activity],
        *,
        today: dt.date | None = None,
        acute_days: int = 7,
        chronic_days: int = 28,
    ) -> MetricScore:
        """Compare this week's average daily load with the chronic average."""
        today = today or dt.date.today()
        activities = list(activities)

        acute = self.daily_volumes(activities, acute_days, today=today)
        chronic = self.daily_volumes(activities, chronic_days, today=today)

        acute_average = sum(v.training_load for v in acute) / len(acute)
        chronic_average = sum(v.training_load for v in chronic) / len(chronic)

        delta = acute_average - chronic_average
        percent_change = delta / chronic_average * 100 if chronic_average > 0 else 0.0

        return MetricScore(
            score=max(0, min(100, int(acute_average))),
            title="Training Load",
            description=_describe_training_load(delta, percent_change, chronic_days),
            baseline=chronic_average,
            delta_from_baseline=delta,
            is_favorable=0 < percent_change <= 15,
            trend=_training_load_trend(percent_change),
        )


def work_rest_ratio(volumes: Iterable[DailyTrainingVolume]) -> WorkRestRatio:
    """Reduce active:rest day counts to lowest terms.

    A week with no activity reports 0:7 and a week with no rest reports 7:0;
    neither is reduced.
    """
    volumes = list(volumes)[-WORK_REST_WINDOW_DAYS:]
    active = sum(1 for v in volumes if not v.is_rest_day)
    rest = len(volumes) - active

    if active == 0 or rest == 0:
        work, rest_terms = active, rest
    else:
        divisor = math.gcd(active, rest)
        work, rest_terms = active // divisor, rest // divisor

    return WorkRestRatio(active_days=active, rest_days=rest, work=work, rest=rest_terms)


def _describe_training_load(delta: float, percent_change: float, chronic_days: int) -> str:
    weeks = chronic_days // 7
    if percent_change > 25:
        return (
            f"Your training load is {delta:.0f} points ({percent_change:.0f}%) higher than your "
            f"{weeks}-week average, suggesting a significant increase in workload. "
            "Consider implementing a recovery week soon."
        )
    if percent_change > 10:
        return (
            f"Your training load is {delta:.0f} points ({percent_change:.0f}%) higher than your "
            f"{weeks}-week average, indicating a moderate progression in training volume."
        )
    if percent_change >= -5:
        return f"Your training load is similar to your {weeks}-week average, showing consistent training patterns."
    return (
        f"Your training load is {abs(delta):.0f} points ({abs(percent_change):.0f}%) lower than your "
        f"{weeks}-week average, showing a reduction in training volume."
    )


def _training_load_trend(percent_change: float) -> Trend:
    if 0 < percent_change <= 15:
        return Trend.FAVORABLE
    if -5 <= percent_change <= 10:
        return Trend.STABLE
    return Trend.UNFAVORABLE
