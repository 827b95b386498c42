"""Personalized recovery durations mined from activity spacing.

For each (activity type, intensity) group the learner looks at the gap
between consecutive activities. Gaps between 8 hours and 7 days are taken
as recovery observations; shorter gaps are treated as the same session and
longer ones as unrelated breaks.

Each observation is scaled by sqrt(duration hours) of the earlier activity
and capped at the raw gap. The group's expected recovery is the mean of
its accepted observations.
"""

from __future__ import annotations

import datetime as dt
import math
from collections import defaultdict
from collections.abc import Iterable

from loguru import logger

from mend.models.activity import Activity
from mend.models.recovery import RecoveryKey, RecoveryTimeTable

MIN_RECOVERY_GAP = dt.timedelta(hours=8)
MAX_RECOVERY_GAP = dt.timedelta(days=7)

DEFAULT_HISTORY_DAYS = 30


def scaled_observation(gap_seconds: float, duration_hours: float) -> float:
    """Normalize one gap for workout length, never extending the raw gap."""
    return min(gap_seconds, gap_seconds * math.sqrt(duration_hours))


class HistoricalRecoveryLearner:
    """Builds a RecoveryTimeTable from the trailing activity history."""

    def learn(
        self,
        activities: Iterable[Activity],
        history_days: int = DEFAULT_HISTORY_DAYS,
        *,
        now: dt.datetime | None = None,
    ) -> RecoveryTimeTable:
        now = now or dt.datetime.now(dt.UTC)
        cutoff = now - dt.timedelta(days=history_days)

        groups: dict[RecoveryKey, list[Activity]] = defaultdict(list)
        skipped = 0
        for activity in activities:
            if activity.start_time < cutoff or activity.start_time > now:
                continue
            if activity.duration_sec <= 0:
                skipped += 1
                continue
            groups[(activity.type, activity.intensity)].append(activity)

        if skipped:
            logger.debug(f"[LEARNER] Skipped {skipped} activities without a duration")

        recovery_seconds: dict[RecoveryKey, float] = {}
        observation_counts: dict[RecoveryKey, int] = {}
        average_durations: dict[RecoveryKey, float] = {}

        for key, group in groups.items():
            group.sort(key=lambda a: a.start_time)
            average_durations[key] = sum(a.duration_sec for a in group) / len(group)

            observations = []
            for earlier, later in zip(group, group[1:]):
                gap = later.start_time - earlier.start_time
                if MIN_RECOVERY_GAP <= gap <= MAX_RECOVERY_GAP:
                    observations.append(scaled_observation(gap.total_seconds(), earlier.duration_hours))

            if not observations:
                continue

            recovery_seconds[key] = sum(observations) / len(observations)
            observation_counts[key] = len(observations)
            logger.debug(
                f"[LEARNER] {key[0]}/{key[1]}: {len(observations)} observations, "
                f"expected={recovery_seconds[key] / 3600:.1f}h"
            )

        logger.info(
            f"[LEARNER] Built recovery table: groups={len(groups)} learned={len(recovery_seconds)} "
            f"history_days={history_days}"
        )
        return RecoveryTimeTable(
            recovery_seconds=recovery_seconds,
            observation_counts=observation_counts,
            average_duration_seconds=average_durations,
            built_at=now,
        )
