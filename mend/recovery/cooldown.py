"""Post-activity cooldown state machine.

A completed activity depresses the recovery score, which then climbs back
to 100 along a sigmoid curve over the activity's expected recovery time.

States:
- Resting: no cooldown_start_time, adjustment 100
- Recovering: cooldown_start_time set, adjustment in [0, 100)

Guarantees:
- Each activity id affects the state at most once, across restarts when a
  repository is attached
- While a cooldown is active the adjustment never decreases
- expected_recovery_duration is fixed when the cooldown starts; a newer
  recovery table only affects activities processed afterwards
"""

from __future__ import annotations

import datetime as dt
import math
from threading import Lock

from loguru import logger

from mend.models.activity import Activity
from mend.models.enums import ActivityIntensity
from mend.models.recovery import CooldownState, CooldownStatus, RecoveryTimeTable
from mend.persistence.repository import CooldownRepository
from mend.recovery.insights import recovery_tips

FULL_ADJUSTMENT = 100
MAX_REDUCTION = 80

# Fallback recovery hours for a one-hour activity, scaled by sqrt(hours)
BASE_RECOVERY_HOURS: dict[ActivityIntensity, float] = {
    ActivityIntensity.LOW: 8.0,
    ActivityIntensity.MODERATE: 24.0,
    ActivityIntensity.HIGH: 36.0,
}

# Initial reduction (%) when the athlete has history for the type+intensity
HISTORY_BASE_REDUCTION: dict[ActivityIntensity, int] = {
    ActivityIntensity.LOW: 5,
    ActivityIntensity.MODERATE: 20,
    ActivityIntensity.HIGH: 35,
}

# Initial reduction (%) without history
DEFAULT_BASE_REDUCTION: dict[ActivityIntensity, int] = {
    ActivityIntensity.LOW: 2,
    ActivityIntensity.MODERATE: 15,
    ActivityIntensity.HIGH: 25,
}

MIN_DURATION_RATIO = 0.8
MAX_DURATION_FACTOR = 2.5

RECOVERY_CURVE_STEEPNESS = 12.0

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def recovery_curve(progress: float) -> float:
    """Share of the initial reduction recovered at ``progress`` (0..1).

    Slow start, fast middle, tapering end.
    """
    return 1.0 / (1.0 + math.exp(-RECOVERY_CURVE_STEEPNESS * (progress - 0.5)))


def expected_recovery_seconds(activity: Activity, table: RecoveryTimeTable) -> float:
    """Expected recovery time for ``activity``, personalized when possible."""
    duration_scale = math.sqrt(activity.duration_hours)
    learned = table.expected_recovery(activity.type, activity.intensity)
    if learned is not None:
        return learned * duration_scale
    base_hours = BASE_RECOVERY_HOURS.get(activity.intensity, BASE_RECOVERY_HOURS[ActivityIntensity.MODERATE])
    return base_hours * duration_scale * SECONDS_PER_HOUR


def initial_reduction(activity: Activity, table: RecoveryTimeTable) -> int:
    """Score reduction (0-80) applied right after ``activity``.

    With history, the base reduction is scaled by how the activity's duration
    compares to the athlete's average for the same type and intensity.
    Without it, the base is scaled by the activity's length in hours.
    """
    average_duration = table.average_duration(activity.type, activity.intensity)
    if average_duration:
        base = HISTORY_BASE_REDUCTION.get(activity.intensity, HISTORY_BASE_REDUCTION[ActivityIntensity.MODERATE])
        ratio = activity.duration_sec / average_duration
        factor = min(MAX_DURATION_FACTOR, max(MIN_DURATION_RATIO, ratio))
    else:
        base = DEFAULT_BASE_REDUCTION.get(activity.intensity, DEFAULT_BASE_REDUCTION[ActivityIntensity.MODERATE])
        factor = min(MAX_DURATION_FACTOR, 1.0 + activity.duration_hours / 2.0)
    return min(MAX_REDUCTION, int(base * factor))


class CooldownStateMachine:
    """Owns one athlete's CooldownState.

    ``process`` and ``tick`` are the only mutations and are serialized by a
    lock. ``snapshot`` reads without locking; the state object is immutable
    and replaced wholesale.
    """

    def __init__(
        self,
        state: CooldownState | None = None,
        *,
        recovery_table: RecoveryTimeTable | None = None,
        repository: CooldownRepository | None = None,
        athlete_id: str = "default",
    ):
        self.athlete_id = athlete_id
        self._repository = repository
        self._lock = Lock()

        if state is None and repository is not None:
            state = repository.load_state(athlete_id)
            if state is not None:
                logger.info(
                    f"[COOLDOWN] Restored state for athlete_id={athlete_id}: "
                    f"adjustment={state.current_adjustment} recovering={state.is_recovering}"
                )
        self._state = state or CooldownState()

        self._processed: set[str] = repository.processed_ids(athlete_id) if repository is not None else set()
        if self._state.last_processed_activity_id is not None:
            self._processed.add(self._state.last_processed_activity_id)

        self._recovery_table = recovery_table or RecoveryTimeTable()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> CooldownState:
        return self._state

    @property
    def recovery_table(self) -> RecoveryTimeTable:
        return self._recovery_table

    def has_processed(self, activity_id: str) -> bool:
        return activity_id in self._processed

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_recovery_table(self, table: RecoveryTimeTable) -> None:
        """Use ``table`` for activities processed from now on."""
        with self._lock:
            self._recovery_table = table

    def process(self, activity: Activity, now: dt.datetime | None = None) -> int:
        """Start a cooldown for ``activity`` unless its id was already seen.

        Returns:
            The adjustment after processing (0-100)
        """
        now = _resolve_now(now)
        with self._lock:
            if activity.id in self._processed:
                logger.debug(f"[COOLDOWN] Activity {activity.id} already processed, skipping")
                return self._state.current_adjustment

            expected = expected_recovery_seconds(activity, self._recovery_table)
            reduction = initial_reduction(activity, self._recovery_table)

            if expected <= 0:
                logger.info(f"[COOLDOWN] Activity {activity.id} has no recovery time, staying at rest")
                self._set_state(CooldownState(last_processed_activity_id=activity.id))
                self._mark_processed(activity.id, now)
                return FULL_ADJUSTMENT

            adjustment = FULL_ADJUSTMENT - reduction
            self._set_state(
                CooldownState(
                    last_processed_activity_id=activity.id,
                    cooldown_start_time=now,
                    expected_recovery_duration=expected,
                    initial_adjustment=adjustment,
                    current_adjustment=adjustment,
                )
            )
            self._mark_processed(activity.id, now)
            logger.info(
                f"[COOLDOWN] Processed activity {activity.id} ({activity.type}/{activity.intensity}, "
                f"{activity.duration_minutes:.0f} min): adjustment={adjustment} "
                f"expected_recovery={expected / SECONDS_PER_HOUR:.1f}h"
            )
            return adjustment

    def tick(self, now: dt.datetime | None = None) -> int:
        """Advance recovery to ``now`` and return the current adjustment.

        Calling twice with the same ``now`` gives the same result.
        """
        now = _resolve_now(now)
        with self._lock:
            state = self._state
            if not state.is_recovering:
                return FULL_ADJUSTMENT

            elapsed = self._elapsed(state, now)
            expected = state.expected_recovery_duration
            if expected <= 0 or elapsed >= expected:
                logger.info(f"[COOLDOWN] Recovery complete for activity {state.last_processed_activity_id}")
                self._set_state(CooldownState(last_processed_activity_id=state.last_processed_activity_id))
                return FULL_ADJUSTMENT

            progress = elapsed / expected
            remaining_reduction = (FULL_ADJUSTMENT - state.initial_adjustment) * (1.0 - recovery_curve(progress))
            candidate = FULL_ADJUSTMENT - math.ceil(remaining_reduction)

            adjustment = max(state.current_adjustment, candidate)
            if adjustment != state.current_adjustment:
                self._set_state(state.model_copy(update={"current_adjustment": adjustment}))
                logger.debug(f"[COOLDOWN] progress={progress:.2f} adjustment={adjustment}")
            return adjustment

    # ------------------------------------------------------------------
    # Progress queries
    # ------------------------------------------------------------------

    def percent_recovered(self, now: dt.datetime | None = None) -> int:
        """Elapsed share of the expected recovery time, 0-100."""
        now = _resolve_now(now)
        state = self._state
        if not state.is_recovering or state.expected_recovery_duration <= 0:
            return 100
        progress = min(1.0, self._elapsed(state, now) / state.expected_recovery_duration)
        return int(progress * 100)

    def remaining_seconds(self, now: dt.datetime | None = None) -> float:
        now = _resolve_now(now)
        state = self._state
        if not state.is_recovering:
            return 0.0
        return max(0.0, state.expected_recovery_duration - self._elapsed(state, now))

    def remaining_days(self, now: dt.datetime | None = None) -> int:
        return math.ceil(self.remaining_seconds(now) / SECONDS_PER_DAY)

    def describe(self, now: dt.datetime | None = None) -> str:
        remaining = self.remaining_seconds(now)
        if not self._state.is_recovering or remaining <= 0:
            return "Fully recovered"
        if remaining < SECONDS_PER_HOUR:
            return f"Recovery in progress: {int(remaining // 60)} min remaining"
        if remaining < SECONDS_PER_DAY:
            return f"Recovery in progress: {int(remaining // SECONDS_PER_HOUR)} hr remaining"
        days = int(remaining // SECONDS_PER_DAY)
        hours = int((remaining % SECONDS_PER_DAY) // SECONDS_PER_HOUR)
        return f"Recovery in progress: {days}d {hours}h remaining"

    def status(self, now: dt.datetime | None = None) -> CooldownStatus:
        """Tick to ``now`` and summarize the cooldown for display."""
        now = _resolve_now(now)
        adjustment = self.tick(now)
        percentage = self.percent_recovered(now)
        in_cooldown = self._state.is_recovering
        return CooldownStatus(
            adjustment=adjustment,
            percentage=percentage,
            description=self.describe(now),
            is_in_cooldown=in_cooldown,
            remaining_seconds=self.remaining_seconds(now),
            remaining_days=self.remaining_days(now),
            tips=recovery_tips(percentage) if in_cooldown else [],
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _elapsed(state: CooldownState, now: dt.datetime) -> float:
        # Clock skew before the start counts as no time elapsed
        return max(0.0, (now - state.cooldown_start_time).total_seconds())

    def _set_state(self, state: CooldownState) -> None:
        # Persist before publishing so a failed save leaves memory unchanged
        if self._repository is not None:
            self._repository.save_state(self.athlete_id, state)
        self._state = state

    def _mark_processed(self, activity_id: str, now: dt.datetime) -> None:
        # The saved state already names this id, so a failure here is
        # recovered from last_processed_activity_id on restart
        if self._repository is not None:
            self._repository.mark_processed(self.athlete_id, activity_id, now)
        self._processed.add(activity_id)


def _resolve_now(now: dt.datetime | None) -> dt.datetime:
    if now is None:
        return dt.datetime.now(dt.UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=dt.UTC)
    return now
