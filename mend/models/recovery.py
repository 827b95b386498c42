from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from mend.models.enums import ActivityIntensity, ActivityType, MetricKind
from mend.models.metrics import MetricScore

RecoveryKey = tuple[ActivityType, ActivityIntensity]


class RecoveryTimeTable(BaseModel):
    """Empirical recovery durations learned from the athlete's own history.

    Keys are (activity type, intensity). Groups without accepted observations
    are absent from ``recovery_seconds``; callers fall back to fixed defaults.
    """

    model_config = ConfigDict(frozen=True)

    recovery_seconds: dict[RecoveryKey, float] = Field(default_factory=dict)
    observation_counts: dict[RecoveryKey, int] = Field(default_factory=dict)
    average_duration_seconds: dict[RecoveryKey, float] = Field(default_factory=dict)
    built_at: dt.datetime | None = None

    def expected_recovery(self, activity_type: ActivityType, intensity: ActivityIntensity) -> float | None:
        return self.recovery_seconds.get((activity_type, intensity))

    def average_duration(self, activity_type: ActivityType, intensity: ActivityIntensity) -> float | None:
        return self.average_duration_seconds.get((activity_type, intensity))

    def is_stale(self, now: dt.datetime, max_age: dt.timedelta) -> bool:
        if self.built_at is None:
            return True
        return now - self.built_at >= max_age


class CooldownState(BaseModel):
    """Effect of the most recent activity on the recovery score.

    Resting: no cooldown_start_time, current_adjustment == 100.
    Recovering: cooldown_start_time set, 0 <= current_adjustment < 100.
    While cooldown_start_time is unchanged, current_adjustment never decreases.
    """

    model_config = ConfigDict(frozen=True)

    last_processed_activity_id: str | None = None
    cooldown_start_time: dt.datetime | None = None
    expected_recovery_duration: float = 0.0
    initial_adjustment: int = Field(default=100, ge=0, le=100)
    current_adjustment: int = Field(default=100, ge=0, le=100)

    @property
    def is_recovering(self) -> bool:
        return self.cooldown_start_time is not None


class CooldownStatus(BaseModel):
    """Cooldown summary for UI and notification text."""

    model_config = ConfigDict(frozen=True)

    adjustment: int = Field(..., ge=0, le=100)
    percentage: int = Field(..., ge=0, le=100)
    description: str
    is_in_cooldown: bool
    remaining_seconds: float = Field(..., ge=0)
    remaining_days: int = Field(..., ge=0)
    tips: list[str] = Field(default_factory=list)


class RecoveryScore(BaseModel):
    """Composite readiness score for one day. Fully derived."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    overall_score: int = Field(..., ge=0, le=100)
    base_score: int = Field(..., ge=0, le=100)
    cooldown_adjustment: int = Field(default=100, ge=0, le=100)
    metrics: dict[MetricKind, MetricScore] = Field(default_factory=dict)
    training_load_score: MetricScore | None = None
    is_low_confidence: bool = False
