from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from mend.models.enums import ActivityIntensity
from mend.models.metrics import MetricScore


class DailyTrainingVolume(BaseModel):
    """Training volume for one calendar day, derived from activities."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    total_duration_minutes: float = Field(..., ge=0)
    average_intensity: float = Field(..., ge=0)
    activity_count: int = Field(..., ge=0)
    training_load: int = Field(..., ge=0)

    @property
    def is_rest_day(self) -> bool:
        return self.activity_count == 0

    @property
    def intensity_level(self) -> ActivityIntensity:
        if self.average_intensity >= 2.5:
            return ActivityIntensity.HIGH
        if self.average_intensity >= 1.5:
            return ActivityIntensity.MODERATE
        return ActivityIntensity.LOW


class WorkRestRatio(BaseModel):
    """Active days to rest days over a trailing window, in lowest terms."""

    model_config = ConfigDict(frozen=True)

    active_days: int = Field(..., ge=0)
    rest_days: int = Field(..., ge=0)
    work: int = Field(..., ge=0)
    rest: int = Field(..., ge=0)

    @property
    def label(self) -> str:
        return f"{self.work}:{self.rest}"

    def __str__(self) -> str:
        return self.label


class TrainingSummary(BaseModel):
    """Training data for charts: window load, daily volumes, and work:rest."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    window_days: int
    load: int
    daily_volumes: list[DailyTrainingVolume]
    work_rest_ratio: WorkRestRatio
    training_load_score: MetricScore
