from __future__ import annotations

import datetime as dt
import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mend.models.enums import MetricKind, Trend


class MetricSample(BaseModel):
    """One daily reading of a biometric. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    value: float
    metric_kind: MetricKind

    @field_validator("date", mode="before")
    @classmethod
    def truncate_datetime(cls, value: object) -> object:
        if isinstance(value, dt.datetime):
            return value.date()
        return value

    @field_validator("value")
    @classmethod
    def require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("Metric value must be finite")
        return value


class MetricScore(BaseModel):
    """Scored view of one metric for the current day.

    Derived on every refresh and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    kind: MetricKind | None = None
    score: int = Field(..., ge=0, le=100)
    title: str
    description: str
    series: list[MetricSample] = Field(default_factory=list)
    baseline: float | None = None
    delta_from_baseline: float = 0.0
    is_favorable: bool = False
    trend: Trend = Trend.STABLE


class SleepStages(BaseModel):
    """Time spent in each sleep stage for one night, in seconds."""

    deep: float = Field(default=0.0, ge=0)
    rem: float = Field(default=0.0, ge=0)
    core: float = Field(default=0.0, ge=0)
    unspecified: float = Field(default=0.0, ge=0)
    awake: float = Field(default=0.0, ge=0)

    @property
    def total_asleep(self) -> float:
        return self.deep + self.rem + self.core + self.unspecified

    def percentages(self) -> dict[str, float]:
        """Share of total sleep per stage, 0-100."""
        total = self.total_asleep
        if total <= 0:
            return {"deep": 0.0, "rem": 0.0, "core": 0.0, "unspecified": 0.0}
        return {
            "deep": self.deep / total * 100,
            "rem": self.rem / total * 100,
            "core": self.core / total * 100,
            "unspecified": self.unspecified / total * 100,
        }
