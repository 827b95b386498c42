from __future__ import annotations

import datetime as dt
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from mend.models.enums import ActivityIntensity, ActivitySource, ActivityType


class Activity(BaseModel):
    """A completed workout.

    Immutable after creation. ``id`` is the unit of de-duplication: an
    activity affects the cooldown state at most once.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: ActivityType = ActivityType.OTHER
    start_time: dt.datetime
    duration_sec: float = Field(..., ge=0)
    distance_km: float | None = None
    intensity: ActivityIntensity = ActivityIntensity.MODERATE
    source: ActivitySource = ActivitySource.MANUAL
    title: str | None = None
    average_heart_rate: float | None = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, value: Any) -> Any:
        return _coerce_enum(value, ActivityType, ActivityType.OTHER, "type")

    @field_validator("intensity", mode="before")
    @classmethod
    def coerce_intensity(cls, value: Any) -> Any:
        return _coerce_enum(value, ActivityIntensity, ActivityIntensity.MODERATE, "intensity")

    @field_validator("source", mode="before")
    @classmethod
    def coerce_source(cls, value: Any) -> Any:
        return _coerce_enum(value, ActivitySource, ActivitySource.MANUAL, "source")

    @field_validator("start_time")
    @classmethod
    def assume_utc(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value

    @field_validator("duration_sec", mode="before")
    @classmethod
    def clamp_duration(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and value < 0:
            logger.warning(f"Negative activity duration {value}s clamped to 0")
            return 0.0
        return value

    @field_validator("distance_km", mode="before")
    @classmethod
    def drop_negative_distance(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and value < 0:
            logger.warning(f"Negative activity distance {value}km dropped")
            return None
        return value

    @property
    def duration_minutes(self) -> float:
        return self.duration_sec / 60.0

    @property
    def duration_hours(self) -> float:
        return self.duration_sec / 3600.0

    @property
    def day(self) -> dt.date:
        """Calendar day the activity started on."""
        return self.start_time.date()


def _coerce_enum(value: Any, enum_cls: type, default: Any, field: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        # "healthkit" and "health_kit" both name the same source
        if enum_cls is ActivitySource and normalized == "healthkit":
            normalized = ActivitySource.HEALTH_KIT.value
        try:
            return enum_cls(normalized)
        except ValueError:
            pass
    logger.warning(f"Unknown activity {field} {value!r}, using {default.value}")
    return default


def infer_intensity(duration_sec: float, active_energy_kcal: float | None = None) -> ActivityIntensity:
    """Infer workout intensity for imported workouts that carry none.

    Uses calories burned per minute when energy data is available and falls
    back to duration alone otherwise.
    """
    if active_energy_kcal is not None and duration_sec > 0:
        calories_per_minute = active_energy_kcal / (duration_sec / 60.0)
        if calories_per_minute > 10:
            return ActivityIntensity.HIGH
        if calories_per_minute > 5:
            return ActivityIntensity.MODERATE
        return ActivityIntensity.LOW

    if duration_sec > 3600:
        return ActivityIntensity.HIGH
    if duration_sec > 1800:
        return ActivityIntensity.MODERATE
    return ActivityIntensity.LOW
