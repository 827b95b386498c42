"""Input collaborators: biometric and activity sources.

Providers hand the engine plain model objects. A provider that cannot
reach its source raises ProviderError; the engine treats that as missing
input for the refresh rather than a failure.
"""

from __future__ import annotations

import datetime as dt
import json
import math
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mend.errors import ProviderError
from mend.metrics.sleep import sleep_quality_score
from mend.models.activity import Activity, infer_intensity
from mend.models.enums import MetricKind
from mend.models.metrics import MetricSample, SleepStages


class BiometricReading(BaseModel):
    """Current value (optional) plus the trailing series for one metric."""

    model_config = ConfigDict(frozen=True)

    current_value: float | None = None
    samples: list[MetricSample] = Field(default_factory=list)


class BiometricProvider(Protocol):
    def fetch(self, kind: MetricKind, window_days: int) -> BiometricReading: ...


class ActivityProvider(Protocol):
    def fetch(self, days: int) -> list[Activity]: ...


class StaticBiometricProvider:
    """Serves fixed readings, trimmed to the requested window.

    The window is counted back from ``today`` when given, otherwise from
    the newest sample of each metric.
    """

    def __init__(self, readings: Mapping[MetricKind, BiometricReading], today: dt.date | None = None):
        self._readings = dict(readings)
        self._today = today

    def fetch(self, kind: MetricKind, window_days: int) -> BiometricReading:
        reading = self._readings.get(kind)
        if reading is None:
            return BiometricReading()

        reference = self._today
        if reference is None and reading.samples:
            reference = max(s.date for s in reading.samples)
        if reference is None:
            return reading

        cutoff = reference - dt.timedelta(days=window_days)
        samples = [s for s in reading.samples if s.date > cutoff]
        return BiometricReading(current_value=reading.current_value, samples=samples)


class StaticActivityProvider:
    """Serves a fixed activity list, newest first."""

    def __init__(self, activities: Iterable[Activity], now: dt.datetime | None = None):
        self._activities = merge_activities(activities)
        if now is not None and now.tzinfo is None:
            now = now.replace(tzinfo=dt.UTC)
        self._now = now

    def fetch(self, days: int) -> list[Activity]:
        now = self._now or dt.datetime.now(dt.UTC)
        cutoff = now - dt.timedelta(days=days)
        return [a for a in self._activities if cutoff <= a.start_time <= now]


def merge_activities(*sources: Iterable[Activity]) -> list[Activity]:
    """Combine activity lists, keeping the first occurrence of each id.

    Result is ordered newest first.
    """
    seen: dict[str, Activity] = {}
    duplicates = 0
    for source in sources:
        for activity in source:
            if activity.id in seen:
                duplicates += 1
                continue
            seen[activity.id] = activity
    if duplicates:
        logger.debug(f"Dropped {duplicates} duplicate activities while merging")
    return sorted(seen.values(), key=lambda a: a.start_time, reverse=True)


# ---------------------------------------------------------------------------
# JSON payloads
# ---------------------------------------------------------------------------


class SampleEntry(BaseModel):
    date: dt.date
    value: float

    @field_validator("date", mode="before")
    @classmethod
    def truncate_datetime(cls, value: Any) -> Any:
        if isinstance(value, str) and "T" in value:
            return dt.datetime.fromisoformat(value).date()
        if isinstance(value, dt.datetime):
            return value.date()
        return value


class Payload(BaseModel):
    """Document read by the CLI.

    Only the envelope is validated here. Activities, metric entries, and
    samples are validated one at a time by ``parse_payload`` so a single
    bad record is dropped instead of rejecting the document.
    """

    athlete_id: str = "default"
    now: dt.datetime | None = None
    activities: list[Any] = Field(default_factory=list)
    biometrics: dict[str, Any] = Field(default_factory=dict)
    sleep_stages: Any = None


class LoadedPayload(BaseModel):
    athlete_id: str
    now: dt.datetime | None
    activities: list[Activity]
    biometrics: dict[MetricKind, BiometricReading]


def parse_payload(data: Mapping[str, Any]) -> LoadedPayload:
    """Validate a decoded payload and convert it into model objects.

    Activities missing an intensity get one inferred from duration and,
    when present, ``active_energy_kcal``. A ``sleep_stages`` block fills in
    the current sleep quality when no explicit value is given. Malformed
    activities, samples, unknown metric kinds, and non-numeric values are
    logged and skipped.

    Raises:
        ProviderError: the document envelope does not match the payload schema
    """
    try:
        payload = Payload.model_validate(data)
    except ValidationError as e:
        raise ProviderError(f"Invalid payload: {e}") from e

    activities = []
    for raw in payload.activities:
        try:
            activities.append(_parse_activity(raw))
        except (ValidationError, ValueError, TypeError) as e:
            activity_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(f"Skipping invalid activity {activity_id!r}: {e}")

    biometrics: dict[MetricKind, BiometricReading] = {}
    for key, raw in payload.biometrics.items():
        kind = _metric_kind(key)
        if kind is None:
            continue
        if not isinstance(raw, dict):
            logger.warning(f"Dropping {kind} entry: expected an object, got {type(raw).__name__}")
            continue
        biometrics[kind] = _parse_reading(kind, raw)

    quality = _sleep_quality_from_stages(payload.sleep_stages)
    if quality is not None:
        existing = biometrics.get(MetricKind.SLEEP_QUALITY, BiometricReading())
        if existing.current_value is None:
            biometrics[MetricKind.SLEEP_QUALITY] = BiometricReading(current_value=quality, samples=existing.samples)

    return LoadedPayload(
        athlete_id=payload.athlete_id,
        now=payload.now,
        activities=merge_activities(activities),
        biometrics=biometrics,
    )


def _parse_activity(raw: Any) -> Activity:
    if not isinstance(raw, dict):
        raise TypeError(f"expected an object, got {type(raw).__name__}")
    entry = dict(raw)
    energy = _finite_or_none(entry.pop("active_energy_kcal", None), "active_energy_kcal")
    if entry.get("intensity") is None:
        entry["intensity"] = infer_intensity(float(entry.get("duration_sec") or 0), energy)
    return Activity.model_validate(entry)


def _metric_kind(key: str) -> MetricKind | None:
    normalized = key.strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return MetricKind(normalized)
    except ValueError:
        logger.warning(f"Dropping unknown metric kind {key!r}")
        return None


def _parse_reading(kind: MetricKind, raw: dict[str, Any]) -> BiometricReading:
    samples = []
    raw_samples = raw.get("samples") or []
    if not isinstance(raw_samples, list):
        logger.warning(f"Dropping {kind} samples: expected a list")
        raw_samples = []
    for raw_sample in raw_samples:
        try:
            entry = SampleEntry.model_validate(raw_sample)
            samples.append(MetricSample(date=entry.date, value=entry.value, metric_kind=kind))
        except ValidationError as e:
            logger.warning(f"Dropping invalid {kind} sample {raw_sample!r}: {e.error_count()} error(s)")
    current = _finite_or_none(raw.get("current"), f"current {kind}")
    return BiometricReading(current_value=current, samples=samples)


def _finite_or_none(value: Any, label: str) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Dropping non-numeric {label} value {value!r}")
        return None
    if not math.isfinite(number):
        logger.warning(f"Dropping non-finite {label} value")
        return None
    return number


def _sleep_quality_from_stages(raw: Any) -> float | None:
    if raw is None:
        return None
    try:
        stages = SleepStages.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid sleep_stages: {e.error_count()} error(s)")
        return None
    return sleep_quality_score(stages)


def load_payload(path: str | Path) -> LoadedPayload:
    """Read a JSON payload from ``path``.

    Raises:
        ProviderError: the file is missing, unreadable, or malformed
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ProviderError(f"Could not read payload {path}: {e}") from e
    if not isinstance(data, dict):
        raise ProviderError(f"Payload {path} must be a JSON object")
    logger.debug(f"Loaded payload from {path}")
    return parse_payload(data)
