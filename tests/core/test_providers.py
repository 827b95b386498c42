import datetime as dt
import json

import pytest

from mend.errors import ProviderError
from mend.models.activity import Activity
from mend.models.enums import ActivityIntensity, ActivityType, MetricKind
from mend.models.metrics import MetricSample
from mend.providers import (
    BiometricReading,
    StaticActivityProvider,
    StaticBiometricProvider,
    load_payload,
    merge_activities,
    parse_payload,
)

NOW = dt.datetime(2025, 3, 10, 8, 0, tzinfo=dt.UTC)


def make_activity(activity_id: str, *, days_ago: float, title: str | None = None) -> Activity:
    return Activity(
        id=activity_id,
        type=ActivityType.RUN,
        start_time=NOW - dt.timedelta(days=days_ago),
        duration_sec=1800,
        title=title,
    )


def test_merge_activities_drops_duplicate_ids_newest_first():
    first = [make_activity("a", days_ago=2, title="original"), make_activity("b", days_ago=1)]
    second = [make_activity("a", days_ago=2, title="duplicate"), make_activity("c", days_ago=0.5)]

    merged = merge_activities(first, second)

    assert [a.id for a in merged] == ["c", "b", "a"]
    assert merged[-1].title == "original"


def test_static_activity_provider_filters_window():
    provider = StaticActivityProvider(
        [make_activity("old", days_ago=10), make_activity("recent", days_ago=2), make_activity("future", days_ago=-1)],
        now=NOW,
    )

    assert [a.id for a in provider.fetch(7)] == ["recent"]


def test_static_biometric_provider_trims_to_window():
    samples = [
        MetricSample(date=NOW.date() - dt.timedelta(days=d), value=50 + d, metric_kind=MetricKind.HRV)
        for d in range(1, 15)
    ]
    provider = StaticBiometricProvider({MetricKind.HRV: BiometricReading(current_value=55, samples=samples)}, NOW.date())

    reading = provider.fetch(MetricKind.HRV, 7)

    assert reading.current_value == 55
    assert len(reading.samples) == 6
    assert provider.fetch(MetricKind.HEART_RATE, 7) == BiometricReading()


def test_parse_payload_builds_models():
    loaded = parse_payload(
        {
            "athlete_id": "athlete-7",
            "activities": [
                {"id": "r1", "type": "Run", "start_time": "2025-03-09T07:00:00+00:00", "duration_sec": 3600},
                {"id": "w1", "type": "yoga", "start_time": "2025-03-08T07:00:00", "duration_sec": 1200,
                 "intensity": "high"},
            ],
            "biometrics": {
                "heart_rate": {"current": 58, "samples": [{"date": "2025-03-08", "value": 65}]},
                "hrv": {"samples": [{"date": "2025-03-09T06:30:00", "value": 48}]},
            },
        }
    )

    assert loaded.athlete_id == "athlete-7"
    assert [a.id for a in loaded.activities] == ["r1", "w1"]
    assert loaded.activities[0].type is ActivityType.RUN
    assert loaded.activities[1].type is ActivityType.OTHER
    assert loaded.activities[1].start_time.tzinfo is not None
    assert loaded.biometrics[MetricKind.HEART_RATE].current_value == 58
    assert loaded.biometrics[MetricKind.HRV].samples[0].date == dt.date(2025, 3, 9)


def test_missing_intensity_is_inferred():
    loaded = parse_payload(
        {
            "activities": [
                {"id": "long", "start_time": "2025-03-09T07:00:00Z", "duration_sec": 5400},
                {"id": "hot", "start_time": "2025-03-08T07:00:00Z", "duration_sec": 1200, "active_energy_kcal": 240},
            ]
        }
    )

    intensities = {a.id: a.intensity for a in loaded.activities}
    assert intensities == {"long": ActivityIntensity.HIGH, "hot": ActivityIntensity.HIGH}


def test_sleep_stages_fill_in_sleep_quality():
    loaded = parse_payload({"sleep_stages": {"deep": 7200, "core": 21600}})

    assert loaded.biometrics[MetricKind.SLEEP_QUALITY].current_value == pytest.approx(100)


def test_invalid_activity_is_skipped():
    loaded = parse_payload({"activities": [{"id": "broken", "duration_sec": 60}]})

    assert loaded.activities == []


def test_invalid_sample_is_dropped_without_losing_the_metric():
    loaded = parse_payload(
        {
            "biometrics": {
                "hrv": {"samples": [{"date": "2025-03-08", "value": 55}, {"date": "2025-03-09", "value": "n/a"}]},
                "heart_rate": {"current": 58},
            }
        }
    )

    assert [s.value for s in loaded.biometrics[MetricKind.HRV].samples] == [55]
    assert loaded.biometrics[MetricKind.HEART_RATE].current_value == 58


def test_non_numeric_current_is_dropped():
    loaded = parse_payload({"biometrics": {"hrv": {"current": "high", "samples": [{"date": "2025-03-08", "value": 50}]}}})

    reading = loaded.biometrics[MetricKind.HRV]
    assert reading.current_value is None
    assert len(reading.samples) == 1


def test_unknown_metric_kind_is_dropped():
    loaded = parse_payload({"biometrics": {"spo2": {"current": 97}, "HRV": {"current": 60}}})

    assert set(loaded.biometrics) == {MetricKind.HRV}
    assert loaded.biometrics[MetricKind.HRV].current_value == 60


def test_activity_with_non_numeric_duration_is_skipped():
    loaded = parse_payload(
        {
            "activities": [
                {"id": "a1", "start_time": "2025-03-09T07:00:00Z", "duration_sec": "abc"},
                {"id": "a2", "start_time": "2025-03-09T09:00:00Z", "duration_sec": 1800},
                "not an activity",
            ]
        }
    )

    assert [a.id for a in loaded.activities] == ["a2"]


def test_non_numeric_energy_falls_back_to_duration_inference():
    loaded = parse_payload(
        {
            "activities": [
                {"id": "a1", "start_time": "2025-03-09T07:00:00Z", "duration_sec": 5400, "active_energy_kcal": "lots"},
            ]
        }
    )

    assert loaded.activities[0].intensity is ActivityIntensity.HIGH


def test_invalid_sleep_stages_are_ignored():
    loaded = parse_payload({"sleep_stages": {"deep": -5}, "biometrics": {"hrv": {"current": 60}}})

    assert MetricKind.SLEEP_QUALITY not in loaded.biometrics
    assert loaded.biometrics[MetricKind.HRV].current_value == 60


def test_invalid_envelope_raises_provider_error():
    with pytest.raises(ProviderError):
        parse_payload({"activities": "none", "now": "yesterday"})


def test_load_payload_reads_file(tmp_path):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps({"athlete_id": "a1", "now": "2025-03-10T08:00:00+00:00"}))

    loaded = load_payload(path)

    assert loaded.athlete_id == "a1"
    assert loaded.now == NOW


def test_load_payload_missing_file(tmp_path):
    with pytest.raises(ProviderError):
        load_payload(tmp_path / "missing.json")


def test_load_payload_rejects_non_object(tmp_path):
    path = tmp_path / "payload.json"
    path.write_text("[]")

    with pytest.raises(ProviderError):
        load_payload(path)
