import datetime as dt

import pytest

from mend.metrics.training_load import (
    TrainingLoadCalculator,
    duration_scaling,
    recency_factor,
    work_rest_ratio,
)
from mend.models.activity import Activity
from mend.models.enums import ActivityIntensity, ActivityType, Trend
from mend.models.training import DailyTrainingVolume

TODAY = dt.date(2025, 3, 10)


def make_activity(
    *,
    days_ago: int,
    duration_min: float = 30,
    activity_type: ActivityType = ActivityType.RIDE,
    intensity: ActivityIntensity = ActivityIntensity.MODERATE,
    activity_id: str | None = None,
) -> Activity:
    return Activity(
        id=activity_id or f"a-{days_ago}-{duration_min}",
        type=activity_type,
        start_time=dt.datetime(2025, 3, 10, 7, 0, tzinfo=dt.UTC) - dt.timedelta(days=days_ago),
        duration_sec=duration_min * 60,
        intensity=intensity,
    )


def make_volume(day_offset: int, activity_count: int) -> DailyTrainingVolume:
    return DailyTrainingVolume(
        date=TODAY - dt.timedelta(days=day_offset),
        total_duration_minutes=30.0 * activity_count,
        average_intensity=2.0 if activity_count else 0.0,
        activity_count=activity_count,
        training_load=75 * activity_count,
    )


# ---------------------------------------------------------------------------
# Factors
# ---------------------------------------------------------------------------


def test_duration_scaling_is_piecewise():
    assert duration_scaling(0) == 0
    assert duration_scaling(15) == pytest.approx(0.5)
    assert duration_scaling(30) == pytest.approx(1.0)
    assert duration_scaling(45) == pytest.approx(1.25)
    assert duration_scaling(60) == pytest.approx(1.5)
    assert duration_scaling(180) == pytest.approx(2.5)


def test_duration_scaling_slows_after_each_segment():
    first = duration_scaling(30) - duration_scaling(0)
    second = duration_scaling(60) - duration_scaling(30)
    third = duration_scaling(90) - duration_scaling(60)

    assert first > second > third > 0


def test_recency_factor_decays_and_floors():
    assert recency_factor(0) == 1.0
    assert recency_factor(2) == pytest.approx(0.9)
    assert recency_factor(6) == pytest.approx(0.7)
    assert recency_factor(30) == pytest.approx(0.7)


# ---------------------------------------------------------------------------
# Per-activity and window load
# ---------------------------------------------------------------------------


def test_activity_load_combines_factors():
    calculator = TrainingLoadCalculator()

    # 30 min x 2.5 (moderate) x 1.0 (scaling) x 1.0 (ride) x 1.0 (today)
    assert calculator.activity_load(make_activity(days_ago=0), TODAY) == 75


def test_activity_load_applies_type_factor():
    calculator = TrainingLoadCalculator()
    walk = make_activity(days_ago=0, activity_type=ActivityType.WALK, intensity=ActivityIntensity.LOW)

    assert calculator.activity_load(walk, TODAY) == 15


def test_activity_load_decays_with_recency():
    calculator = TrainingLoadCalculator()

    assert calculator.activity_load(make_activity(days_ago=2), TODAY) == 67
    assert calculator.activity_load(make_activity(days_ago=10), TODAY) == 52


def test_load_sums_activities_in_window():
    calculator = TrainingLoadCalculator()
    activities = [
        make_activity(days_ago=0),
        make_activity(days_ago=2),
        make_activity(days_ago=8),
    ]

    assert calculator.load(activities, 7, today=TODAY) == 75 + 67


def test_load_window_is_inclusive():
    calculator = TrainingLoadCalculator()

    assert calculator.load([make_activity(days_ago=7)], 7, today=TODAY) > 0


def test_future_activities_are_ignored():
    calculator = TrainingLoadCalculator()

    assert calculator.load([make_activity(days_ago=-1)], 7, today=TODAY) == 0


def test_load_with_no_activities_is_zero():
    assert TrainingLoadCalculator().load([], 7, today=TODAY) == 0


# ---------------------------------------------------------------------------
# Daily volumes
# ---------------------------------------------------------------------------


def test_daily_volumes_cover_every_day_oldest_first():
    volumes = TrainingLoadCalculator().daily_volumes([make_activity(days_ago=1)], 7, today=TODAY)

    assert len(volumes) == 7
    assert volumes[0].date == TODAY - dt.timedelta(days=6)
    assert volumes[-1].date == TODAY
    assert [v.activity_count for v in volumes] == [0, 0, 0, 0, 0, 1, 0]
    assert volumes[-1].is_rest_day


def test_daily_volume_intensity_is_duration_weighted():
    activities = [
        make_activity(days_ago=0, duration_min=30, intensity=ActivityIntensity.LOW, activity_id="easy"),
        make_activity(days_ago=0, duration_min=90, intensity=ActivityIntensity.HIGH, activity_id="hard"),
    ]

    volume = TrainingLoadCalculator().daily_volumes(activities, 1, today=TODAY)[0]

    assert volume.activity_count == 2
    assert volume.total_duration_minutes == pytest.approx(120)
    assert volume.average_intensity == pytest.approx(2.5)
    assert volume.intensity_level is ActivityIntensity.HIGH


# ---------------------------------------------------------------------------
# Work:rest
# ---------------------------------------------------------------------------


def test_all_rest_week_reports_zero_to_seven():
    calculator = TrainingLoadCalculator()
    volumes = calculator.daily_volumes([], 7, today=TODAY)

    ratio = work_rest_ratio(volumes)

    assert ratio.label == "0:7"
    assert str(calculator.work_rest_ratio([], today=TODAY)) == "0:7"


def test_work_rest_ratio_reduces_to_lowest_terms():
    volumes = [make_volume(3, 1), make_volume(2, 0), make_volume(1, 1), make_volume(0, 0)]

    ratio = work_rest_ratio(volumes)

    assert (ratio.active_days, ratio.rest_days) == (2, 2)
    assert ratio.label == "1:1"


def test_work_rest_ratio_for_typical_week():
    activities = [make_activity(days_ago=d) for d in (0, 2, 4, 6)]

    ratio = TrainingLoadCalculator().work_rest_ratio(activities, today=TODAY)

    assert ratio.label == "4:3"


def test_all_active_week_is_not_reduced():
    activities = [make_activity(days_ago=d) for d in range(7)]

    assert TrainingLoadCalculator().work_rest_ratio(activities, today=TODAY).label == "7:0"


# ---------------------------------------------------------------------------
# Training load score
# ---------------------------------------------------------------------------


def test_training_load_score_without_activities_is_stable():
    score = TrainingLoadCalculator().training_load_score([], today=TODAY)

    assert score.score == 0
    assert score.trend is Trend.STABLE
    assert "similar" in score.description


def test_training_load_score_flags_sharp_increase():
    activities = [make_activity(days_ago=d, duration_min=60) for d in range(3)]

    score = TrainingLoadCalculator().training_load_score(activities, today=TODAY)

    assert score.delta_from_baseline > 0
    assert score.is_favorable is False
    assert score.trend is Trend.UNFAVORABLE
    assert "significant increase" in score.description
    assert 0 <= score.score <= 100
