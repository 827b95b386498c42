import pytest

from mend.metrics.sleep import describe_sleep_stages, sleep_quality_score
from mend.models.metrics import SleepStages

HOUR = 3600


def test_ideal_night_scores_full_marks():
    stages = SleepStages(deep=2 * HOUR, core=6 * HOUR)

    assert sleep_quality_score(stages) == pytest.approx(100)


def test_no_sleep_has_no_score():
    assert sleep_quality_score(SleepStages(awake=HOUR)) is None


def test_rem_counts_less_than_deep_sleep():
    deep_night = SleepStages(deep=HOUR, core=7 * HOUR)
    rem_night = SleepStages(rem=HOUR, core=7 * HOUR)

    assert sleep_quality_score(deep_night) > sleep_quality_score(rem_night)


def test_awake_time_lowers_continuity():
    restful = SleepStages(deep=2 * HOUR, core=6 * HOUR)
    restless = SleepStages(deep=2 * HOUR, core=6 * HOUR, awake=HOUR)

    # continuity drops from 100 to 100 - (1/9 * 200)
    expected_drop = (1 / 9 * 200) * 0.1
    assert sleep_quality_score(restful) - sleep_quality_score(restless) == pytest.approx(expected_drop)


def test_short_sleep_is_penalized_by_duration():
    stages = SleepStages(deep=1 * HOUR, core=3 * HOUR)

    # 50 duration, 100 restorative, 100 continuity
    assert sleep_quality_score(stages) == pytest.approx(50 * 0.6 + 30 + 10)


def test_stage_description_bands():
    excellent = describe_sleep_stages(SleepStages(deep=2 * HOUR, rem=2 * HOUR, core=4 * HOUR))
    low = describe_sleep_stages(SleepStages(deep=HOUR / 2, core=7.5 * HOUR))

    assert "excellent" in excellent
    assert "25% deep sleep" in excellent
    assert "lower than optimal" in low
