import datetime as dt

from mend.models.enums import MetricKind
from mend.models.metrics import MetricScore
from mend.recovery.aggregator import RecoveryAggregator, apply_cooldown, weighted_contribution

TODAY = dt.date(2025, 3, 10)


def make_score(kind: MetricKind, score: int) -> MetricScore:
    return MetricScore(kind=kind, score=score, title=kind.value, description="")


def test_missing_metrics_redistribute_weight():
    scores = {
        MetricKind.HRV: make_score(MetricKind.HRV, 80),
        MetricKind.SLEEP_DURATION: make_score(MetricKind.SLEEP_DURATION, 70),
    }

    result = RecoveryAggregator().aggregate(scores, 100, today=TODAY)

    assert result.overall_score == 76
    assert result.base_score == 76
    assert not result.is_low_confidence
    assert set(result.metrics) == {MetricKind.HRV, MetricKind.SLEEP_DURATION}


def test_none_scores_count_as_missing():
    scores = {
        MetricKind.HEART_RATE: None,
        MetricKind.HRV: make_score(MetricKind.HRV, 80),
        MetricKind.SLEEP_DURATION: make_score(MetricKind.SLEEP_DURATION, 70),
        MetricKind.SLEEP_QUALITY: None,
    }

    assert RecoveryAggregator().aggregate(scores, today=TODAY).overall_score == 76


def test_all_metrics_weighted_with_inverted_heart_rate():
    scores = {
        MetricKind.HEART_RATE: make_score(MetricKind.HEART_RATE, 55),
        MetricKind.HRV: make_score(MetricKind.HRV, 80),
        MetricKind.SLEEP_DURATION: make_score(MetricKind.SLEEP_DURATION, 70),
        MetricKind.SLEEP_QUALITY: make_score(MetricKind.SLEEP_QUALITY, 90),
    }

    result = RecoveryAggregator().aggregate(scores, today=TODAY)

    # (45*3 + 80*3 + 70*2 + 90*1) // 9
    assert result.overall_score == 67


def test_heart_rate_inversion_has_floor():
    assert weighted_contribution(MetricKind.HEART_RATE, 30) == 70
    assert weighted_contribution(MetricKind.HEART_RATE, 75) == 40
    assert weighted_contribution(MetricKind.HRV, 75) == 75


def test_no_metrics_is_low_confidence_zero():
    result = RecoveryAggregator().aggregate({}, 100, today=TODAY)

    assert result.overall_score == 0
    assert result.is_low_confidence


def test_cooldown_attenuates_after_aggregation():
    scores = {
        MetricKind.HRV: make_score(MetricKind.HRV, 80),
        MetricKind.SLEEP_DURATION: make_score(MetricKind.SLEEP_DURATION, 70),
    }

    result = RecoveryAggregator().aggregate(scores, 63, today=TODAY)

    assert result.base_score == 76
    assert result.overall_score == 47
    assert result.cooldown_adjustment == 63


def test_apply_cooldown():
    assert apply_cooldown(80, 100) == 80
    assert apply_cooldown(80, 50) == 40
    assert apply_cooldown(80, 0) == 0


def test_training_load_score_is_carried_through():
    load = MetricScore(score=40, title="Training Load", description="steady")

    result = RecoveryAggregator().aggregate({}, training_load_score=load, today=TODAY)

    assert result.training_load_score == load
    assert result.date == TODAY
