"""Baseline, delta, and per-metric scoring for daily biometrics.

Each metric kind has a polarity (whether lower or higher values indicate
better recovery) and a stability threshold. Deltas inside the threshold are
reported as stable rather than as an improvement or a decline, but the raw
value still feeds the score.

HRV is scored relative to the athlete's own trailing baseline since absolute
HRV varies widely between individuals.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from mend.errors import NoMetricDataError
from mend.metrics.descriptions import describe_metric
from mend.models.enums import MetricKind, Trend
from mend.models.metrics import MetricSample, MetricScore


class Polarity(StrEnum):
    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"


POLARITY: dict[MetricKind, Polarity] = {
    MetricKind.HEART_RATE: Polarity.LOWER_IS_BETTER,
    MetricKind.HRV: Polarity.HIGHER_IS_BETTER,
    MetricKind.SLEEP_DURATION: Polarity.HIGHER_IS_BETTER,
    MetricKind.SLEEP_QUALITY: Polarity.HIGHER_IS_BETTER,
}

# bpm, ms, hours, points
STABILITY_THRESHOLDS: dict[MetricKind, float] = {
    MetricKind.HEART_RATE: 2.0,
    MetricKind.HRV: 5.0,
    MetricKind.SLEEP_DURATION: 0.3,
    MetricKind.SLEEP_QUALITY: 5.0,
}

TITLES: dict[MetricKind, str] = {
    MetricKind.HEART_RATE: "Resting Heart Rate",
    MetricKind.HRV: "Heart Rate Variability",
    MetricKind.SLEEP_DURATION: "Sleep Duration",
    MetricKind.SLEEP_QUALITY: "Sleep Quality",
}

OPTIMAL_SLEEP_HOURS = 8.0

HRV_NEUTRAL_SCORE = 70
HRV_MIN_SCORE = 30


@dataclass(frozen=True)
class DeltaResult:
    """Comparison of a current value against the trailing baseline."""

    baseline: float
    delta: float
    is_favorable: bool
    is_stable: bool
    has_baseline: bool

    @property
    def trend(self) -> Trend:
        if self.is_stable:
            return Trend.STABLE
        return Trend.FAVORABLE if self.is_favorable else Trend.UNFAVORABLE


def sanitize_series(samples: Iterable[MetricSample], kind: MetricKind | None = None) -> list[MetricSample]:
    """Order samples by date and keep at most one per calendar day.

    When a day has several samples the last one supplied wins. Samples of a
    different metric kind are dropped.
    """
    by_day: dict[dt.date, MetricSample] = {}
    for sample in samples:
        if kind is not None and sample.metric_kind != kind:
            logger.warning(f"Dropping {sample.metric_kind} sample from {kind} series")
            continue
        by_day[sample.date] = sample
    return [by_day[day] for day in sorted(by_day)]


class MetricDeltaAnalyzer:
    """Scores one metric kind against its trailing baseline."""

    def __init__(self, kind: MetricKind):
        self.kind = kind
        self.polarity = POLARITY[kind]
        self.stability_threshold = STABILITY_THRESHOLDS[kind]

    def score(
        self,
        series: Iterable[MetricSample],
        current_value: float | None,
        *,
        today: dt.date | None = None,
    ) -> DeltaResult:
        """Compute baseline, delta, and polarity for ``current_value``.

        Baseline is the mean of all samples excluding ``today``. Without prior
        samples the baseline equals the current value and the delta is 0.

        Raises:
            NoMetricDataError: series is empty and there is no current value
        """
        samples = sanitize_series(series, self.kind)
        today = today or dt.date.today()

        if current_value is None:
            if not samples:
                raise NoMetricDataError(f"No {self.kind} data available")
            raise NoMetricDataError(f"No current {self.kind} value; use a fallback sample")

        prior = [s.value for s in samples if s.date != today]
        if not prior:
            return DeltaResult(
                baseline=current_value,
                delta=0.0,
                is_favorable=False,
                is_stable=True,
                has_baseline=False,
            )

        baseline = sum(prior) / len(prior)
        delta = current_value - baseline

        if self.polarity is Polarity.LOWER_IS_BETTER:
            is_favorable = delta < 0
        else:
            is_favorable = delta > 0

        return DeltaResult(
            baseline=baseline,
            delta=delta,
            is_favorable=is_favorable,
            is_stable=abs(delta) < self.stability_threshold,
            has_baseline=True,
        )

    def value_score(self, current_value: float, baseline: float) -> int:
        """Map the current reading onto the 0-100 metric score."""
        if self.kind is MetricKind.HRV:
            return hrv_score(current_value, baseline)
        if self.kind is MetricKind.SLEEP_DURATION:
            return _clamp_score(current_value * 100 / OPTIMAL_SLEEP_HOURS)
        # Heart rate keeps raw bpm here; the aggregator inverts it.
        return _clamp_score(current_value)

    def build(
        self,
        series: Iterable[MetricSample],
        current_value: float | None,
        *,
        today: dt.date | None = None,
    ) -> MetricScore:
        """Build the full MetricScore for today.

        When no current value is available the most recent sample stands in
        for it and is excluded from its own baseline.

        Raises:
            NoMetricDataError: there is nothing at all to score
        """
        samples = sanitize_series(series, self.kind)
        today = today or dt.date.today()
        reference_day = today

        if current_value is None:
            if not samples:
                raise NoMetricDataError(f"No {self.kind} data available")
            fallback = samples[-1]
            current_value = fallback.value
            reference_day = fallback.date
            logger.debug(f"Using {self.kind} sample from {fallback.date} as current value")

        baseline_samples = [s for s in samples if s.date != today and s.date != reference_day]
        result = self.score(baseline_samples, current_value, today=today)

        return MetricScore(
            kind=self.kind,
            score=self.value_score(current_value, result.baseline),
            title=TITLES[self.kind],
            description=describe_metric(
                self.kind,
                current_value,
                result.delta,
                is_stable=result.is_stable,
            ),
            series=samples,
            baseline=result.baseline,
            delta_from_baseline=result.delta,
            is_favorable=result.is_favorable,
            trend=result.trend,
        )


def hrv_score(current_value: float, baseline: float) -> int:
    """Rescale HRV relative to the trailing baseline.

    At or above baseline the score lies in [70, 100]; below baseline it lies
    in [30, 70) and falls with the shortfall ratio.
    """
    ratio = current_value / baseline if baseline > 0 else 1.0

    if ratio >= 1.0:
        bonus = int(30 * min(1.0, (ratio - 1.0) * 2))
        return min(100, HRV_NEUTRAL_SCORE + bonus)

    penalty = math.ceil(40 * min(1.0, (1.0 - ratio) * 1.5))
    return max(HRV_MIN_SCORE, HRV_NEUTRAL_SCORE - penalty)


def _clamp_score(value: float) -> int:
    return max(0, min(100, int(value)))


def build_metric_score(
    kind: MetricKind,
    series: Iterable[MetricSample],
    current_value: float | None,
    *,
    today: dt.date | None = None,
) -> MetricScore | None:
    """Score one metric, returning None when the metric has no data."""
    try:
        return MetricDeltaAnalyzer(kind).build(series, current_value, today=today)
    except NoMetricDataError as e:
        logger.info(f"Metric omitted from aggregation: {e}")
        return None
