"""Combine per-metric scores into the daily recovery score.

Missing metrics are excluded from both the weighted sum and the total
weight, so the remaining metrics carry the score. The cooldown adjustment
is applied afterwards as a separate attenuation step.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping

from loguru import logger

from mend.models.enums import MetricKind
from mend.models.metrics import MetricScore
from mend.models.recovery import RecoveryScore

WEIGHTS: dict[MetricKind, int] = {
    MetricKind.HEART_RATE: 3,
    MetricKind.HRV: 3,
    MetricKind.SLEEP_DURATION: 2,
    MetricKind.SLEEP_QUALITY: 1,
}

# Floor for the inverted heart-rate contribution
HEART_RATE_INVERSION_FLOOR = 40


def weighted_contribution(kind: MetricKind, score: int) -> int:
    """Score that ``kind`` contributes before weighting."""
    if kind is MetricKind.HEART_RATE:
        return max(HEART_RATE_INVERSION_FLOOR, 100 - score)
    return score


def apply_cooldown(score: int, cooldown_adjustment: int) -> int:
    if cooldown_adjustment >= 100:
        return score
    return score * max(0, cooldown_adjustment) // 100


class RecoveryAggregator:
    def aggregate(
        self,
        metric_scores: Mapping[MetricKind, MetricScore | None],
        cooldown_adjustment: int = 100,
        *,
        training_load_score: MetricScore | None = None,
        today: dt.date | None = None,
    ) -> RecoveryScore:
        """Weighted mean of the available metrics, then cooldown attenuation.

        Args:
            metric_scores: Scores by kind; None values are treated as missing
            cooldown_adjustment: Current cooldown adjustment (0-100)
            training_load_score: Carried through for display only
            today: Date stamped on the result

        Returns:
            RecoveryScore flagged low-confidence when no metric was available
        """
        present = {kind: score for kind, score in metric_scores.items() if score is not None}

        weighted_sum = 0
        total_weight = 0
        for kind, metric in present.items():
            weight = WEIGHTS.get(kind, 0)
            weighted_sum += weighted_contribution(kind, metric.score) * weight
            total_weight += weight

        if total_weight == 0:
            logger.warning("[ENGINE] No metrics available for aggregation, reporting low confidence")
            base_score = 0
        else:
            base_score = weighted_sum // total_weight

        overall = apply_cooldown(base_score, cooldown_adjustment)
        logger.debug(
            f"[ENGINE] Aggregated {len(present)} metrics: base={base_score} "
            f"cooldown={cooldown_adjustment} overall={overall}"
        )

        return RecoveryScore(
            date=today or dt.date.today(),
            overall_score=overall,
            base_score=base_score,
            cooldown_adjustment=max(0, min(100, cooldown_adjustment)),
            metrics=present,
            training_load_score=training_load_score,
            is_low_confidence=total_weight == 0,
        )
