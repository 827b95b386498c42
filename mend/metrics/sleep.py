"""Sleep quality scoring from raw sleep stage durations."""

from __future__ import annotations

from mend.models.metrics import SleepStages

OPTIMAL_SLEEP_SECONDS = 8 * 3600
TARGET_RESTORATIVE_SHARE = 0.25

# REM counts slightly less than deep sleep towards restorative time
REM_RESTORATIVE_WEIGHT = 0.8


def sleep_quality_score(stages: SleepStages) -> float | None:
    """Compute a 0-100 sleep quality score for one night.

    Weighted blend of total duration (60%), deep/REM share (30%), and
    continuity (10%). Returns None when no sleep was recorded.
    """
    total = stages.total_asleep
    if total <= 0:
        return None

    duration_score = min(100.0, total / OPTIMAL_SLEEP_SECONDS * 100)

    restorative = stages.deep + stages.rem * REM_RESTORATIVE_WEIGHT
    restorative_share = restorative / max(total, 1.0)
    restorative_score = min(100.0, restorative_share / TARGET_RESTORATIVE_SHARE * 100)

    awake_ratio = stages.awake / max(total + stages.awake, 1.0)
    continuity_score = 100.0 - min(100.0, awake_ratio * 200)

    return duration_score * 0.6 + restorative_score * 0.3 + continuity_score * 0.1


def describe_sleep_stages(stages: SleepStages) -> str:
    shares = stages.percentages()
    base = (
        f"Sleep stages breakdown: {shares['deep']:.0f}% deep sleep, "
        f"{shares['rem']:.0f}% REM sleep, {shares['core']:.0f}% light sleep"
    )

    deep_rem = shares["deep"] + shares["rem"]
    if deep_rem >= 40:
        return base + (
            ". Your deep and REM sleep percentages are excellent, which is optimal for physical "
            "recovery and cognitive function."
        )
    if deep_rem >= 30:
        return base + (
            ". Your deep and REM sleep percentages are very good, supporting efficient recovery "
            "and mental performance."
        )
    if deep_rem >= 20:
        return base + ". Your deep and REM sleep percentages are adequate for basic recovery functions."
    return base + (
        ". Your deep and REM sleep percentages are lower than optimal, which may affect recovery "
        "and cognitive performance."
    )
