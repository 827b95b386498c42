"""User-facing text and session suggestions derived from recovery scores."""

from __future__ import annotations

import datetime as dt
from collections import Counter
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from mend.models.activity import Activity
from mend.models.enums import ActivityIntensity, ActivityType, MetricKind, RecommendationType
from mend.models.recovery import RecoveryScore

RECENT_SCORES_FOR_TREND = 7

RECOVERY_TIPS_EARLY = [
    "Focus on passive recovery activities like gentle stretching and mobility work",
    "Ensure you get adequate sleep for optimal recovery",
    "Stay hydrated and focus on nutrient-rich foods to aid recovery",
    "Consider compression garments to improve circulation",
]

RECOVERY_TIPS_MIDWAY = [
    "Light activity like walking or gentle yoga can promote active recovery",
    "Consider contrast therapy (alternating hot and cold) to reduce inflammation",
    "Focus on proper nutrition with emphasis on protein intake for tissue repair",
    "Monitor your sleep quality and aim for 7-9 hours",
]

RECOVERY_TIPS_LATE = [
    "You're almost fully recovered - listen to your body if resuming training",
    "Start with lower intensity before returning to your regular training load",
    "Continue proper nutrition and hydration practices",
    "Pay attention to any lingering soreness or fatigue",
]


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    type: RecommendationType


def score_description(score: int) -> str:
    if score < 40:
        return "Highly stressed. Focus on recovery today."
    if score < 60:
        return "Somewhat fatigued. Consider light activity."
    if score < 80:
        return "Reasonably recovered. Moderate training is fine."
    return "Well recovered. Ready for intense training."


def notification_body(score: RecoveryScore) -> str:
    """Body text for a daily recovery notification."""
    return f"Your recovery score is {score.overall_score}. {score_description(score.overall_score)}"


def recovery_tips(percentage: int) -> list[str]:
    """Recovery tips for the current cooldown progress (0-100)."""
    if percentage < 30:
        return list(RECOVERY_TIPS_EARLY)
    if percentage < 70:
        return list(RECOVERY_TIPS_MIDWAY)
    return list(RECOVERY_TIPS_LATE)


def recovery_recommendations(
    score: RecoveryScore,
    previous_scores: Sequence[RecoveryScore] = (),
) -> list[Recommendation]:
    """Recommendations for today given earlier scores, newest first.

    Comparisons against history are skipped when there is no history to
    compare with.
    """
    recommendations: list[Recommendation] = []

    sleep = score.metrics.get(MetricKind.SLEEP_DURATION)
    if sleep is not None:
        if sleep.score < 60:
            recommendations.append(
                Recommendation(
                    title="Prioritize Sleep",
                    description="Your sleep score is lower than usual. Try to get to bed earlier tonight.",
                    type=RecommendationType.NEEDS_ATTENTION,
                )
            )
        elif sleep.score > 80:
            recommendations.append(
                Recommendation(
                    title="Great Sleep!",
                    description="You're maintaining healthy sleep patterns. Keep it up!",
                    type=RecommendationType.POSITIVE,
                )
            )

    hrv = score.metrics.get(MetricKind.HRV)
    previous_hrv = [s.metrics[MetricKind.HRV].score for s in previous_scores if MetricKind.HRV in s.metrics]
    if hrv is not None and previous_hrv and hrv.score < sum(previous_hrv) / len(previous_hrv):
        recommendations.append(
            Recommendation(
                title="HRV Trending Down",
                description="Consider taking it easier today to help your body recover.",
                type=RecommendationType.NEEDS_ATTENTION,
            )
        )

    recent = list(previous_scores)[:RECENT_SCORES_FOR_TREND]
    if recent:
        average = sum(s.overall_score for s in recent) // len(recent)
        if score.overall_score > average + 10:
            recommendations.append(
                Recommendation(
                    title="Recovery Improving",
                    description="Your recovery is trending upward. Great job balancing activity and rest!",
                    type=RecommendationType.POSITIVE,
                )
            )

    return recommendations


# ---------------------------------------------------------------------------
# Activity suggestions
# ---------------------------------------------------------------------------

PERSONALIZATION_DAYS = 14
MAX_ACTIVITY_RECOMMENDATIONS = 4
REFERENCE_SESSION_MINUTES = 45.0
MIN_DURATION_SCALE = 0.8
MAX_DURATION_SCALE = 1.5


class ActivityRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    activity_type: ActivityType
    intensity: ActivityIntensity
    duration_minutes: int
    description: str


def _suggest(
    title: str,
    activity_type: ActivityType,
    intensity: ActivityIntensity,
    minutes: int,
    description: str,
) -> ActivityRecommendation:
    return ActivityRecommendation(
        title=title,
        activity_type=activity_type,
        intensity=intensity,
        duration_minutes=minutes,
        description=description,
    )


LIGHT_WALK = _suggest(
    "Light Walk",
    ActivityType.WALK,
    ActivityIntensity.LOW,
    20,
    "A gentle stroll to promote recovery without further stress.",
)

AFTER_INTENSE_SESSION = [
    _suggest(
        "Recovery Walk",
        ActivityType.WALK,
        ActivityIntensity.LOW,
        25,
        "A gentle walk to help your body recover from today's intense activity.",
    ),
    _suggest(
        "Light Stretching",
        ActivityType.WORKOUT,
        ActivityIntensity.LOW,
        15,
        "Gentle stretching to improve flexibility and aid recovery.",
    ),
    _suggest(
        "Easy Recovery Ride",
        ActivityType.RIDE,
        ActivityIntensity.LOW,
        20,
        "Very easy spinning to increase blood flow without adding stress.",
    ),
]

# (upper bound exclusive, sessions); the last band has no upper bound
SCORE_BANDED_SESSIONS: list[tuple[int | None, list[ActivityRecommendation]]] = [
    (
        40,
        [
            _suggest("Gentle Yoga", ActivityType.WORKOUT, ActivityIntensity.LOW, 15,
                     "Easy yoga poses to improve circulation and relaxation."),
            _suggest("Recovery Ride", ActivityType.RIDE, ActivityIntensity.LOW, 25,
                     "Very easy cycling to promote blood flow and recovery."),
        ],
    ),
    (
        60,
        [
            _suggest("Recovery Ride", ActivityType.RIDE, ActivityIntensity.LOW, 30,
                     "Easy cycling to promote blood flow and recovery."),
            _suggest("Easy Run", ActivityType.RUN, ActivityIntensity.LOW, 20,
                     "A very light jog to maintain fitness without taxing recovery."),
        ],
    ),
    (
        80,
        [
            _suggest("Moderate Run", ActivityType.RUN, ActivityIntensity.MODERATE, 35,
                     "A controlled pace run at conversation level."),
            _suggest("Moderate Ride", ActivityType.RIDE, ActivityIntensity.MODERATE, 45,
                     "A ride with mixed intensity for fitness maintenance."),
        ],
    ),
    (
        None,
        [
            _suggest("Interval Session", ActivityType.RUN, ActivityIntensity.HIGH, 45,
                     "High-intensity intervals to challenge your fitness."),
            _suggest("Long Run", ActivityType.RUN, ActivityIntensity.HIGH, 60,
                     "Extended running session to build endurance."),
            _suggest("Challenging Ride", ActivityType.RIDE, ActivityIntensity.HIGH, 75,
                     "A challenging ride with hills and higher intensities."),
        ],
    ),
]

# Per-type personalized sessions, highest score band first:
# (base minutes, title, intensity, description)
PERSONALIZED_SESSIONS: dict[ActivityType, list[tuple[int, str, ActivityIntensity, str]]] = {
    ActivityType.RUN: [
        (50, "Personalized Speed Run", ActivityIntensity.HIGH,
         "A running session with speed work tailored to your recovery level."),
        (35, "Personalized Run", ActivityIntensity.MODERATE,
         "A moderate running session tailored to your current recovery."),
        (25, "Easy Recovery Run", ActivityIntensity.LOW,
         "A very easy run to maintain fitness while prioritizing recovery."),
    ],
    ActivityType.RIDE: [
        (60, "Personalized Power Ride", ActivityIntensity.HIGH,
         "A challenging ride with intervals tailored to your high recovery level."),
        (45, "Personalized Ride", ActivityIntensity.MODERATE,
         "A cycling session with mixed terrain based on your current recovery."),
        (30, "Easy Spin Ride", ActivityIntensity.LOW,
         "A gentle ride focusing on high cadence and low power to aid recovery."),
    ],
}


def score_activity_recommendations(overall_score: int) -> list[ActivityRecommendation]:
    """Sessions suited to a recovery score, always starting with a light walk."""
    for upper, sessions in SCORE_BANDED_SESSIONS:
        if upper is None or overall_score < upper:
            return [LIGHT_WALK, *sessions]
    return [LIGHT_WALK]


def duration_scale(activities: Sequence[Activity]) -> float:
    """Scale for suggested durations from the athlete's average session length."""
    if not activities:
        return 1.0
    average_minutes = sum(a.duration_minutes for a in activities) / len(activities)
    return max(MIN_DURATION_SCALE, min(MAX_DURATION_SCALE, average_minutes / REFERENCE_SESSION_MINUTES))


def _personalized_session(
    activity_type: ActivityType,
    overall_score: int,
    scale: float,
) -> ActivityRecommendation | None:
    sessions = PERSONALIZED_SESSIONS.get(activity_type)
    if sessions is not None:
        band = 0 if overall_score > 80 else 1 if overall_score > 60 else 2
        minutes, title, intensity, description = sessions[band]
        return _suggest(title, activity_type, intensity, int(minutes * scale), description)

    if overall_score <= 60:
        return None
    if activity_type is ActivityType.SWIM:
        return _suggest(
            "Personalized Swim",
            ActivityType.SWIM,
            ActivityIntensity.HIGH if overall_score > 80 else ActivityIntensity.MODERATE,
            45 if overall_score > 80 else 30,
            "A swimming workout customized for your recovery status.",
        )
    return _suggest(
        "Custom Workout",
        ActivityType.WORKOUT,
        ActivityIntensity.MODERATE if overall_score > 80 else ActivityIntensity.LOW,
        40,
        "A workout based on your fitness preferences and recovery status.",
    )


def personalized_activity_recommendations(
    score: RecoveryScore,
    activities: Sequence[Activity],
    today: dt.date,
) -> list[ActivityRecommendation]:
    """Suggest up to four sessions for today.

    A high-intensity activity already done today limits the list to easy
    recovery sessions. Otherwise the athlete's most frequent activity type
    over the last two weeks adds a session sized from their average
    duration, ahead of the score-banded defaults.
    """
    if any(a.day == today and a.intensity is ActivityIntensity.HIGH for a in activities):
        return list(AFTER_INTENSE_SESSION)

    overall = score.overall_score
    banded = score_activity_recommendations(overall)
    recommendations = banded[:1]

    cutoff = today - dt.timedelta(days=PERSONALIZATION_DAYS)
    recent = [a for a in activities if cutoff <= a.day <= today]
    if recent:
        # Ties go to the type seen first
        favorite, _ = Counter(a.type for a in recent).most_common(1)[0]
        personalized = _personalized_session(favorite, overall, duration_scale(recent))
        if personalized is not None:
            recommendations.append(personalized)
    recommendations.extend(banded[1:])

    return recommendations[:MAX_ACTIVITY_RECOMMENDATIONS]
