from enum import StrEnum


class MetricKind(StrEnum):
    """Biometric series tracked for recovery scoring."""

    HEART_RATE = "heart_rate"
    HRV = "hrv"
    SLEEP_DURATION = "sleep_duration"
    SLEEP_QUALITY = "sleep_quality"


class ActivityType(StrEnum):
    RUN = "run"
    RIDE = "ride"
    SWIM = "swim"
    WALK = "walk"
    WORKOUT = "workout"
    OTHER = "other"


class ActivityIntensity(StrEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class ActivitySource(StrEnum):
    STRAVA = "strava"
    MANUAL = "manual"
    HEALTH_KIT = "health_kit"
    IMPORT = "import"


class Trend(StrEnum):
    """Direction of a metric relative to its baseline, after polarity."""

    FAVORABLE = "favorable"
    UNFAVORABLE = "unfavorable"
    STABLE = "stable"


class RecommendationType(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEEDS_ATTENTION = "needs_attention"
