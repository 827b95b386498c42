from mend.models.activity import Activity, infer_intensity
from mend.models.enums import (
    ActivityIntensity,
    ActivitySource,
    ActivityType,
    MetricKind,
    RecommendationType,
    Trend,
)
from mend.models.metrics import MetricSample, MetricScore, SleepStages
from mend.models.recovery import CooldownState, CooldownStatus, RecoveryScore, RecoveryTimeTable
from mend.models.training import DailyTrainingVolume, TrainingSummary, WorkRestRatio

__all__ = [
    "Activity",
    "ActivityIntensity",
    "ActivitySource",
    "ActivityType",
    "CooldownState",
    "CooldownStatus",
    "DailyTrainingVolume",
    "MetricKind",
    "MetricSample",
    "MetricScore",
    "RecommendationType",
    "RecoveryScore",
    "RecoveryTimeTable",
    "SleepStages",
    "TrainingSummary",
    "Trend",
    "WorkRestRatio",
    "infer_intensity",
]
