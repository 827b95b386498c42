from mend.metrics.delta_analyzer import MetricDeltaAnalyzer, build_metric_score
from mend.metrics.training_load import TrainingLoadCalculator

__all__ = ["MetricDeltaAnalyzer", "TrainingLoadCalculator", "build_metric_score"]
