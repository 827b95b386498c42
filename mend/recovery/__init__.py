from mend.recovery.aggregator import RecoveryAggregator
from mend.recovery.cooldown import CooldownStateMachine
from mend.recovery.learner import HistoricalRecoveryLearner

__all__ = ["CooldownStateMachine", "HistoricalRecoveryLearner", "RecoveryAggregator"]
