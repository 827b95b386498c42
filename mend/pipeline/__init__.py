from mend.pipeline.recovery_engine import RecoveryEngine
from mend.pipeline.scheduler import PeriodicRefresher

__all__ = ["PeriodicRefresher", "RecoveryEngine"]
