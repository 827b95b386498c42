from __future__ import annotations

import datetime as dt

from loguru import logger

from mend.core.settings import Settings, get_settings
from mend.errors import ProviderError
from mend.metrics.delta_analyzer import build_metric_score
from mend.metrics.training_load import TrainingLoadCalculator
from mend.models.activity import Activity
from mend.models.enums import MetricKind
from mend.models.metrics import MetricScore
from mend.models.recovery import CooldownStatus, RecoveryScore
from mend.models.training import TrainingSummary
from mend.persistence.repository import CooldownRepository, InMemoryCooldownRepository
from mend.pipeline.scheduler import PeriodicRefresher
from mend.providers import ActivityProvider, BiometricProvider
from mend.recovery.aggregator import RecoveryAggregator
from mend.recovery.cooldown import CooldownStateMachine
from mend.recovery.insights import ActivityRecommendation, personalized_activity_recommendations
from mend.recovery.learner import HistoricalRecoveryLearner

# -------------------------------------------------------------------
# Engine
# -------------------------------------------------------------------


class RecoveryEngine:
    """Wires providers, the cooldown state machine, and scoring together.

    One engine per athlete. The cooldown state is reloaded from the
    repository on construction, so a restart continues an active cooldown.
    """

    def __init__(
        self,
        athlete_id: str,
        biometrics: BiometricProvider,
        activities: ActivityProvider,
        repository: CooldownRepository | None = None,
        settings: Settings | None = None,
    ):
        self.athlete_id = athlete_id
        self.biometrics = biometrics
        self.activities = activities
        self.repository = repository or InMemoryCooldownRepository()
        self.settings = settings or get_settings()

        self.learner = HistoricalRecoveryLearner()
        self.load_calculator = TrainingLoadCalculator()
        self.aggregator = RecoveryAggregator()
        self.cooldown = CooldownStateMachine(repository=self.repository, athlete_id=athlete_id)

        self.latest_score: RecoveryScore | None = None

    def refresh(self, now: dt.datetime | None = None) -> RecoveryScore:
        """Recompute the recovery score as of ``now``."""
        now = _resolve_now(now)
        today = now.date()
        logger.info(f"[ENGINE] Refresh started athlete_id={self.athlete_id} now={now.isoformat()}")

        activities = self._fetch_activities(now)
        self._refresh_recovery_table(activities, now)

        latest = self._latest_recent_activity(activities, now)
        if latest is not None:
            self.cooldown.process(latest, now)
        adjustment = self.cooldown.tick(now)

        metric_scores: dict[MetricKind, MetricScore | None] = {
            kind: self._score_metric(kind, today) for kind in MetricKind
        }

        training_load_score = self.load_calculator.training_load_score(
            activities,
            today=today,
            acute_days=self.settings.load_window_days,
            chronic_days=self.settings.chronic_window_days,
        )

        score = self.aggregator.aggregate(
            metric_scores,
            adjustment,
            training_load_score=training_load_score,
            today=today,
        )
        self.latest_score = score
        logger.info(
            f"[ENGINE] Refresh complete athlete_id={self.athlete_id} score={score.overall_score} "
            f"base={score.base_score} cooldown={adjustment} low_confidence={score.is_low_confidence}"
        )
        return score

    def periodic_refresher(self) -> PeriodicRefresher:
        """Refresher that recomputes the score every refresh_interval_seconds."""
        return PeriodicRefresher(
            self.refresh,
            interval_seconds=self.settings.refresh_interval_seconds,
            name=f"mend-refresh-{self.athlete_id}",
        )

    def activity_recommendations(self, now: dt.datetime | None = None) -> list[ActivityRecommendation]:
        """Sessions suggested for today, refreshing first if no score exists yet."""
        now = _resolve_now(now)
        score = self.latest_score if self.latest_score is not None else self.refresh(now)
        activities = self._fetch_activities(now)
        return personalized_activity_recommendations(score, activities, now.date())

    def tick(self, now: dt.datetime | None = None) -> int:
        return self.cooldown.tick(_resolve_now(now))

    def cooldown_status(self, now: dt.datetime | None = None) -> CooldownStatus:
        return self.cooldown.status(_resolve_now(now))

    def training_summary(self, now: dt.datetime | None = None) -> TrainingSummary:
        """Load, daily volumes, and work:rest for the configured window."""
        now = _resolve_now(now)
        today = now.date()
        activities = self._fetch_activities(now)
        window = self.settings.load_window_days

        volumes = self.load_calculator.daily_volumes(activities, window, today=today)
        return TrainingSummary(
            date=today,
            window_days=window,
            load=self.load_calculator.load(activities, window, today=today),
            daily_volumes=volumes,
            work_rest_ratio=self.load_calculator.work_rest_ratio(activities, today=today),
            training_load_score=self.load_calculator.training_load_score(
                activities,
                today=today,
                acute_days=window,
                chronic_days=self.settings.chronic_window_days,
            ),
        )

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------

    def _fetch_activities(self, now: dt.datetime) -> list[Activity]:
        days = max(self.settings.history_days, self.settings.chronic_window_days)
        try:
            activities = self.activities.fetch(days)
        except ProviderError as e:
            logger.warning(f"[ENGINE] Activity provider failed, continuing without activities: {e}")
            return []
        return [a for a in activities if a.start_time <= now]

    def _refresh_recovery_table(self, activities: list[Activity], now: dt.datetime) -> None:
        max_age = dt.timedelta(hours=self.settings.recovery_table_max_age_hours)
        if not self.cooldown.recovery_table.is_stale(now, max_age):
            return
        table = self.learner.learn(activities, self.settings.history_days, now=now)
        self.cooldown.update_recovery_table(table)

    def _latest_recent_activity(self, activities: list[Activity], now: dt.datetime) -> Activity | None:
        cutoff = now - dt.timedelta(days=self.settings.recent_activity_days)
        recent = [a for a in activities if cutoff <= a.start_time <= now]
        if not recent:
            return None
        latest = max(recent, key=lambda a: a.start_time)
        # Only the newest activity drives the cooldown; older ones are left unprocessed
        passed_over = [a.id for a in recent if a.id != latest.id and not self.cooldown.has_processed(a.id)]
        if passed_over:
            logger.debug(f"[ENGINE] Newest activity {latest.id} drives the cooldown, not processing {passed_over}")
        return latest

    def _score_metric(self, kind: MetricKind, today: dt.date) -> MetricScore | None:
        try:
            reading = self.biometrics.fetch(kind, self.settings.biometric_window_days)
        except ProviderError as e:
            logger.warning(f"[ENGINE] Biometric provider failed for {kind}, omitting metric: {e}")
            return None
        return build_metric_score(kind, reading.samples, reading.current_value, today=today)


def _resolve_now(now: dt.datetime | None) -> dt.datetime:
    if now is None:
        return dt.datetime.now(dt.UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=dt.UTC)
    return now
