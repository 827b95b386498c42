"""Timer-driven recomputation.

Any scheduler can drive the engine by calling ``refresh`` or ``tick``; this
wraps an APScheduler background job for long-running hosts.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger


class PeriodicRefresher:
    """Runs ``callback`` every ``interval_seconds`` on a background scheduler.

    The first run happens as soon as the refresher starts. A failing
    callback is logged and the job keeps its schedule.
    """

    def __init__(self, callback: Callable[[], object], interval_seconds: float = 60.0, name: str = "mend-refresher"):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self.runs = 0
        self._scheduler: BackgroundScheduler | None = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.is_running:
            logger.debug(f"[SCHEDULER] {self.name} already running")
            return
        scheduler = BackgroundScheduler(timezone=dt.UTC)
        scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=dt.UTC),
            id=self.name,
            name=f"Recovery refresh ({self.name})",
            replace_existing=True,
            next_run_time=dt.datetime.now(dt.UTC),
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"[SCHEDULER] {self.name} started, interval={self.interval_seconds}s")

    def stop(self, wait: bool = True) -> None:
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=wait)
            self._scheduler = None
        logger.info(f"[SCHEDULER] {self.name} stopped after {self.runs} runs")

    def run_once(self) -> None:
        try:
            self.callback()
        except Exception as e:
            logger.exception(f"[SCHEDULER] {self.name} callback failed: {e}")
        finally:
            self.runs += 1
