"""Durable storage for cooldown state and processed activity ids.

The engine reloads both on startup so a restart never re-applies an
activity or silently resets an active cooldown.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Generator
from contextlib import contextmanager
from threading import Lock

from loguru import logger
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from mend.models.recovery import CooldownState
from mend.persistence.models import Base, CooldownStateRecord, ProcessedActivityRecord


class CooldownRepository:
    """Storage contract used by CooldownStateMachine and RecoveryEngine."""

    def load_state(self, athlete_id: str) -> CooldownState | None:
        raise NotImplementedError

    def save_state(self, athlete_id: str, state: CooldownState) -> None:
        raise NotImplementedError

    def processed_ids(self, athlete_id: str) -> set[str]:
        raise NotImplementedError

    def mark_processed(self, athlete_id: str, activity_id: str, processed_at: dt.datetime) -> None:
        raise NotImplementedError


class InMemoryCooldownRepository(CooldownRepository):
    """Process-local repository. State is lost when the process exits."""

    def __init__(self) -> None:
        self._states: dict[str, CooldownState] = {}
        self._processed: dict[str, dict[str, dt.datetime]] = {}
        self._lock = Lock()

    def load_state(self, athlete_id: str) -> CooldownState | None:
        with self._lock:
            return self._states.get(athlete_id)

    def save_state(self, athlete_id: str, state: CooldownState) -> None:
        with self._lock:
            self._states[athlete_id] = state

    def processed_ids(self, athlete_id: str) -> set[str]:
        with self._lock:
            return set(self._processed.get(athlete_id, {}))

    def mark_processed(self, athlete_id: str, activity_id: str, processed_at: dt.datetime) -> None:
        with self._lock:
            self._processed.setdefault(athlete_id, {}).setdefault(activity_id, processed_at)


class SqlCooldownRepository(CooldownRepository):
    """SQLAlchemy-backed repository.

    Tables are created on construction if missing.
    """

    def __init__(self, database_url: str) -> None:
        logger.info(f"[REPOSITORY] Initializing database engine: {database_url}")
        self.engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False} if "sqlite" in database_url else {},
            echo=False,
        )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get database session context manager."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            logger.error(f"[REPOSITORY] Database session error, rolling back: {e}")
            session.rollback()
            raise
        finally:
            session.close()

    def load_state(self, athlete_id: str) -> CooldownState | None:
        with self.get_session() as session:
            record = session.get(CooldownStateRecord, athlete_id)
            if record is None:
                return None
            return CooldownState(
                last_processed_activity_id=record.last_processed_activity_id,
                cooldown_start_time=_as_utc(record.cooldown_start_time),
                expected_recovery_duration=record.expected_recovery_duration,
                initial_adjustment=record.initial_adjustment,
                current_adjustment=record.current_adjustment,
            )

    def save_state(self, athlete_id: str, state: CooldownState) -> None:
        with self.get_session() as session:
            record = session.get(CooldownStateRecord, athlete_id)
            if record is None:
                record = CooldownStateRecord(athlete_id=athlete_id)
                session.add(record)
            record.last_processed_activity_id = state.last_processed_activity_id
            record.cooldown_start_time = state.cooldown_start_time
            record.expected_recovery_duration = state.expected_recovery_duration
            record.initial_adjustment = state.initial_adjustment
            record.current_adjustment = state.current_adjustment
            record.updated_at = dt.datetime.now(dt.UTC)

    def processed_ids(self, athlete_id: str) -> set[str]:
        with self.get_session() as session:
            rows = session.execute(
                select(ProcessedActivityRecord.activity_id).where(ProcessedActivityRecord.athlete_id == athlete_id)
            )
            return {row[0] for row in rows}

    def mark_processed(self, athlete_id: str, activity_id: str, processed_at: dt.datetime) -> None:
        with self.get_session() as session:
            existing = session.execute(
                select(ProcessedActivityRecord.id).where(
                    ProcessedActivityRecord.athlete_id == athlete_id,
                    ProcessedActivityRecord.activity_id == activity_id,
                )
            ).first()
            if existing is not None:
                logger.debug(f"[REPOSITORY] Activity {activity_id} already marked processed")
                return
            session.add(
                ProcessedActivityRecord(
                    athlete_id=athlete_id,
                    activity_id=activity_id,
                    processed_at=processed_at,
                )
            )


def _as_utc(value: dt.datetime | None) -> dt.datetime | None:
    # SQLite drops tzinfo on round-trip
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=dt.UTC)
    return value
