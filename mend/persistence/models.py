from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class CooldownStateRecord(Base):
    """Last known cooldown state, one row per athlete.

    A row with no cooldown_start_time is a Resting state.
    """

    __tablename__ = "cooldown_states"

    athlete_id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    last_processed_activity_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cooldown_start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expected_recovery_duration: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    initial_adjustment: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    current_adjustment: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ProcessedActivityRecord(Base):
    """Activity ids that already affected the cooldown state."""

    __tablename__ = "processed_activities"
    __table_args__ = (UniqueConstraint("athlete_id", "activity_id", name="uq_processed_activity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    athlete_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    activity_id: Mapped[str] = mapped_column(String, nullable=False)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
