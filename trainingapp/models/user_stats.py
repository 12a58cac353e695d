"""Per-user aggregate stats, maintained incrementally on workout create/delete.

`version` is the SQLAlchemy version counter: a flush that updates a row whose version
changed since it was loaded raises StaleDataError (see services.user_stats.mutate_stats).
"""

from __future__ import annotations

from datetime import date, datetime
from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trainingapp.db.base import Base
from trainingapp.models.utils import utcnow


class UserStats(Base):
    __tablename__ = "user_stats"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    workouts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    calories: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_distance_m: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_duration_sec: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_workout_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    average_workouts_per_week: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # Per-activity rollups (schemas.stats.RunningRollup etc.), stored as documents
    running: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    cycling: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    swimming: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    gym: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user: Mapped["User"] = relationship("User", back_populates="stats")

    __mapper_args__ = {"version_id_col": version}
