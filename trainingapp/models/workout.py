"""Workout sessions with per-type metrics, likes (set) and comments (append-only)."""

from __future__ import annotations

from datetime import datetime
from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trainingapp.db.base import Base
from trainingapp.models.utils import utcnow


class Workout(Base):
    __tablename__ = "workouts"
    __table_args__ = (
        Index("ix_workouts_user_id_start_time", "user_id", "start_time"),
        Index("ix_workouts_user_id_type", "user_id", "type"),
        Index("ix_workouts_privacy_start_time", "privacy", "start_time"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # Running | Cycling | Swimming | Gym | Walking | Hiking
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    calories: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    privacy: Mapped[str] = mapped_column(String(8), nullable=False, default="public")  # public | friends | private
    distance_m: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # distance for the type, 0 for Gym
    metrics: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # tagged by "kind", see schemas.workout
    heart_rate: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # average, max, min, zones
    location: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # city, country, coordinates, weather
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user: Mapped["User"] = relationship("User", back_populates="workouts")
    likes: Mapped[list["WorkoutLike"]] = relationship(
        "WorkoutLike", back_populates="workout", cascade="all, delete-orphan", lazy="selectin"
    )
    comments: Mapped[list["WorkoutComment"]] = relationship(
        "WorkoutComment",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="WorkoutComment.id",
        lazy="selectin",
    )


class WorkoutLike(Base):
    __tablename__ = "workout_likes"
    __table_args__ = (UniqueConstraint("workout_id", "user_id", name="uq_workout_likes_workout_user"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    workout_id: Mapped[int] = mapped_column(ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    workout: Mapped["Workout"] = relationship("Workout", back_populates="likes")


class WorkoutComment(Base):
    __tablename__ = "workout_comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    workout_id: Mapped[int] = mapped_column(ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    workout: Mapped["Workout"] = relationship("Workout", back_populates="comments")
