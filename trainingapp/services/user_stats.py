"""Load/store UserStats rows as AggregateStats and apply versioned read-modify-write updates."""

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from trainingapp.config import settings
from trainingapp.core.errors import AggregationFailure
from trainingapp.models.user_stats import UserStats
from trainingapp.schemas.stats import (
    AggregateStats,
    CyclingRollup,
    GymRollup,
    RunningRollup,
    SwimmingRollup,
)

logger = logging.getLogger(__name__)


def aggregate_from_row(row: UserStats) -> AggregateStats:
    return AggregateStats(
        workouts=row.workouts or 0,
        hours=row.hours or 0.0,
        calories=row.calories or 0.0,
        total_distance_m=row.total_distance_m or 0.0,
        total_duration_sec=row.total_duration_sec or 0,
        current_streak=row.current_streak or 0,
        longest_streak=row.longest_streak or 0,
        last_workout_date=row.last_workout_date,
        average_workouts_per_week=row.average_workouts_per_week or 0.0,
        running=RunningRollup.model_validate(row.running or {}),
        cycling=CyclingRollup.model_validate(row.cycling or {}),
        swimming=SwimmingRollup.model_validate(row.swimming or {}),
        gym=GymRollup.model_validate(row.gym or {}),
    )


def write_aggregate(row: UserStats, agg: AggregateStats) -> None:
    row.workouts = agg.workouts
    row.hours = agg.hours
    row.calories = agg.calories
    row.total_distance_m = agg.total_distance_m
    row.total_duration_sec = agg.total_duration_sec
    row.current_streak = agg.current_streak
    row.longest_streak = agg.longest_streak
    row.last_workout_date = agg.last_workout_date
    row.average_workouts_per_week = agg.average_workouts_per_week
    # Reassign whole documents so the JSON columns are flagged dirty
    row.running = agg.running.model_dump()
    row.cycling = agg.cycling.model_dump()
    row.swimming = agg.swimming.model_dump()
    row.gym = agg.gym.model_dump()


def new_stats_row(user_id: int) -> UserStats:
    """Zero-valued stats row, created alongside the user."""
    row = UserStats(user_id=user_id)
    write_aggregate(row, AggregateStats())
    return row


async def get_or_create_stats(session: AsyncSession, user_id: int) -> UserStats:
    r = await session.execute(
        select(UserStats)
        .where(UserStats.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    row = r.scalar_one_or_none()
    if row is None:
        row = new_stats_row(user_id)
        session.add(row)
        await session.flush()
    return row


async def load_aggregate(session: AsyncSession, user_id: int) -> AggregateStats:
    r = await session.execute(select(UserStats).where(UserStats.user_id == user_id))
    row = r.scalar_one_or_none()
    return aggregate_from_row(row) if row else AggregateStats()


async def mutate_stats(
    session: AsyncSession,
    user_id: int,
    mutate: Callable[[AggregateStats], object],
    *,
    max_retries: int | None = None,
) -> AggregateStats:
    """
    Read the user's aggregate, apply `mutate`, commit with the version check.
    A concurrent writer makes the commit raise StaleDataError; the whole read-modify-write
    is then retried. Raises AggregationFailure when retries run out or any other step fails
    (DB error, unreadable stored document, error in `mutate`).
    """
    attempts = max_retries or settings.stats_update_max_retries
    for attempt in range(1, attempts + 1):
        try:
            row = await get_or_create_stats(session, user_id)
            agg = aggregate_from_row(row)
            mutate(agg)
            write_aggregate(row, agg)
            await session.commit()
            return agg
        except StaleDataError:
            await session.rollback()
            logger.warning("Stats for user %s changed concurrently (attempt %s/%s), retrying", user_id, attempt, attempts)
        except Exception as e:
            await session.rollback()
            logger.exception("Stats update failed for user %s: %s", user_id, e)
            raise AggregationFailure(f"Stats update failed: {type(e).__name__}") from e
    raise AggregationFailure(f"Stats update for user {user_id} gave up after {attempts} concurrent modifications")
