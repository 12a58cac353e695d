"""
Workout create/delete flow: persist the workout, then update the user's aggregate stats,
then derive achievements.

The steps are committed one after another. Once the workout is committed it stays,
even if the stats update or achievement evaluation fails; those failures are logged
and returned to the caller as warnings.
"""

import logging
from datetime import datetime, timezone

from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.core.errors import AggregationFailure
from trainingapp.models.user import User
from trainingapp.models.utils import as_utc
from trainingapp.schemas.workout import WorkoutCreate
from trainingapp.services.achievement_engine import AchievementRuleEngine, unlock_achievements
from trainingapp.services.achievements import achievement_to_dict
from trainingapp.services.audit import AuditAction, log_action
from trainingapp.services.stats_aggregator import apply_create, apply_delete
from trainingapp.services.user_stats import mutate_stats
from trainingapp.services.workout_store import create_workout, delete_workout, snapshot, workout_to_dict

logger = logging.getLogger(__name__)

WORKOUTS_RECORDED = Counter("trainingapp_workouts_recorded_total", "Workouts created", ["type"])
WORKOUTS_DELETED = Counter("trainingapp_workouts_deleted_total", "Workouts deleted", ["type"])
ACHIEVEMENTS_UNLOCKED = Counter("trainingapp_achievements_unlocked_total", "Achievements unlocked", ["type"])
AGGREGATION_FAILURES = Counter("trainingapp_aggregation_failures_total", "Stats/achievement steps that failed", ["step"])


async def record_workout(
    session: AsyncSession,
    user: User,
    body: WorkoutCreate,
    engine: AchievementRuleEngine,
    *,
    now: datetime | None = None,
) -> dict:
    """Create a workout and apply its side effects. Returns workout, achievementsEarned, warnings."""
    now = now or datetime.now(timezone.utc)
    # Capture before any rollback below expires the ORM instances
    user_id = user.id
    account_created_at = as_utc(user.created_at) if user.created_at else now

    w = await create_workout(session, user_id, body)
    await log_action(session, user_id, AuditAction.CREATE, "workout", w.id, details={"type": w.type})
    await session.commit()
    workout_out = workout_to_dict(w)
    workout_id = w.id
    snap = snapshot(w)
    WORKOUTS_RECORDED.labels(type=snap.type).inc()
    logger.info("User %s created %s workout %s", user_id, snap.type, workout_id)

    warnings: list[str] = []
    earned: list[dict] = []
    try:
        stats = await mutate_stats(
            session,
            user_id,
            lambda agg: apply_create(agg, snap, account_created_at=account_created_at, now=now),
        )
    except AggregationFailure as e:
        AGGREGATION_FAILURES.labels(step="stats").inc()
        logger.error("Workout %s saved but stats were not updated: %s", workout_id, e.message)
        warnings.append(f"Stats were not updated: {e.message}")
        return {"workout": workout_out, "achievementsEarned": earned, "warnings": warnings}

    try:
        rows, skipped = await unlock_achievements(session, engine, user_id, workout_id, snap, stats)
        await session.commit()
    except Exception as e:
        await session.rollback()
        AGGREGATION_FAILURES.labels(step="achievements").inc()
        logger.exception("Workout %s saved but achievements were not evaluated: %s", workout_id, e)
        warnings.append("Achievements could not be evaluated")
        return {"workout": workout_out, "achievementsEarned": earned, "warnings": warnings}

    for row in rows:
        ACHIEVEMENTS_UNLOCKED.labels(type=row.type).inc()
        earned.append(achievement_to_dict(row))
    if skipped:
        warnings.append("Achievement rules skipped (missing template): " + ", ".join(skipped))
    return {"workout": workout_out, "achievementsEarned": earned, "warnings": warnings}


async def remove_workout(
    session: AsyncSession,
    user: User,
    workout_id: int,
    *,
    now: datetime | None = None,
) -> list[str]:
    """Delete an owned workout and take it back out of the aggregate. Returns warnings."""
    now = now or datetime.now(timezone.utc)
    user_id = user.id
    account_created_at = as_utc(user.created_at) if user.created_at else now

    snap = await delete_workout(session, workout_id, user_id)
    await log_action(session, user_id, AuditAction.DELETE, "workout", workout_id, details={"type": snap.type})
    await session.commit()
    WORKOUTS_DELETED.labels(type=snap.type).inc()
    logger.info("User %s deleted workout %s", user_id, workout_id)

    try:
        await mutate_stats(
            session,
            user_id,
            lambda agg: apply_delete(agg, snap, account_created_at=account_created_at, now=now),
        )
    except AggregationFailure as e:
        AGGREGATION_FAILURES.labels(step="stats").inc()
        logger.error("Workout %s deleted but stats were not updated: %s", workout_id, e.message)
        return [f"Stats were not updated: {e.message}"]
    return []
