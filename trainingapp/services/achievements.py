"""Achievement reads (list, recent, progress toward each template) and sharing."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.core.errors import NotFoundError, OwnershipError, ValidationError
from trainingapp.models.achievement import Achievement
from trainingapp.models.utils import as_utc
from trainingapp.schemas.stats import AggregateStats
from trainingapp.services.achievement_catalog import (
    ACTIVITY_FIRSTS,
    DEFAULT_CATALOG,
    DISTANCE_MILESTONES,
    STREAK_MILESTONES,
    WORKOUT_COUNT_MILESTONES,
    AchievementCatalog,
    Category,
)
from trainingapp.services.user_stats import load_aggregate


def achievement_to_dict(a: Achievement) -> dict:
    return {
        "id": a.id,
        "type": a.type,
        "title": a.title,
        "emoji": a.emoji,
        "description": a.description,
        "category": a.category,
        "rarity": a.rarity,
        "points": a.points,
        "trigger_value": a.trigger_value,
        "workout_id": a.workout_id,
        "workout_type": a.workout_type,
        "progress": {
            "current": a.progress_current,
            "target": a.progress_target,
            "percentage": a.progress_percentage,
        },
        "is_shared": a.is_shared,
        "shared_at": as_utc(a.shared_at).isoformat() if a.shared_at else None,
        "created_at": as_utc(a.created_at).isoformat() if a.created_at else None,
    }


def check_category(category: str | None) -> str | None:
    if category is None:
        return None
    try:
        return Category(category).value
    except ValueError:
        raise ValidationError(f"Unknown achievement category '{category}'") from None


async def list_achievements(session: AsyncSession, user_id: int, category: str | None = None) -> list[Achievement]:
    q = select(Achievement).where(Achievement.user_id == user_id)
    if category:
        q = q.where(Achievement.category == check_category(category))
    r = await session.execute(q.order_by(Achievement.created_at.desc(), Achievement.id.desc()))
    return list(r.scalars().all())


async def recent_achievements(session: AsyncSession, user_id: int, limit: int = 5) -> list[Achievement]:
    r = await session.execute(
        select(Achievement)
        .where(Achievement.user_id == user_id)
        .order_by(Achievement.created_at.desc(), Achievement.id.desc())
        .limit(limit)
    )
    return list(r.scalars().all())


def _progress_targets() -> dict[str, tuple[str, float]]:
    """type key -> (what is measured, target)."""
    targets: dict[str, tuple[str, float]] = {"first_workout": ("workouts", 1)}
    targets.update({key: ("workouts", count) for count, key in WORKOUT_COUNT_MILESTONES})
    targets.update({key: ("distance", meters) for meters, key in DISTANCE_MILESTONES})
    targets.update({key: ("streak", days) for days, key in STREAK_MILESTONES})
    targets.update({key: (f"first:{workout_type}", 1) for workout_type, key in ACTIVITY_FIRSTS})
    return targets


_PROGRESS_TARGETS = _progress_targets()


def _current_value(measure: str, stats: AggregateStats) -> float:
    if measure == "workouts":
        return stats.workouts
    if measure == "streak":
        return stats.current_streak
    if measure == "distance":
        return max(stats.running.longest_run_m, stats.cycling.longest_ride_m, stats.swimming.longest_swim_m)
    if measure == "first:Swimming":
        return stats.swimming.total_swims
    if measure == "first:Cycling":
        return stats.cycling.total_rides
    return 0


def compute_progress(
    stats: AggregateStats,
    earned: dict[str, Achievement],
    catalog: AchievementCatalog = DEFAULT_CATALOG,
) -> list[dict]:
    """Progress toward every template: earned ones at 100%, others from the aggregate stats."""
    out = []
    for key, template in catalog.items():
        measure, target = _PROGRESS_TARGETS.get(key, ("", 1))
        row = earned.get(key)
        if row is not None:
            current, percentage = target, 100.0
        else:
            current = _current_value(measure, stats)
            percentage = min(100.0, round(current / target * 100, 1)) if target else 0.0
        out.append(
            {
                **template.to_dict(),
                "earned": row is not None,
                "earned_at": as_utc(row.created_at).isoformat() if row is not None and row.created_at else None,
                "progress": {"current": current, "target": target, "percentage": percentage},
            }
        )
    return out


async def achievement_progress(session: AsyncSession, user_id: int) -> list[dict]:
    stats = await load_aggregate(session, user_id)
    earned = {a.type: a for a in await list_achievements(session, user_id)}
    return compute_progress(stats, earned)


async def share_achievement(session: AsyncSession, achievement_id: int, user_id: int) -> Achievement:
    """Mark an owned achievement as shared. Sharing again keeps is_shared and refreshes shared_at."""
    r = await session.execute(select(Achievement).where(Achievement.id == achievement_id))
    a = r.scalar_one_or_none()
    if not a:
        raise NotFoundError("Achievement not found")
    if a.user_id != user_id:
        raise OwnershipError("You can only share your own achievements")
    a.is_shared = True
    a.shared_at = datetime.now(timezone.utc)
    await session.flush()
    return a
