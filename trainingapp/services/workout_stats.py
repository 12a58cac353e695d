"""
Read-side workout statistics, recomputed from stored workouts on every call:
period summaries, per-type breakdown, personal bests, daily trends and the achievement
leaderboard. Nothing here is cached or maintained incrementally.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.core.errors import ValidationError
from trainingapp.models.achievement import Achievement
from trainingapp.models.user import User
from trainingapp.models.utils import as_utc
from trainingapp.models.workout import Workout
from trainingapp.schemas.workout import CyclingMetrics, GymMetrics, RunningMetrics, SwimmingMetrics, load_metrics
from trainingapp.services.achievements import check_category
from trainingapp.services.workout_store import WorkoutFilter

PERIODS = ("week", "month", "year", "all")


def period_start(period: str, now: datetime) -> datetime | None:
    """Start of the reporting period: last 7 days, this calendar month, this year, or None for all."""
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == "year":
        return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == "all":
        return None
    raise ValidationError(f"period must be one of: {', '.join(PERIODS)}")


async def summarize(session: AsyncSession, flt: WorkoutFilter) -> dict[str, Any]:
    """Totals for the filtered set of workouts."""
    stmt = select(
        func.count(Workout.id).label("total_workouts"),
        func.coalesce(func.sum(Workout.duration_sec), 0).label("total_duration"),
        func.coalesce(func.sum(Workout.calories), 0).label("total_calories"),
        func.coalesce(func.avg(Workout.duration_sec), 0).label("avg_duration"),
        func.coalesce(func.sum(Workout.distance_m), 0).label("total_distance"),
    ).where(*flt.clauses())
    row = (await session.execute(stmt)).one()
    return {
        "total_workouts": row.total_workouts or 0,
        "total_duration": int(row.total_duration or 0),
        "total_calories": round(float(row.total_calories or 0), 1),
        "avg_duration": round(float(row.avg_duration or 0), 1),
        "total_distance": round(float(row.total_distance or 0), 1),
    }


async def breakdown_by_type(session: AsyncSession, user_id: int, since: datetime | None) -> list[dict[str, Any]]:
    """Per-type totals for the user since `since`, most frequent type first."""
    stmt = select(
        Workout.type,
        func.count(Workout.id).label("count"),
        func.coalesce(func.sum(Workout.duration_sec), 0).label("total_duration"),
        func.coalesce(func.sum(Workout.calories), 0).label("total_calories"),
        func.coalesce(func.avg(Workout.duration_sec), 0).label("avg_duration"),
        func.coalesce(func.sum(Workout.distance_m), 0).label("total_distance"),
    ).where(Workout.user_id == user_id)
    if since is not None:
        stmt = stmt.where(Workout.start_time >= since)
    stmt = stmt.group_by(Workout.type).order_by(func.count(Workout.id).desc(), Workout.type)
    rows = (await session.execute(stmt)).all()
    return [
        {
            "type": row.type,
            "count": row.count,
            "total_duration": int(row.total_duration or 0),
            "total_calories": round(float(row.total_calories or 0), 1),
            "avg_duration": round(float(row.avg_duration or 0), 1),
            "total_distance": round(float(row.total_distance or 0), 1),
        }
        for row in rows
    ]


def _max(values: list[float]) -> float:
    return max((v for v in values if v), default=0)


def _min_positive(values: list[float | None]) -> float:
    return min((v for v in values if v and v > 0), default=0)


def reduce_personal_bests(rows: list[tuple[str, int, float, dict | None]]) -> dict[str, dict[str, float]]:
    """Max/min reduction over (type, duration_sec, distance_m, metrics) rows."""
    by_type: dict[str, list[tuple[int, float, Any]]] = defaultdict(list)
    for type_, duration, distance, metrics in rows:
        by_type[type_].append((duration or 0, distance or 0.0, load_metrics(metrics)))

    running = [(d, dist, m) for d, dist, m in by_type["Running"] if isinstance(m, RunningMetrics)]
    cycling = [(d, dist, m) for d, dist, m in by_type["Cycling"] if isinstance(m, CyclingMetrics)]
    swimming = [(d, dist, m) for d, dist, m in by_type["Swimming"] if isinstance(m, SwimmingMetrics)]
    gym = [(d, m) for d, _, m in by_type["Gym"] if isinstance(m, GymMetrics)]

    def run_pace(duration: int, distance: float, m: RunningMetrics) -> float | None:
        if m.avg_pace:
            return m.avg_pace
        return duration / (distance / 1000.0) if distance > 0 else None

    cycling_avg_speeds = [m.avg_speed for _, _, m in cycling if m.avg_speed]
    return {
        "running": {
            "longest_distance": _max([dist for _, dist, _ in running]),
            "best_pace": round(_min_positive([run_pace(d, dist, m) for d, dist, m in running]), 1),
            "longest_duration": _max([d for d, _, _ in running]),
            "fastest_speed": _max([m.max_speed or m.avg_speed or 0 for _, _, m in running]),
        },
        "cycling": {
            "longest_distance": _max([dist for _, dist, _ in cycling]),
            "best_speed": _max([m.max_speed or 0 for _, _, m in cycling]),
            "longest_duration": _max([d for d, _, _ in cycling]),
            "avg_speed": round(sum(cycling_avg_speeds) / len(cycling_avg_speeds), 2) if cycling_avg_speeds else 0,
        },
        "swimming": {
            "most_laps": _max([len(m.laps) for _, _, m in swimming]),
            "best_swolf": _min_positive([m.avg_swolf for _, _, m in swimming]),
            "longest_duration": _max([d for d, _, _ in swimming]),
            "longest_distance": _max([dist for _, dist, _ in swimming]),
        },
        "gym": {
            "heaviest_weight": _max([m.heaviest_weight for _, m in gym]),
            "most_sets": _max([m.total_sets for _, m in gym]),
            "most_reps": _max([m.total_reps for _, m in gym]),
            "longest_duration": _max([d for d, _ in gym]),
        },
    }


async def personal_bests(session: AsyncSession, user_id: int) -> dict[str, dict[str, float]]:
    r = await session.execute(
        select(Workout.type, Workout.duration_sec, Workout.distance_m, Workout.metrics).where(
            Workout.user_id == user_id,
            Workout.type.in_(("Running", "Cycling", "Swimming", "Gym")),
        )
    )
    return reduce_personal_bests([tuple(row) for row in r.all()])


async def daily_trends(session: AsyncSession, user_id: int, now: datetime, days: int = 30) -> list[dict[str, Any]]:
    """Per-day totals over the last `days` days, oldest first. Days without workouts are omitted."""
    since = now - timedelta(days=days)
    r = await session.execute(
        select(Workout.start_time, Workout.duration_sec, Workout.calories, Workout.distance_m).where(
            Workout.user_id == user_id,
            Workout.start_time >= since,
        )
    )
    buckets: dict[str, dict[str, float]] = {}
    for start_time, duration, calories, distance in r.all():
        d = as_utc(start_time).date().isoformat()
        if d not in buckets:
            buckets[d] = {"count": 0, "total_duration": 0, "total_calories": 0.0, "total_distance": 0.0}
        buckets[d]["count"] += 1
        buckets[d]["total_duration"] += duration or 0
        buckets[d]["total_calories"] += calories or 0.0
        buckets[d]["total_distance"] += distance or 0.0
    return [
        {
            "date": d,
            "count": v["count"],
            "total_duration": v["total_duration"],
            "total_calories": round(v["total_calories"], 1),
            "total_distance": round(v["total_distance"], 1),
        }
        for d, v in sorted(buckets.items())
    ]


async def leaderboard(
    session: AsyncSession,
    *,
    now: datetime,
    category: str | None = None,
    period: str = "all",
    limit: int = 20,
) -> list[dict[str, Any]]:
    """Users ranked by total achievement points, ties broken by achievement count."""
    points = func.sum(Achievement.points).label("points")
    count = func.count(Achievement.id).label("count")
    stmt = select(Achievement.user_id, User.name, points, count).join(User, User.id == Achievement.user_id)
    if category:
        stmt = stmt.where(Achievement.category == check_category(category))
    since = period_start(period, now)
    if since is not None:
        stmt = stmt.where(Achievement.created_at >= since)
    stmt = stmt.group_by(Achievement.user_id, User.name).order_by(points.desc(), count.desc(), Achievement.user_id).limit(limit)
    rows = (await session.execute(stmt)).all()
    return [
        {
            "rank": i,
            "user_id": row.user_id,
            "name": row.name,
            "points": int(row.points or 0),
            "achievements": row.count,
        }
        for i, row in enumerate(rows, start=1)
    ]
