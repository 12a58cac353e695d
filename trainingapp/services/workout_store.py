"""Workout persistence: validation, CRUD, list/search, public feed, likes and comments.

Functions flush but do not commit; the API layer (or workout_pipeline) owns the transaction.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.core.errors import NotFoundError, OwnershipError, ValidationError
from trainingapp.models.achievement import Achievement
from trainingapp.models.utils import as_utc
from trainingapp.models.workout import Workout, WorkoutComment, WorkoutLike
from trainingapp.schemas.stats import WorkoutSnapshot
from trainingapp.schemas.workout import (
    CyclingMetrics,
    GymMetrics,
    Privacy,
    RunningMetrics,
    SwimmingMetrics,
    WorkoutCreate,
    WorkoutType,
    WorkoutUpdate,
    dump_metrics,
)

MIN_DURATION_SEC = 30
REQUIRED_FIELDS = ("type", "start_time", "end_time", "duration")

# Which body field holds the metrics for each type, and its model
METRICS_BY_TYPE: dict[str, tuple[str, type[BaseModel]]] = {
    WorkoutType.RUNNING.value: ("running", RunningMetrics),
    WorkoutType.CYCLING.value: ("cycling", CyclingMetrics),
    WorkoutType.SWIMMING.value: ("swimming", SwimmingMetrics),
    WorkoutType.GYM.value: ("gym", GymMetrics),
}

SORT_COLUMNS = {
    "startTime": Workout.start_time,
    "start_time": Workout.start_time,
    "duration": Workout.duration_sec,
    "calories": Workout.calories,
    "distance": Workout.distance_m,
    "createdAt": Workout.created_at,
    "created_at": Workout.created_at,
}


@dataclass
class WorkoutFilter:
    user_id: int | None = None
    type: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    search: str | None = None
    privacy: str | None = None

    def clauses(self) -> list:
        out = []
        if self.user_id is not None:
            out.append(Workout.user_id == self.user_id)
        if self.type:
            out.append(Workout.type == self.type)
        if self.start is not None:
            out.append(Workout.start_time >= self.start)
        if self.end is not None:
            out.append(Workout.start_time <= self.end)
        if self.privacy:
            out.append(Workout.privacy == self.privacy)
        if self.search and self.search.strip():
            pattern = f"%{self.search.strip()}%"
            out.append(
                or_(
                    Workout.name.ilike(pattern),
                    Workout.type.ilike(pattern),
                    Workout.notes.ilike(pattern),
                )
            )
        return out


def _first_error(e: PydanticValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def validate_workout(body: WorkoutCreate) -> tuple[WorkoutType, BaseModel | None]:
    """Check required fields, type, duration and type-specific metrics.

    Returns the workout type and the metrics variant for it (None for Walking/Hiking).
    Raises ValidationError with a message meant to be shown to the caller.
    """
    for field in REQUIRED_FIELDS:
        if getattr(body, field) is None or getattr(body, field) == "":
            raise ValidationError(f"{field} is required")
    try:
        workout_type = WorkoutType(body.type)
    except ValueError:
        raise ValidationError("Invalid workout type") from None
    if body.duration < MIN_DURATION_SEC:
        raise ValidationError(f"Workout duration must be at least {MIN_DURATION_SEC} seconds")
    if as_utc(body.end_time) < as_utc(body.start_time):
        raise ValidationError("End time must be after start time")
    if workout_type is WorkoutType.SWIMMING and not (body.swimming or {}).get("pool_length_m"):
        raise ValidationError("Pool length is required for swimming workouts")

    entry = METRICS_BY_TYPE.get(workout_type.value)
    if entry is None:
        return workout_type, None
    field_name, model = entry
    try:
        metrics = model.model_validate(getattr(body, field_name) or {})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {field_name} metrics: {_first_error(e)}") from e
    return workout_type, metrics


def distance_for(metrics: BaseModel | None) -> float:
    """Distance carried by the workout's type; 0 for Gym, Walking and Hiking."""
    if isinstance(metrics, (RunningMetrics, CyclingMetrics, SwimmingMetrics)):
        return float(metrics.distance_m or 0.0)
    return 0.0


def snapshot(w: Workout) -> WorkoutSnapshot:
    return WorkoutSnapshot(
        type=w.type,
        start_time=as_utc(w.start_time),
        duration_sec=w.duration_sec,
        calories=w.calories or 0.0,
        distance_m=w.distance_m or 0.0,
        metrics=w.metrics,
    )


def workout_to_dict(w: Workout) -> dict:
    return {
        "id": w.id,
        "session_id": w.session_id,
        "user_id": w.user_id,
        "type": w.type,
        "name": w.name,
        "start_time": as_utc(w.start_time).isoformat(),
        "end_time": as_utc(w.end_time).isoformat(),
        "duration": w.duration_sec,
        "calories": w.calories,
        "notes": w.notes,
        "privacy": w.privacy,
        "distance_m": w.distance_m,
        "metrics": w.metrics,
        "heart_rate": w.heart_rate,
        "location": w.location,
        "likes": [like.user_id for like in w.likes],
        "like_count": len(w.likes),
        "comments": [comment_to_dict(c) for c in w.comments],
        "created_at": as_utc(w.created_at).isoformat() if w.created_at else None,
    }


def comment_to_dict(c: WorkoutComment) -> dict:
    return {
        "id": c.id,
        "user_id": c.user_id,
        "text": c.text,
        "created_at": as_utc(c.created_at).isoformat() if c.created_at else None,
    }


async def create_workout(session: AsyncSession, user_id: int, body: WorkoutCreate) -> Workout:
    workout_type, metrics = validate_workout(body)
    w = Workout(
        session_id=str(uuid.uuid4()),
        user_id=user_id,
        type=workout_type.value,
        name=body.name.strip() if body.name else None,
        start_time=as_utc(body.start_time),
        end_time=as_utc(body.end_time),
        duration_sec=body.duration,
        calories=body.calories or 0.0,
        notes=body.notes,
        privacy=body.privacy.value,
        distance_m=distance_for(metrics),
        metrics=dump_metrics(metrics),
        heart_rate=body.heart_rate.model_dump(mode="json") if body.heart_rate else None,
        location=body.location.model_dump(mode="json") if body.location else None,
        likes=[],
        comments=[],
    )
    session.add(w)
    await session.flush()
    return w


async def get_workout(session: AsyncSession, workout_id: int) -> Workout:
    r = await session.execute(select(Workout).where(Workout.id == workout_id))
    w = r.scalar_one_or_none()
    if not w:
        raise NotFoundError("Workout not found")
    return w


async def get_visible_workout(session: AsyncSession, workout_id: int, viewer_id: int) -> Workout:
    """Workout readable by viewer: private workouts only by their owner."""
    w = await get_workout(session, workout_id)
    if w.privacy == Privacy.PRIVATE.value and w.user_id != viewer_id:
        raise OwnershipError("Access denied to this workout")
    return w


async def get_owned_workout(session: AsyncSession, workout_id: int, user_id: int, action: str) -> Workout:
    w = await get_workout(session, workout_id)
    if w.user_id != user_id:
        raise OwnershipError(f"You can only {action} your own workouts")
    return w


async def update_workout(session: AsyncSession, workout_id: int, user_id: int, body: WorkoutUpdate) -> Workout:
    """Update name, notes and privacy. Type, owner and metrics are immutable."""
    w = await get_owned_workout(session, workout_id, user_id, "update")
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes:
        w.name = body.name.strip() if body.name else None
    if "notes" in changes:
        w.notes = body.notes
    if changes.get("privacy") is not None:
        w.privacy = body.privacy.value
    await session.flush()
    return w


async def delete_workout(session: AsyncSession, workout_id: int, user_id: int) -> WorkoutSnapshot:
    """Delete an owned workout; returns its snapshot for aggregate reversal.
    Achievements it triggered are kept, with their workout reference cleared."""
    w = await get_owned_workout(session, workout_id, user_id, "delete")
    snap = snapshot(w)
    await session.execute(
        update(Achievement).where(Achievement.workout_id == w.id).values(workout_id=None)
    )
    await session.delete(w)
    await session.flush()
    return snap


async def list_workouts(
    session: AsyncSession,
    flt: WorkoutFilter,
    *,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "startTime",
    sort_order: str = "desc",
) -> tuple[list[Workout], int]:
    column = SORT_COLUMNS.get(sort_by)
    if column is None:
        raise ValidationError(f"Cannot sort by '{sort_by}'")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sortOrder must be 'asc' or 'desc'")
    clauses = flt.clauses()
    total = (await session.execute(select(func.count(Workout.id)).where(*clauses))).scalar() or 0
    order = column.desc() if sort_order == "desc" else column.asc()
    r = await session.execute(
        select(Workout)
        .where(*clauses)
        .order_by(order, Workout.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(r.scalars().all()), total


async def public_feed(
    session: AsyncSession,
    *,
    page: int = 1,
    limit: int = 20,
    type_: str | None = None,
) -> tuple[list[Workout], int]:
    return await list_workouts(
        session,
        WorkoutFilter(type=type_, privacy=Privacy.PUBLIC.value),
        page=page,
        limit=limit,
    )


async def toggle_like(session: AsyncSession, workout_id: int, user_id: int) -> tuple[str, int]:
    """Like if not yet liked by user, else unlike. Returns (action, like count)."""
    w = await get_visible_workout(session, workout_id, user_id)
    existing = next((like for like in w.likes if like.user_id == user_id), None)
    if existing is not None:
        w.likes.remove(existing)
        action = "unliked"
    else:
        w.likes.append(WorkoutLike(user_id=user_id, created_at=datetime.now(timezone.utc)))
        action = "liked"
    await session.flush()
    return action, len(w.likes)


async def add_comment(session: AsyncSession, workout_id: int, user_id: int, text: str) -> WorkoutComment:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment text is required")
    w = await get_visible_workout(session, workout_id, user_id)
    comment = WorkoutComment(user_id=user_id, text=text, created_at=datetime.now(timezone.utc))
    w.comments.append(comment)
    await session.flush()
    return comment
