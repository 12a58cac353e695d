"""Workouts API: create/list/read/update/delete, stats summary, public feed, likes and comments."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.api.deps import get_current_user, get_rule_engine, success
from trainingapp.config import settings
from trainingapp.db.session import get_db
from trainingapp.models.user import User
from trainingapp.schemas.pagination import PageInfo
from trainingapp.schemas.workout import CommentCreate, WorkoutCreate, WorkoutUpdate
from trainingapp.services.achievement_engine import AchievementRuleEngine
from trainingapp.services.achievements import achievement_to_dict, recent_achievements
from trainingapp.services.audit import AuditAction, log_action
from trainingapp.services.workout_pipeline import record_workout, remove_workout
from trainingapp.services.workout_stats import (
    breakdown_by_type,
    daily_trends,
    period_start,
    personal_bests,
    summarize,
)
from trainingapp.services.workout_store import (
    WorkoutFilter,
    add_comment,
    comment_to_dict,
    get_visible_workout,
    list_workouts,
    public_feed,
    toggle_like,
    update_workout,
    workout_to_dict,
)

router = APIRouter(prefix="/workouts", tags=["workouts"])

Page = Annotated[int, Query(ge=1)]
Limit = Annotated[int | None, Query(ge=1)]


def _page_size(limit: int | None) -> int:
    return min(limit or settings.default_page_size, settings.max_page_size)


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post(
    "",
    status_code=201,
    summary="Log a workout",
    responses={400: {"description": "Invalid workout"}, 401: {"description": "Not authenticated"}},
)
async def create_workout_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[AchievementRuleEngine, Depends(get_rule_engine)],
    body: WorkoutCreate,
) -> dict:
    """Create a workout, update the caller's stats and return any achievements it unlocked."""
    result = await record_workout(session, user, body, engine)
    return success(result, message="Workout created successfully")


@router.get("", summary="List my workouts")
async def list_workouts_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    page: Page = 1,
    limit: Limit = None,
    type: str | None = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="endDate")] = None,
    sort_by: Annotated[str, Query(alias="sortBy")] = "startTime",
    sort_order: Annotated[str, Query(alias="sortOrder")] = "desc",
    search: str | None = None,
) -> dict:
    """Paginated list of the caller's workouts, with totals for the whole filtered set."""
    size = _page_size(limit)
    flt = WorkoutFilter(user_id=user.id, type=type, start=start_date, end=end_date, search=search)
    rows, total = await list_workouts(session, flt, page=page, limit=size, sort_by=sort_by, sort_order=sort_order)
    return success(
        {
            "workouts": [workout_to_dict(w) for w in rows],
            "pagination": PageInfo.build(page, size, total).model_dump(),
            "summary": await summarize(session, flt),
        }
    )


@router.get("/stats/summary", summary="Workout statistics for a period")
async def stats_summary(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    period: str = "month",
) -> dict:
    now = datetime.now(timezone.utc)
    since = period_start(period, now)
    recent = await recent_achievements(session, user.id, settings.recent_achievements_limit)
    return success(
        {
            "period": period,
            "stats": await breakdown_by_type(session, user.id, since),
            "personalBests": await personal_bests(session, user.id),
            "recentAchievements": [achievement_to_dict(a) for a in recent],
            "trends": await daily_trends(session, user.id, now, settings.trend_days),
        }
    )


@router.get("/public/feed", summary="Public workouts from all users")
async def public_feed_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    page: Page = 1,
    limit: Limit = None,
    type: str | None = None,
) -> dict:
    size = _page_size(limit)
    rows, total = await public_feed(session, page=page, limit=size, type_=type)
    return success(
        {
            "workouts": [workout_to_dict(w) for w in rows],
            "pagination": PageInfo.build(page, size, total).model_dump(),
        }
    )


@router.get(
    "/{workout_id}",
    summary="Get a workout",
    responses={403: {"description": "Private workout of another user"}, 404: {"description": "Not found"}},
)
async def get_workout_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    workout_id: int,
) -> dict:
    w = await get_visible_workout(session, workout_id, user.id)
    return success(workout_to_dict(w))


@router.patch(
    "/{workout_id}",
    summary="Update name, notes or privacy",
    responses={403: {"description": "Not the owner"}, 404: {"description": "Not found"}},
)
async def update_workout_route(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    workout_id: int,
    body: WorkoutUpdate,
) -> dict:
    w = await update_workout(session, workout_id, user.id, body)
    await log_action(
        session,
        user.id,
        AuditAction.UPDATE,
        "workout",
        workout_id,
        details=body.model_dump(exclude_unset=True, mode="json"),
        ip_address=_client_ip(request),
    )
    return success(workout_to_dict(w), message="Workout updated successfully")


@router.delete(
    "/{workout_id}",
    summary="Delete a workout",
    responses={403: {"description": "Not the owner"}, 404: {"description": "Not found"}},
)
async def delete_workout_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    workout_id: int,
) -> dict:
    """Delete the workout and remove it from the caller's stats. Earned achievements are kept."""
    warnings = await remove_workout(session, user, workout_id)
    return success({"id": workout_id, "warnings": warnings}, message="Workout deleted successfully")


@router.post(
    "/{workout_id}/like",
    summary="Like or unlike a workout",
    responses={403: {"description": "Private workout of another user"}, 404: {"description": "Not found"}},
)
async def like_workout_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    workout_id: int,
) -> dict:
    action, count = await toggle_like(session, workout_id, user.id)
    await log_action(
        session,
        user.id,
        AuditAction.LIKE if action == "liked" else AuditAction.UNLIKE,
        "workout",
        workout_id,
    )
    return success({"action": action, "likes": count}, message=f"Workout {action}")


@router.post(
    "/{workout_id}/comments",
    status_code=201,
    summary="Comment on a workout",
    responses={400: {"description": "Empty comment"}, 404: {"description": "Not found"}},
)
async def comment_workout_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    workout_id: int,
    body: CommentCreate,
) -> dict:
    comment = await add_comment(session, workout_id, user.id, body.text)
    await log_action(session, user.id, AuditAction.COMMENT, "workout", workout_id)
    return success(comment_to_dict(comment), message="Comment added successfully")
