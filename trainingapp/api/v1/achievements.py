"""Achievements API: earned list, recent, progress, leaderboard, template catalog, sharing."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.api.deps import get_current_user, success
from trainingapp.config import settings
from trainingapp.db.session import get_db
from trainingapp.models.user import User
from trainingapp.services.achievement_catalog import DEFAULT_CATALOG
from trainingapp.services.achievements import (
    achievement_progress,
    achievement_to_dict,
    check_category,
    list_achievements,
    recent_achievements,
    share_achievement,
)
from trainingapp.services.audit import AuditAction, log_action
from trainingapp.services.workout_stats import leaderboard

router = APIRouter(prefix="/achievements", tags=["achievements"])


@router.get("", summary="My achievements")
async def list_achievements_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    category: str | None = None,
) -> dict:
    rows = await list_achievements(session, user.id, category)
    return success(
        {
            "achievements": [achievement_to_dict(a) for a in rows],
            "total": len(rows),
            "totalPoints": sum(a.points or 0 for a in rows),
        }
    )


@router.get("/recent", summary="Most recently earned achievements")
async def recent_achievements_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> dict:
    rows = await recent_achievements(session, user.id, limit or settings.recent_achievements_limit)
    return success([achievement_to_dict(a) for a in rows])


@router.get("/progress", summary="Progress toward every achievement")
async def progress_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> dict:
    return success(await achievement_progress(session, user.id))


@router.get("/leaderboard", summary="Users ranked by achievement points")
async def leaderboard_route(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    category: str | None = None,
    period: str = "all",
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> dict:
    rows = await leaderboard(
        session,
        now=datetime.now(timezone.utc),
        category=category,
        period=period,
        limit=limit or settings.leaderboard_limit,
    )
    return success({"period": period, "category": category, "leaderboard": rows})


@router.get("/templates", summary="Achievement catalog")
async def templates_route(
    user: Annotated[User, Depends(get_current_user)],
    category: str | None = None,
) -> dict:
    return success([t.to_dict() for t in DEFAULT_CATALOG.by_category(check_category(category))])


@router.post(
    "/{achievement_id}/share",
    summary="Share an achievement",
    responses={403: {"description": "Not the owner"}, 404: {"description": "Not found"}},
)
async def share_route(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    achievement_id: int,
) -> dict:
    a = await share_achievement(session, achievement_id, user.id)
    await log_action(
        session,
        user.id,
        AuditAction.SHARE,
        "achievement",
        achievement_id,
        ip_address=request.client.host if request.client else None,
    )
    return success(achievement_to_dict(a), message="Achievement shared successfully")
