"""User endpoints: aggregate stats of the caller, seed user (dev)."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.api.deps import get_current_user, success
from trainingapp.config import settings
from trainingapp.core.auth import create_access_token
from trainingapp.db.session import get_db
from trainingapp.models.user import User
from trainingapp.services.user_stats import load_aggregate, new_stats_row

router = APIRouter(prefix="/users", tags=["users"])

DEV_SEED_EMAIL = "default@trainingapp.local"


class SeedUserBody(BaseModel):
    email: str = Field(DEV_SEED_EMAIL, max_length=255)
    name: str | None = Field("Default User", max_length=128)


@router.get("/me/stats", summary="My aggregate stats")
async def my_stats(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> dict:
    stats = await load_aggregate(session, user.id)
    return success(stats.model_dump(mode="json"))


@router.post(
    "/seed",
    summary="Seed a user (debug only)",
    responses={404: {"description": "Only when debug=True"}},
)
async def seed_user(
    session: Annotated[AsyncSession, Depends(get_db)],
    body: SeedUserBody | None = None,
) -> dict:
    """Create a user with its zero stats row and return a bearer token for it. Only when debug=True."""
    if not settings.debug:
        raise HTTPException(status_code=404, detail="Not found")
    body = body or SeedUserBody()
    email = body.email.strip().lower()
    r = await session.execute(select(User).where(User.email == email))
    user = r.scalar_one_or_none()
    created = user is None
    if created:
        user = User(email=email, name=body.name)
        session.add(user)
        await session.flush()
        session.add(new_stats_row(user.id))
        await session.flush()
    return success(
        {"id": user.id, "email": user.email, "access_token": create_access_token(user.id, user.email)},
        message="User created" if created else "User already exists",
    )
