"""FastAPI dependencies: current user from JWT, the shared rule engine, response envelope."""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.core.auth import decode_token, user_id_from_claims
from trainingapp.db.session import get_db
from trainingapp.models.user import User
from trainingapp.services.achievement_engine import AchievementRuleEngine

_rule_engine = AchievementRuleEngine()


async def get_current_user(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = auth_header[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = user_id_from_claims(payload)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    r = await session.execute(select(User).where(User.id == user_id))
    user = r.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_rule_engine() -> AchievementRuleEngine:
    return _rule_engine


def success(data: Any = None, message: str | None = None) -> dict:
    """Success envelope: {"status": "success", "data": ..., "message": ...}."""
    out: dict[str, Any] = {"status": "success", "data": data}
    if message:
        out["message"] = message
    return out
