"""Audit trail for user-initiated changes to workouts and achievements."""

from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.models.audit_log import AuditLog


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LIKE = "like"
    UNLIKE = "unlike"
    COMMENT = "comment"
    SHARE = "share"


async def log_action(
    session: AsyncSession,
    user_id: int | None,
    action: AuditAction,
    resource: str,
    resource_id: int | str | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
) -> None:
    session.add(
        AuditLog(
            user_id=user_id,
            action=action.value,
            resource=resource,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details,
            ip_address=ip_address,
        )
    )
    await session.flush()
