"""Helpers for recording and querying member activity."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import CallContext
from app.models.activity_log import ActivityLog, ActivityType
from app.services import activity_log_queue
from app.services.activity_log_queue import ActivityRecord

logger = logging.getLogger(__name__)


def record(
    ctx: CallContext,
    activity_type: ActivityType,
    description: str | None = None,
    *,
    details: dict[str, Any] | None = None,
    member_id: int | None = None,
    member_login_id: str | None = None,
) -> None:
    """Queue an activity record; never raises into the caller."""
    try:
        activity_log_queue.default_queue.submit(
            ActivityRecord(
                activity_type=activity_type,
                description=description,
                member_id=member_id if member_id is not None else ctx.actor_id,
                member_login_id=member_login_id or ctx.actor_login_id,
                ip_address=ctx.remote_address,
                user_agent=ctx.user_agent,
                request_uri=ctx.request_uri,
                http_method=ctx.http_method,
                correlation_id=ctx.correlation_id,
                details=details,
            )
        )
    except Exception:  # pragma: no cover - logging must not break requests
        logger.exception("Failed to queue %s activity", activity_type.value)


def _filtered(
    statement: Any,
    *,
    activity_type: ActivityType | None,
    member_id: int | None,
) -> Any:
    if activity_type is not None:
        statement = statement.where(ActivityLog.activity_type == activity_type)
    if member_id is not None:
        statement = statement.where(ActivityLog.member_id == member_id)
    return statement


async def list_logs(
    session: AsyncSession,
    *,
    page: int = 0,
    size: int = 20,
    activity_type: ActivityType | None = None,
    member_id: int | None = None,
) -> tuple[Sequence[ActivityLog], int]:
    """Return one page of logs (newest first) and the total match count."""
    statement = _filtered(
        select(ActivityLog), activity_type=activity_type, member_id=member_id
    )
    result = await session.execute(
        statement.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset(page * size)
        .limit(size)
    )
    total = await session.scalar(
        _filtered(
            select(func.count()).select_from(ActivityLog),
            activity_type=activity_type,
            member_id=member_id,
        )
    )
    return result.scalars().all(), int(total or 0)
