"""Administrator access to the activity log."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.activity_log import ActivityType
from app.models.member import Member
from app.schemas.activity_log import ActivityLogPage, ActivityLogRead
from app.security.permissions import require_admin
from app.services import activity_log_service

router = APIRouter()


async def _page(
    session: AsyncSession,
    *,
    page: int,
    size: int,
    activity_type: ActivityType | None = None,
    member_id: int | None = None,
) -> ActivityLogPage:
    items, total = await activity_log_service.list_logs(
        session,
        page=page,
        size=size,
        activity_type=activity_type,
        member_id=member_id,
    )
    return ActivityLogPage(
        items=[ActivityLogRead.model_validate(item) for item in items],
        page=page,
        size=size,
        total=total,
    )


@router.get("", response_model=ActivityLogPage, summary="List activity logs")
async def list_activity_logs(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=200)] = 20,
    activity_type: ActivityType | None = None,
    member_id: int | None = None,
) -> ActivityLogPage:
    require_admin(current_member)
    return await _page(
        session, page=page, size=size, activity_type=activity_type, member_id=member_id
    )


@router.get(
    "/member/{member_id}",
    response_model=ActivityLogPage,
    summary="Activity of one member",
)
async def list_member_activity(
    member_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=200)] = 20,
) -> ActivityLogPage:
    require_admin(current_member)
    return await _page(session, page=page, size=size, member_id=member_id)
