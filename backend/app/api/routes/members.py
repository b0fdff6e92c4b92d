"""Member registration and management API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.context import CallContext, context_from_request
from app.models.activity_log import ActivityType
from app.models.member import Member, MemberGrade
from app.schemas.member import (
    GradeInfo,
    MemberCreate,
    MemberPage,
    MemberRead,
    MemberStats,
    MemberUpdate,
    PasswordChange,
)
from app.security.permissions import require_admin, require_self_or_admin
from app.services import activity_log_service, member_service

router = APIRouter()


@router.post(
    "",
    response_model=MemberRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register member",
)
async def register_member(
    payload: MemberCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    request: Request,
) -> MemberRead:
    member = await member_service.create_member(session, payload)
    activity_log_service.record(
        context_from_request(request, actor_id=member.id, actor_login_id=member.login_id),
        ActivityType.MEMBER_CREATE,
        "Registered",
    )
    return MemberRead.model_validate(member)


@router.get("", response_model=MemberPage, summary="List members")
async def list_members(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> MemberPage:
    require_admin(current_member)
    return await member_service.list_members_page(session, page=page, size=size)


@router.get("/grades", response_model=list[GradeInfo], summary="Grade catalogue")
async def list_grades() -> list[GradeInfo]:
    return [GradeInfo.from_grade(grade) for grade in MemberGrade]


@router.get("/search", response_model=list[MemberRead], summary="Search members")
async def search_members(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    keyword: Annotated[str, Query(min_length=1)],
) -> list[MemberRead]:
    require_admin(current_member)
    members = await member_service.search_members(session, keyword)
    return [MemberRead.model_validate(member) for member in members]


@router.get(
    "/grade/{grade}", response_model=list[MemberRead], summary="Members by grade"
)
async def list_members_by_grade(
    grade: MemberGrade,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> list[MemberRead]:
    require_admin(current_member)
    members = await member_service.list_by_grade(session, grade)
    return [MemberRead.model_validate(member) for member in members]


@router.get("/{member_id}", response_model=MemberRead, summary="Get member")
async def get_member(
    member_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> MemberRead:
    require_self_or_admin(current_member, member_id)
    return await member_service.get_member_read(session, member_id)


@router.put("/{member_id}", response_model=MemberRead, summary="Update member")
async def update_member(
    member_id: int,
    payload: MemberUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> MemberRead:
    require_self_or_admin(current_member, member_id)
    member = await member_service.require_member(session, member_id)
    member = await member_service.update_member(
        session, member, payload, allow_grade=current_member.is_admin
    )
    activity_log_service.record(
        ctx,
        ActivityType.MEMBER_UPDATE,
        f"Updated member {member_id}",
        details={"fields": sorted(payload.model_fields_set)},
    )
    return MemberRead.model_validate(member)


@router.put("/{member_id}/grade", response_model=MemberRead, summary="Change grade")
async def change_grade(
    member_id: int,
    grade: MemberGrade,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> MemberRead:
    require_admin(current_member)
    member = await member_service.require_member(session, member_id)
    previous = member.grade
    member = await member_service.change_grade(session, member, grade)
    activity_log_service.record(
        ctx,
        ActivityType.GRADE_UPGRADE,
        f"Grade of member {member_id} changed",
        details={"from": previous.value, "to": grade.value},
    )
    return MemberRead.model_validate(member)


@router.put(
    "/{member_id}/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
)
async def change_password(
    member_id: int,
    payload: PasswordChange,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> None:
    require_self_or_admin(current_member, member_id)
    member = await member_service.require_member(session, member_id)
    await member_service.change_password(
        session,
        member,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    activity_log_service.record(ctx, ActivityType.MEMBER_UPDATE, "Changed password")
    return None


@router.delete(
    "/{member_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete member"
)
async def delete_member(
    member_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> None:
    require_admin(current_member)
    await member_service.delete_member(session, member_id)
    activity_log_service.record(
        ctx,
        ActivityType.MEMBER_DELETE,
        f"Deleted member {member_id}",
        details={"member_id": member_id},
    )
    return None


@router.get("/{member_id}/stats", response_model=MemberStats, summary="Member stats")
async def member_stats(
    member_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> MemberStats:
    require_self_or_admin(current_member, member_id)
    member = await member_service.require_member(session, member_id)
    return await member_service.member_stats(session, member)
