"""Reservation application endpoints: apply, cancel and status overrides."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.context import CallContext
from app.models.member import Member
from app.models.reservation_application import ApplicationStatus
from app.schemas.application import ApplicationCreate, ApplicationRead
from app.security.permissions import require_admin, require_self_or_admin
from app.services import (
    application_service,
    member_service,
    projection_service,
    reservation_service,
    waitlist_engine,
)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to a reservation",
)
async def apply(
    payload: ApplicationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> ApplicationRead:
    """Seat the applicant when a slot is free, otherwise queue them."""
    member_id = payload.member_id if payload.member_id is not None else current_member.id
    require_self_or_admin(current_member, member_id)
    application = await waitlist_engine.apply(
        session,
        member_id=member_id,
        reservation_id=payload.reservation_id,
        note=payload.note,
        ctx=ctx,
    )
    return projection_service.application_view(application)


@router.get(
    "/my", response_model=list[ApplicationRead], summary="My applications"
)
async def list_my_applications(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ApplicationRead]:
    applications = await application_service.list_by_member(session, current_member.id)
    return [projection_service.application_view(item) for item in applications]


@router.get(
    "/member/{member_id}",
    response_model=list[ApplicationRead],
    summary="Applications of a member",
)
async def list_member_applications(
    member_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ApplicationRead]:
    require_self_or_admin(current_member, member_id)
    await member_service.require_member(session, member_id)
    applications = await application_service.list_by_member(session, member_id)
    return [projection_service.application_view(item) for item in applications]


@router.get(
    "/reservation/{reservation_id}",
    response_model=list[ApplicationRead],
    summary="Applications of a reservation",
)
async def list_reservation_applications(
    reservation_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ApplicationRead]:
    await reservation_service.require_reservation(session, reservation_id)
    applications = await application_service.list_by_reservation(session, reservation_id)
    return [projection_service.application_view(item) for item in applications]


@router.get(
    "/{application_id}", response_model=ApplicationRead, summary="Get application"
)
async def get_application(
    application_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> ApplicationRead:
    application = await application_service.require_application(session, application_id)
    require_self_or_admin(current_member, application.member_id)
    return projection_service.application_view(application)


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel application",
)
async def cancel_application(
    application_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> None:
    """Cancel; a freed confirmed seat goes to the oldest waiter."""
    application = await application_service.require_application(session, application_id)
    require_self_or_admin(current_member, application.member_id)
    await waitlist_engine.cancel(session, application_id, ctx=ctx)
    return None


@router.put(
    "/{application_id}/status",
    response_model=ApplicationRead,
    summary="Override application status",
)
async def set_application_status(
    application_id: int,
    new_status: Annotated[ApplicationStatus, Query(alias="status")],
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> ApplicationRead:
    require_admin(current_member)
    application = await waitlist_engine.set_status(
        session, application_id, new_status, ctx=ctx
    )
    return projection_service.application_view(application)
