"""Reservation management API."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.context import CallContext
from app.models.member import Member
from app.schemas.reservation import (
    ApplicantRead,
    ReservationCreate,
    ReservationRead,
    ReservationUpdate,
)
from app.services import projection_service, reservation_service

router = APIRouter()


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
)
async def create_reservation(
    payload: ReservationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> ReservationRead:
    """Create a reservation; the creator is seated as a confirmed applicant."""
    reservation = await reservation_service.create_reservation(
        session, payload, creator_id=current_member.id, ctx=ctx
    )
    return await projection_service.build_reservation_view(session, reservation)


@router.get("", response_model=list[ReservationRead], summary="List reservations")
async def list_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ReservationRead]:
    reservations = await reservation_service.list_reservations(session)
    return await projection_service.build_reservation_views(session, reservations)


@router.get(
    "/available",
    response_model=list[ReservationRead],
    summary="Reservations with free slots",
)
async def list_available_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ReservationRead]:
    reservations = await reservation_service.list_available(session)
    return await projection_service.build_reservation_views(session, reservations)


@router.get(
    "/future", response_model=list[ReservationRead], summary="Upcoming reservations"
)
async def list_future_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ReservationRead]:
    reservations = await reservation_service.list_future(session)
    return await projection_service.build_reservation_views(session, reservations)


@router.get(
    "/search", response_model=list[ReservationRead], summary="Search reservations"
)
async def search_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
    keyword: Annotated[str, Query(min_length=1)],
) -> list[ReservationRead]:
    reservations = await reservation_service.search_reservations(session, keyword)
    return await projection_service.build_reservation_views(session, reservations)


@router.get(
    "/my", response_model=list[ReservationRead], summary="Reservations I created"
)
async def list_my_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ReservationRead]:
    reservations = await reservation_service.list_by_creator(session, current_member.id)
    return await projection_service.build_reservation_views(session, reservations)


@router.get(
    "/date/{reservation_date}",
    response_model=list[ReservationRead],
    summary="Reservations on a date",
)
async def list_reservations_by_date(
    reservation_date: date,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ReservationRead]:
    reservations = await reservation_service.list_by_date(session, reservation_date)
    return await projection_service.build_reservation_views(session, reservations)


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> ReservationRead:
    reservation = await reservation_service.require_reservation(session, reservation_id)
    return await projection_service.build_reservation_view(session, reservation)


@router.put(
    "/{reservation_id}", response_model=ReservationRead, summary="Update reservation"
)
async def update_reservation(
    reservation_id: int,
    payload: ReservationUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> ReservationRead:
    reservation = await reservation_service.update_reservation(
        session, reservation_id, payload, actor=current_member, ctx=ctx
    )
    return await projection_service.build_reservation_view(session, reservation)


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete reservation",
)
async def delete_reservation(
    reservation_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
    ctx: Annotated[CallContext, Depends(deps.get_call_context)],
) -> None:
    await reservation_service.delete_reservation(
        session, reservation_id, actor=current_member, ctx=ctx
    )
    return None


@router.get(
    "/{reservation_id}/applicants",
    response_model=list[ApplicantRead],
    summary="Applicants of a reservation",
)
async def list_applicants(
    reservation_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[ApplicantRead]:
    reservation = await reservation_service.require_reservation(session, reservation_id)
    return await projection_service.list_applicants(session, reservation)
