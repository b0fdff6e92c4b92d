"""Location API endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.member import Member
from app.schemas.location import (
    LocationCreate,
    LocationDetail,
    LocationRead,
    LocationUpdate,
)
from app.security.permissions import require_admin
from app.services import location_service

router = APIRouter()


@router.get("", response_model=list[LocationRead], summary="List active locations")
async def list_locations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> list[LocationRead]:
    locations = await location_service.list_locations(session)
    return [LocationRead.model_validate(location) for location in locations]


@router.get("/all", response_model=list[LocationRead], summary="List all locations")
async def list_all_locations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> list[LocationRead]:
    require_admin(current_member)
    locations = await location_service.list_locations(session, include_inactive=True)
    return [LocationRead.model_validate(location) for location in locations]


@router.get("/search", response_model=list[LocationRead], summary="Search locations")
async def search_locations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
    keyword: Annotated[str, Query(min_length=1)],
) -> list[LocationRead]:
    locations = await location_service.search_locations(session, keyword)
    return [LocationRead.model_validate(location) for location in locations]


@router.get("/{location_id}", response_model=LocationDetail, summary="Get location")
async def get_location(
    location_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _: Annotated[Member, Depends(deps.get_current_member)],
) -> LocationDetail:
    location = await location_service.require_location(session, location_id)
    upcoming = await location_service.count_upcoming_reservations(session, location_id)
    return LocationDetail.model_validate(location).model_copy(
        update={"active_reservation_count": upcoming}
    )


@router.post(
    "",
    response_model=LocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create location",
)
async def create_location(
    payload: LocationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> LocationRead:
    require_admin(current_member)
    location = await location_service.create_location(session, payload)
    return LocationRead.model_validate(location)


@router.put("/{location_id}", response_model=LocationRead, summary="Update location")
async def update_location(
    location_id: int,
    payload: LocationUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> LocationRead:
    require_admin(current_member)
    location = await location_service.require_location(session, location_id)
    location = await location_service.update_location(session, location, payload)
    return LocationRead.model_validate(location)


@router.put(
    "/{location_id}/deactivate",
    response_model=LocationRead,
    summary="Deactivate location",
)
async def deactivate_location(
    location_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> LocationRead:
    require_admin(current_member)
    location = await location_service.require_location(session, location_id)
    location = await location_service.deactivate_location(session, location)
    return LocationRead.model_validate(location)


@router.put(
    "/{location_id}/activate", response_model=LocationRead, summary="Activate location"
)
async def activate_location(
    location_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_member: Annotated[Member, Depends(deps.get_current_member)],
) -> LocationRead:
    require_admin(current_member)
    location = await location_service.require_location(session, location_id)
    location = await location_service.activate_location(session, location)
    return LocationRead.model_validate(location)
