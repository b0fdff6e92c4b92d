"""Location management services."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, LocationNotFound, ValidationFailed
from app.models.location import Location
from app.models.reservation import Reservation
from app.schemas.location import LocationCreate, LocationUpdate

logger = logging.getLogger(__name__)

AUTO_CREATED_DESCRIPTION = "auto-created"


async def list_locations(
    session: AsyncSession, *, include_inactive: bool = False
) -> list[Location]:
    """Return locations ordered by name; active ones only unless asked."""
    stmt: Select[tuple[Location]] = select(Location)
    if not include_inactive:
        stmt = stmt.where(Location.is_active.is_(True))
    result = await session.execute(stmt.order_by(Location.name.asc()))
    return list(result.scalars().all())


async def search_locations(session: AsyncSession, keyword: str) -> list[Location]:
    """Case-insensitive substring search over active names and addresses."""
    pattern = f"%{keyword.strip().lower()}%"
    result = await session.execute(
        select(Location)
        .where(
            Location.is_active.is_(True),
            or_(
                func.lower(Location.name).like(pattern),
                func.lower(func.coalesce(Location.address, "")).like(pattern),
            ),
        )
        .order_by(Location.name.asc())
    )
    return list(result.scalars().all())


async def get_location(session: AsyncSession, location_id: int) -> Location | None:
    return await session.get(Location, location_id)


async def require_location(session: AsyncSession, location_id: int) -> Location:
    location = await get_location(session, location_id)
    if location is None:
        raise LocationNotFound()
    return location


async def find_by_name(session: AsyncSession, name: str) -> Location | None:
    result = await session.execute(
        select(Location).where(func.lower(Location.name) == name.strip().lower())
    )
    return result.scalar_one_or_none()


async def count_upcoming_reservations(
    session: AsyncSession, location_id: int, *, today: date | None = None
) -> int:
    """Number of reservations at this location dated today or later."""
    today = today or date.today()
    total = await session.scalar(
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.location_id == location_id,
            Reservation.reservation_date >= today,
        )
    )
    return int(total or 0)


async def create_location(session: AsyncSession, payload: LocationCreate) -> Location:
    """Create a new location; names are unique regardless of case."""
    if await find_by_name(session, payload.name) is not None:
        raise ConflictError(f"Location '{payload.name}' already exists")
    location = Location(**payload.model_dump(), is_active=True)
    session.add(location)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(f"Location '{payload.name}' already exists") from exc
    logger.info("Created location %s (%s)", location.id, location.name)
    return location


async def update_location(
    session: AsyncSession,
    location: Location,
    payload: LocationUpdate,
) -> Location:
    """Update mutable fields on a location."""
    changes = payload.model_dump(exclude_unset=True)
    new_name = changes.get("name")
    if new_name is not None and new_name.lower() != location.name.lower():
        if await find_by_name(session, new_name) is not None:
            raise ConflictError(f"Location '{new_name}' already exists")
    for field, value in changes.items():
        if field in {"name", "url"} and value is None:
            continue
        setattr(location, field, value)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Location name already in use") from exc
    return location


async def deactivate_location(session: AsyncSession, location: Location) -> Location:
    """Hide a location; refused while upcoming reservations still use it."""
    upcoming = await count_upcoming_reservations(session, location.id)
    if upcoming:
        raise ConflictError(
            f"Location has {upcoming} current or future reservation(s) and cannot be deactivated"
        )
    location.is_active = False
    await session.commit()
    return location


async def activate_location(session: AsyncSession, location: Location) -> Location:
    location.is_active = True
    await session.commit()
    return location


async def resolve_or_create(
    session: AsyncSession,
    *,
    name: str,
    address: str | None,
    url: str,
) -> Location:
    """Find a location by case-insensitive (name, address) or create it.

    Does not commit; the caller owns the transaction.
    """
    name = name.strip()
    address = address.strip() if address else None
    if address is None:
        location = await find_by_name(session, name)
    else:
        result = await session.execute(
            select(Location).where(
                func.lower(Location.name) == name.lower(),
                func.lower(func.coalesce(Location.address, "")) == address.lower(),
            )
        )
        location = result.scalar_one_or_none()
    if location is not None:
        if not location.is_active:
            raise ValidationFailed(
                "Location is not active",
                errors={"locations": f"Location '{location.name}' is not active"},
            )
        return location

    if await find_by_name(session, name) is not None:
        raise ValidationFailed(
            "Location name already used with a different address",
            errors={"locations": f"Location '{name}' exists with a different address"},
        )

    location = Location(
        name=name,
        address=address,
        url=url,
        description=AUTO_CREATED_DESCRIPTION,
        is_active=True,
    )
    session.add(location)
    await session.flush()
    logger.info("Auto-created location %s (%s)", location.id, location.name)
    return location
