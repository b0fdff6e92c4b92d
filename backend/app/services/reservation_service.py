"""Reservation store queries and the reservation lifecycle."""
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.context import SYSTEM_CONTEXT, CallContext
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    MemberNotFound,
    ReservationNotFound,
    ValidationFailed,
)
from app.models.activity_log import ActivityType
from app.models.member import Member
from app.models.mixins import utcnow
from app.models.reservation import Reservation
from app.models.reservation_application import (
    ApplicationStatus,
    ReservationApplication,
)
from app.schemas.reservation import LocationInput, ReservationCreate, ReservationUpdate
from app.services import (
    activity_log_service,
    application_service,
    location_service,
    member_service,
    waitlist_engine,
)

logger = logging.getLogger(__name__)

CREATOR_NOTE = "reservation creator"


def _ordered(stmt: Select[tuple[Reservation]]) -> Select[tuple[Reservation]]:
    return stmt.order_by(
        Reservation.reservation_date.asc(),
        Reservation.reservation_time.asc(),
        Reservation.id.asc(),
    )


async def _scalars(
    session: AsyncSession, stmt: Select[tuple[Reservation]]
) -> list[Reservation]:
    result = await session.execute(_ordered(stmt))
    return list(result.unique().scalars().all())


async def get_reservation(
    session: AsyncSession, reservation_id: int
) -> Reservation | None:
    result = await session.execute(
        select(Reservation).where(Reservation.id == reservation_id)
    )
    return result.unique().scalar_one_or_none()


async def require_reservation(session: AsyncSession, reservation_id: int) -> Reservation:
    reservation = await get_reservation(session, reservation_id)
    if reservation is None:
        raise ReservationNotFound()
    return reservation


async def list_reservations(session: AsyncSession) -> list[Reservation]:
    """All reservations, earliest first."""
    return await _scalars(session, select(Reservation))


async def list_by_date(session: AsyncSession, on: date) -> list[Reservation]:
    return await _scalars(session, select(Reservation).where(Reservation.reservation_date == on))


async def list_future(
    session: AsyncSession, *, today: date | None = None
) -> list[Reservation]:
    """Reservations dated strictly after today."""
    today = today or date.today()
    return await _scalars(
        session, select(Reservation).where(Reservation.reservation_date > today)
    )


async def list_by_creator(session: AsyncSession, creator_id: int) -> list[Reservation]:
    return await _scalars(
        session, select(Reservation).where(Reservation.creator_id == creator_id)
    )


async def list_available(session: AsyncSession) -> list[Reservation]:
    """Reservations whose confirmed count is below capacity."""
    confirmed = (
        select(
            ReservationApplication.reservation_id.label("reservation_id"),
            func.count(ReservationApplication.id).label("confirmed"),
        )
        .where(ReservationApplication.status == ApplicationStatus.CONFIRMED)
        .group_by(ReservationApplication.reservation_id)
        .subquery()
    )
    stmt = (
        select(Reservation)
        .outerjoin(confirmed, confirmed.c.reservation_id == Reservation.id)
        .where(func.coalesce(confirmed.c.confirmed, 0) < Reservation.max_capacity)
    )
    return await _scalars(session, stmt)


async def search_reservations(session: AsyncSession, keyword: str) -> list[Reservation]:
    """Case-insensitive substring search over title and description."""
    pattern = f"%{keyword.strip().lower()}%"
    stmt = select(Reservation).where(
        or_(
            func.lower(Reservation.title).like(pattern),
            func.lower(func.coalesce(Reservation.description, "")).like(pattern),
        )
    )
    return await _scalars(session, stmt)


def can_edit(reservation: Reservation, actor: Member) -> bool:
    """Only the creator or an administrator may change a reservation."""
    return reservation.creator_id == actor.id or member_service.is_admin(actor)


def _assert_editable(reservation: Reservation, actor: Member) -> None:
    if not can_edit(reservation, actor):
        raise ForbiddenError("Only the creator or an administrator may modify this reservation")


def _assert_not_past(value: date) -> None:
    if value < date.today():
        raise ValidationFailed(
            "Reservation date must be today or later",
            errors={"reservation_date": "Reservation date must be today or later"},
        )


async def _resolve_location(session: AsyncSession, locations: list[LocationInput]):
    if not locations:
        raise ValidationFailed(
            "At least one location is required",
            errors={"locations": "At least one location is required"},
        )
    first = locations[0]
    return await location_service.resolve_or_create(
        session, name=first.name, address=first.address, url=first.url
    )


async def create_reservation(
    session: AsyncSession,
    payload: ReservationCreate,
    *,
    creator_id: int,
    ctx: CallContext = SYSTEM_CONTEXT,
) -> Reservation:
    """Create a reservation and seat its creator as CONFIRMED."""
    _assert_not_past(payload.reservation_date)
    if payload.max_capacity < 1:
        raise ValidationFailed(
            "Capacity must be at least 1",
            errors={"max_capacity": "Capacity must be at least 1"},
        )
    creator = await member_service.get_member(session, creator_id)
    if creator is None:
        raise MemberNotFound()

    try:
        location = await _resolve_location(session, payload.locations)
        reservation = Reservation(
            creator=creator,
            location=location,
            title=payload.title,
            description=payload.description,
            max_capacity=payload.max_capacity,
            reservation_date=payload.reservation_date,
            reservation_time=payload.reservation_time,
        )
        session.add(reservation)
        session.add(
            ReservationApplication(
                member=creator,
                reservation=reservation,
                status=ApplicationStatus.CONFIRMED,
                note=CREATOR_NOTE,
                applied_at=utcnow(),
            )
        )
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Location was created concurrently, please retry") from exc
    except Exception:
        await session.rollback()
        raise

    logger.info("Member %s created reservation %s", creator_id, reservation.id)
    activity_log_service.record(
        ctx,
        ActivityType.RESERVATION_CREATE,
        f"Created reservation '{reservation.title}'",
        details={"reservation_id": reservation.id},
    )
    return reservation


async def update_reservation(
    session: AsyncSession,
    reservation_id: int,
    payload: ReservationUpdate,
    *,
    actor: Member,
    ctx: CallContext = SYSTEM_CONTEXT,
) -> Reservation:
    """Update a reservation; growing capacity promotes waiters immediately."""
    try:
        reservation = await waitlist_engine.lock_reservation(session, reservation_id)
        if reservation is None:
            raise ReservationNotFound()
        _assert_editable(reservation, actor)
        if payload.version is not None and payload.version != reservation.version:
            raise ConflictError("Reservation was modified by someone else")

        changes = payload.model_dump(exclude_unset=True, exclude={"version", "locations"})
        _assert_not_past(changes.get("reservation_date") or reservation.reservation_date)

        new_capacity = changes.get("max_capacity")
        grew = False
        if new_capacity is not None:
            confirmed = await application_service.count_by_status(
                session, reservation.id, ApplicationStatus.CONFIRMED
            )
            if new_capacity < confirmed:
                raise ValidationFailed(
                    "Capacity cannot drop below the confirmed count",
                    errors={
                        "max_capacity": f"{confirmed} applicants are already confirmed"
                    },
                )
            grew = new_capacity > reservation.max_capacity

        if payload.locations:
            reservation.location = await _resolve_location(session, payload.locations)
        for field, value in changes.items():
            if value is None and field != "description":
                continue
            setattr(reservation, field, value)
        await session.flush()
        if grew:
            await waitlist_engine.promote(session, reservation)
        await session.commit()
    except (StaleDataError, OperationalError, IntegrityError) as exc:
        await session.rollback()
        raise ConflictError() from exc
    except Exception:
        await session.rollback()
        raise

    activity_log_service.record(
        ctx,
        ActivityType.RESERVATION_UPDATE,
        f"Updated reservation {reservation_id}",
        details={"reservation_id": reservation_id, "version": reservation.version},
    )
    return reservation


async def delete_reservation(
    session: AsyncSession,
    reservation_id: int,
    *,
    actor: Member,
    ctx: CallContext = SYSTEM_CONTEXT,
) -> None:
    """Delete a reservation together with its applications."""
    try:
        reservation = await waitlist_engine.lock_reservation(session, reservation_id)
        if reservation is None:
            raise ReservationNotFound()
        _assert_editable(reservation, actor)
        await application_service.delete_for_reservation(session, reservation_id)
        await session.delete(reservation)
        await session.commit()
    except (StaleDataError, OperationalError) as exc:
        await session.rollback()
        raise ConflictError() from exc
    except Exception:
        await session.rollback()
        raise

    activity_log_service.record(
        ctx,
        ActivityType.RESERVATION_DELETE,
        f"Deleted reservation {reservation_id}",
        details={"reservation_id": reservation_id},
    )
