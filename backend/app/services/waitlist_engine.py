"""Capacity and waitlist engine: the only writer of application status.

Every public operation runs in one transaction on the given session: the
reservation row is locked first, confirmed counts are read from the database
after the lock, and the transaction is committed before returning. A stale
version, lock timeout or uniqueness race rolls back and retries once, then
surfaces as ``ConflictError``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.context import SYSTEM_CONTEXT, CallContext
from app.core.errors import (
    AlreadyCancelled,
    CapacityExceeded,
    ConflictError,
    DuplicateApplication,
    MemberNotFound,
    ReservationNotFound,
)
from app.models.activity_log import ActivityType
from app.models.mixins import utcnow
from app.models.reservation import Reservation
from app.models.reservation_application import (
    ACTIVE_STATUSES,
    ApplicationStatus,
    ReservationApplication,
)
from app.services import activity_log_service, application_service, member_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_ATTEMPTS = 2
_RETRYABLE = (StaleDataError, OperationalError, IntegrityError)


async def _in_transaction(
    session: AsyncSession, name: str, operation: Callable[[], Awaitable[T]]
) -> T:
    attempt = 1
    while True:
        try:
            result = await operation()
            await session.commit()
            return result
        except _RETRYABLE as exc:
            await session.rollback()
            if attempt >= _MAX_ATTEMPTS:
                logger.warning("%s failed after %d attempts: %s", name, attempt, exc)
                raise ConflictError() from exc
            logger.info("Retrying %s after %s", name, type(exc).__name__)
            attempt += 1
        except Exception:
            await session.rollback()
            raise


async def lock_reservation(
    session: AsyncSession, reservation_id: int
) -> Reservation | None:
    """Load a reservation holding an exclusive row lock until commit."""
    result = await session.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .with_for_update(of=Reservation)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one_or_none()


async def _require_locked(session: AsyncSession, reservation_id: int) -> Reservation:
    reservation = await lock_reservation(session, reservation_id)
    if reservation is None:
        raise ReservationNotFound()
    return reservation


async def _reload_application(
    session: AsyncSession, application_id: int
) -> ReservationApplication:
    result = await session.execute(
        select(ReservationApplication)
        .where(ReservationApplication.id == application_id)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


async def _target_status(
    session: AsyncSession, reservation: Reservation
) -> ApplicationStatus:
    confirmed = await application_service.count_by_status(
        session, reservation.id, ApplicationStatus.CONFIRMED
    )
    if confirmed < reservation.max_capacity:
        return ApplicationStatus.CONFIRMED
    return ApplicationStatus.WAITING


async def promote(
    session: AsyncSession, reservation: Reservation
) -> list[ReservationApplication]:
    """Confirm the oldest waiters while free slots remain.

    The caller must hold the reservation lock and owns the transaction.
    """
    confirmed = await application_service.count_by_status(
        session, reservation.id, ApplicationStatus.CONFIRMED
    )
    free = reservation.max_capacity - confirmed
    if free <= 0:
        return []
    waiting = await application_service.list_waiting_in_order(
        session, reservation.id, limit=free
    )
    for application in waiting:
        application.status = ApplicationStatus.CONFIRMED
    if waiting:
        await session.flush()
        logger.info(
            "Promoted applications %s on reservation %s",
            [application.id for application in waiting],
            reservation.id,
        )
    return waiting


async def apply(
    session: AsyncSession,
    *,
    member_id: int,
    reservation_id: int,
    note: str | None = None,
    ctx: CallContext = SYSTEM_CONTEXT,
) -> ReservationApplication:
    """Apply a member to a reservation as CONFIRMED or WAITING.

    A previously cancelled application is re-activated in place and keeps its
    original ``applied_at``, so it regains its earlier waitlist position.
    """
    note = note.strip() if note else None

    async def _apply() -> ReservationApplication:
        member = await member_service.get_member(session, member_id)
        if member is None:
            raise MemberNotFound()
        reservation = await _require_locked(session, reservation_id)

        application = await application_service.find_for_member(
            session, member_id=member_id, reservation_id=reservation_id
        )
        if application is not None and application.status in ACTIVE_STATUSES:
            raise DuplicateApplication()

        status = await _target_status(session, reservation)
        if application is not None:
            application.status = status
            if note:
                application.note = note
            application.updated_at = utcnow()
        else:
            application = ReservationApplication(
                member=member,
                reservation=reservation,
                status=status,
                note=note,
                applied_at=utcnow(),
            )
            session.add(application)
        await session.flush()
        return application

    application = await _in_transaction(session, "apply", _apply)
    logger.info(
        "Member %s applied to reservation %s: %s",
        member_id,
        reservation_id,
        application.status.value,
    )
    activity_log_service.record(
        ctx,
        ActivityType.RESERVATION_APPLY,
        f"Applied to reservation {reservation_id}",
        details={
            "application_id": application.id,
            "reservation_id": reservation_id,
            "member_id": member_id,
            "status": application.status.value,
        },
    )
    return application


async def cancel(
    session: AsyncSession,
    application_id: int,
    *,
    ctx: CallContext = SYSTEM_CONTEXT,
) -> ReservationApplication:
    """Cancel an application; a freed seat goes to the oldest waiter."""
    promoted: list[ReservationApplication] = []

    async def _cancel() -> ReservationApplication:
        nonlocal promoted
        application = await application_service.require_application(
            session, application_id
        )
        if application.status == ApplicationStatus.CANCELLED:
            raise AlreadyCancelled()
        reservation = await _require_locked(session, application.reservation_id)
        application = await _reload_application(session, application_id)
        if application.status == ApplicationStatus.CANCELLED:
            raise AlreadyCancelled()

        was_confirmed = application.status == ApplicationStatus.CONFIRMED
        application.status = ApplicationStatus.CANCELLED
        await session.flush()
        promoted = await promote(session, reservation) if was_confirmed else []
        return application

    application = await _in_transaction(session, "cancel", _cancel)
    activity_log_service.record(
        ctx,
        ActivityType.RESERVATION_CANCEL,
        f"Cancelled application {application_id}",
        details={
            "application_id": application_id,
            "reservation_id": application.reservation_id,
            "promoted": [item.id for item in promoted],
        },
    )
    return application


async def set_status(
    session: AsyncSession,
    application_id: int,
    new_status: ApplicationStatus,
    *,
    ctx: CallContext = SYSTEM_CONTEXT,
) -> ReservationApplication:
    """Administrator override of an application's status, bounded by capacity."""

    async def _set_status() -> ReservationApplication:
        application = await application_service.require_application(
            session, application_id
        )
        reservation = await _require_locked(session, application.reservation_id)
        application = await _reload_application(session, application_id)

        application.status = new_status
        await session.flush()
        if new_status in (ApplicationStatus.CANCELLED, ApplicationStatus.WAITING):
            await promote(session, reservation)
        else:
            confirmed = await application_service.count_by_status(
                session, reservation.id, ApplicationStatus.CONFIRMED
            )
            if confirmed > reservation.max_capacity:
                raise CapacityExceeded(
                    f"Reservation {reservation.id} already has "
                    f"{reservation.max_capacity} confirmed applicants"
                )
        return application

    application = await _in_transaction(session, "set_status", _set_status)
    activity_log_service.record(
        ctx,
        ActivityType.RESERVATION_UPDATE,
        f"Set application {application_id} to {new_status.value}",
        details={
            "application_id": application_id,
            "reservation_id": application.reservation_id,
            "status": application.status.value,
        },
    )
    return application
