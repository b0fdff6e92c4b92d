"""Read projections for reservations and applications."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reservation import Reservation
from app.models.reservation_application import ApplicationStatus, ReservationApplication
from app.schemas.application import ApplicationRead
from app.schemas.location import LocationSummary
from app.schemas.member import MemberSummary
from app.schemas.reservation import ApplicantRead, ReservationBrief, ReservationRead
from app.services import application_service


def reservation_view(
    reservation: Reservation, counts: Mapping[ApplicationStatus, int]
) -> ReservationRead:
    """Combine a reservation with its confirmed and waiting counts."""
    confirmed = counts.get(ApplicationStatus.CONFIRMED, 0)
    waiting = counts.get(ApplicationStatus.WAITING, 0)
    return ReservationRead(
        id=reservation.id,
        title=reservation.title,
        description=reservation.description,
        location=LocationSummary.model_validate(reservation.location),
        max_capacity=reservation.max_capacity,
        creator=MemberSummary.model_validate(reservation.creator),
        reservation_date=reservation.reservation_date,
        reservation_time=reservation.reservation_time,
        confirmed_count=confirmed,
        waiting_count=waiting,
        available_slots=max(0, reservation.max_capacity - confirmed),
        is_fully_booked=confirmed >= reservation.max_capacity,
        version=reservation.version,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
    )


async def build_reservation_views(
    session: AsyncSession, reservations: Sequence[Reservation]
) -> list[ReservationRead]:
    """Project a batch of reservations with one aggregate count query."""
    counts = await application_service.status_counts_by_reservation(
        session, [reservation.id for reservation in reservations]
    )
    return [
        reservation_view(reservation, counts.get(reservation.id, {}))
        for reservation in reservations
    ]


async def build_reservation_view(
    session: AsyncSession, reservation: Reservation
) -> ReservationRead:
    views = await build_reservation_views(session, [reservation])
    return views[0]


def reservation_brief(reservation: Reservation) -> ReservationBrief:
    return ReservationBrief(
        id=reservation.id,
        title=reservation.title,
        reservation_date=reservation.reservation_date,
        reservation_time=reservation.reservation_time,
        location_name=reservation.location.name,
    )


def application_view(application: ReservationApplication) -> ApplicationRead:
    return ApplicationRead(
        id=application.id,
        member=MemberSummary.model_validate(application.member),
        reservation=reservation_brief(application.reservation),
        status=application.status,
        note=application.note,
        applied_at=application.applied_at,
        updated_at=application.updated_at,
        version=application.version,
    )


async def list_applicants(
    session: AsyncSession, reservation: Reservation
) -> list[ApplicantRead]:
    """Every application of a reservation, oldest first, flagged for the creator."""
    applications = await application_service.list_by_reservation(session, reservation.id)
    return [
        ApplicantRead(
            application_id=application.id,
            member=MemberSummary.model_validate(application.member),
            status=application.status,
            status_description=application.status.description,
            note=application.note,
            applied_at=application.applied_at,
            is_creator=application.member_id == reservation.creator_id,
        )
        for application in applications
    ]
