"""Persistence queries for reservation applications."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ApplicationNotFound
from app.models.reservation_application import (
    ApplicationStatus,
    ReservationApplication,
)


async def get_application(
    session: AsyncSession, application_id: int
) -> ReservationApplication | None:
    result = await session.execute(
        select(ReservationApplication).where(ReservationApplication.id == application_id)
    )
    return result.unique().scalar_one_or_none()


async def require_application(
    session: AsyncSession, application_id: int
) -> ReservationApplication:
    application = await get_application(session, application_id)
    if application is None:
        raise ApplicationNotFound()
    return application


async def find_for_member(
    session: AsyncSession, *, member_id: int, reservation_id: int
) -> ReservationApplication | None:
    """Return the single (member, reservation) row, whatever its status."""
    result = await session.execute(
        select(ReservationApplication).where(
            ReservationApplication.member_id == member_id,
            ReservationApplication.reservation_id == reservation_id,
        )
    )
    return result.unique().scalar_one_or_none()


async def list_by_reservation(
    session: AsyncSession, reservation_id: int
) -> list[ReservationApplication]:
    """All applications for a reservation, oldest first."""
    result = await session.execute(
        select(ReservationApplication)
        .where(ReservationApplication.reservation_id == reservation_id)
        .order_by(
            ReservationApplication.applied_at.asc(), ReservationApplication.id.asc()
        )
    )
    return list(result.unique().scalars().all())


async def list_by_member(
    session: AsyncSession, member_id: int
) -> list[ReservationApplication]:
    """All applications of a member, newest first."""
    result = await session.execute(
        select(ReservationApplication)
        .where(ReservationApplication.member_id == member_id)
        .order_by(
            ReservationApplication.applied_at.desc(), ReservationApplication.id.desc()
        )
    )
    return list(result.unique().scalars().all())


async def count_by_status(
    session: AsyncSession, reservation_id: int, status: ApplicationStatus
) -> int:
    total = await session.scalar(
        select(func.count())
        .select_from(ReservationApplication)
        .where(
            ReservationApplication.reservation_id == reservation_id,
            ReservationApplication.status == status,
        )
    )
    return int(total or 0)


async def list_waiting_in_order(
    session: AsyncSession, reservation_id: int, *, limit: int | None = None
) -> list[ReservationApplication]:
    """WAITING applications in promotion order: applied_at, then id."""
    stmt = (
        select(ReservationApplication)
        .where(
            ReservationApplication.reservation_id == reservation_id,
            ReservationApplication.status == ApplicationStatus.WAITING,
        )
        .order_by(
            ReservationApplication.applied_at.asc(), ReservationApplication.id.asc()
        )
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.unique().scalars().all())


async def status_counts_by_reservation(
    session: AsyncSession, reservation_ids: Iterable[int]
) -> dict[int, dict[ApplicationStatus, int]]:
    """Per-reservation status counts for a batch of ids, in one GROUP BY query."""
    ids = list(dict.fromkeys(reservation_ids))
    counts: dict[int, dict[ApplicationStatus, int]] = defaultdict(dict)
    if not ids:
        return counts
    result = await session.execute(
        select(
            ReservationApplication.reservation_id,
            ReservationApplication.status,
            func.count(ReservationApplication.id),
        )
        .where(ReservationApplication.reservation_id.in_(ids))
        .group_by(ReservationApplication.reservation_id, ReservationApplication.status)
    )
    for reservation_id, status, total in result.all():
        counts[reservation_id][status] = int(total)
    return counts


async def status_counts_for_member(
    session: AsyncSession, member_id: int
) -> dict[ApplicationStatus, int]:
    result = await session.execute(
        select(ReservationApplication.status, func.count(ReservationApplication.id))
        .where(ReservationApplication.member_id == member_id)
        .group_by(ReservationApplication.status)
    )
    return {status: int(total) for status, total in result.all()}


async def reservation_ids_for_member(
    session: AsyncSession, member_id: int, *, status: ApplicationStatus | None = None
) -> list[int]:
    """Distinct reservation ids the member applied to, ascending."""
    stmt = select(ReservationApplication.reservation_id).where(
        ReservationApplication.member_id == member_id
    )
    if status is not None:
        stmt = stmt.where(ReservationApplication.status == status)
    result = await session.execute(
        stmt.distinct().order_by(ReservationApplication.reservation_id.asc())
    )
    return list(result.scalars().all())


async def delete_for_reservation(session: AsyncSession, reservation_id: int) -> None:
    await session.execute(
        delete(ReservationApplication).where(
            ReservationApplication.reservation_id == reservation_id
        )
    )


async def delete_for_member(session: AsyncSession, member_id: int) -> None:
    await session.execute(
        delete(ReservationApplication).where(
            ReservationApplication.member_id == member_id
        )
    )
