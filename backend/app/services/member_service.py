"""Member data access and account management."""
from __future__ import annotations

import logging
import math

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import ConflictError, MemberNotFound, ValidationFailed
from app.core.security import get_password_hash, verify_password
from app.models.member import Member, MemberGrade
from app.models.reservation import Reservation
from app.models.reservation_application import ApplicationStatus
from app.schemas.member import (
    MemberCreate,
    MemberPage,
    MemberRead,
    MemberStats,
    MemberUpdate,
)
from app.services import application_service, member_cache, waitlist_engine

logger = logging.getLogger(__name__)


def is_admin(member: Member) -> bool:
    return member.grade == MemberGrade.ROOSTER


async def get_member(session: AsyncSession, member_id: int) -> Member | None:
    """Return a member by ID."""
    return await session.get(Member, member_id)


async def require_member(session: AsyncSession, member_id: int) -> Member:
    member = await get_member(session, member_id)
    if member is None:
        raise MemberNotFound()
    return member


async def get_member_by_login_id(session: AsyncSession, login_id: str) -> Member | None:
    """Return a member by login id (case-sensitive)."""
    result = await session.execute(select(Member).where(Member.login_id == login_id))
    return result.scalar_one_or_none()


async def login_id_exists(session: AsyncSession, login_id: str) -> bool:
    return await get_member_by_login_id(session, login_id) is not None


async def list_by_grade(session: AsyncSession, grade: MemberGrade) -> list[Member]:
    result = await session.execute(
        select(Member).where(Member.grade == grade).order_by(Member.id.asc())
    )
    return list(result.scalars().all())


async def search_members(session: AsyncSession, keyword: str) -> list[Member]:
    """Case-insensitive substring match over name, email and login id."""
    pattern = f"%{keyword.strip().lower()}%"
    result = await session.execute(
        select(Member)
        .where(
            or_(
                func.lower(Member.name).like(pattern),
                func.lower(func.coalesce(Member.email, "")).like(pattern),
                func.lower(Member.login_id).like(pattern),
            )
        )
        .order_by(Member.id.asc())
    )
    return list(result.scalars().all())


async def save(session: AsyncSession, member: Member) -> Member:
    """Persist pending changes to a member and drop its cache entries."""
    session.add(member)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Login id already in use") from exc
    member_cache.invalidate_member(member.id)
    return member


async def create_member(
    session: AsyncSession,
    payload: MemberCreate,
    *,
    grade: MemberGrade = MemberGrade.EGG,
) -> Member:
    """Register a new member with a hashed password."""
    if await login_id_exists(session, payload.login_id):
        raise ConflictError(f"Login id '{payload.login_id}' is already taken")
    member = Member(
        login_id=payload.login_id,
        password_hash=get_password_hash(payload.password),
        name=payload.name.strip(),
        email=payload.email,
        phone=payload.phone,
        birth_year=payload.birth_year,
        grade=grade,
    )
    await save(session, member)
    logger.info("Registered member %s (%s)", member.id, member.login_id)
    return member


async def update_member(
    session: AsyncSession,
    member: Member,
    payload: MemberUpdate,
    *,
    allow_grade: bool = False,
) -> Member:
    """Apply profile changes; grade changes require ``allow_grade``."""
    changes = payload.model_dump(exclude_unset=True)
    grade = changes.pop("grade", None)
    for field, value in changes.items():
        if field in {"name", "birth_year"} and value is None:
            continue
        setattr(member, field, value)
    if grade is not None and allow_grade:
        member.grade = grade
    return await save(session, member)


async def change_grade(
    session: AsyncSession, member: Member, grade: MemberGrade
) -> Member:
    member.grade = grade
    return await save(session, member)


async def change_password(
    session: AsyncSession,
    member: Member,
    *,
    current_password: str,
    new_password: str,
) -> Member:
    if not verify_password(current_password, member.password_hash):
        raise ValidationFailed(
            "Current password does not match",
            errors={"current_password": "Current password does not match"},
        )
    member.password_hash = get_password_hash(new_password)
    return await save(session, member)


async def delete_member(session: AsyncSession, member_id: int) -> None:
    """Delete a member, their reservations and their applications.

    Seats the member held are handed to the next waiters first.
    """
    member = await require_member(session, member_id)
    try:
        applied = await application_service.reservation_ids_for_member(
            session, member_id
        )
        created = await session.execute(
            select(Reservation.id).where(Reservation.creator_id == member_id)
        )
        created_ids = set(created.scalars().all())

        # reservations are always locked in ascending id order
        locked: dict[int, Reservation] = {}
        for reservation_id in sorted(created_ids.union(applied)):
            reservation = await waitlist_engine.lock_reservation(session, reservation_id)
            if reservation is not None:
                locked[reservation_id] = reservation

        freed = set(
            await application_service.reservation_ids_for_member(
                session, member_id, status=ApplicationStatus.CONFIRMED
            )
        )
        for reservation_id in sorted(created_ids):
            await application_service.delete_for_reservation(session, reservation_id)
            if reservation_id in locked:
                await session.delete(locked[reservation_id])
        await application_service.delete_for_member(session, member_id)
        await session.flush()

        for reservation_id in sorted(freed - created_ids):
            if reservation_id in locked:
                await waitlist_engine.promote(session, locked[reservation_id])

        await session.delete(member)
        await session.commit()
    except (StaleDataError, OperationalError) as exc:
        await session.rollback()
        raise ConflictError() from exc
    except Exception:
        await session.rollback()
        raise
    member_cache.invalidate_member(member_id)
    logger.info("Deleted member %s", member_id)


async def get_member_read(session: AsyncSession, member_id: int) -> MemberRead:
    """Read-through cached member view."""
    cached = member_cache.members_by_id.get(member_id)
    if cached is not None:
        return cached
    member = await require_member(session, member_id)
    view = MemberRead.model_validate(member)
    member_cache.members_by_id.set(member_id, view)
    return view


async def list_members_page(
    session: AsyncSession, *, page: int = 0, size: int = 20
) -> MemberPage:
    """Read-through cached page of members ordered by id."""
    key = (page, size)
    cached = member_cache.member_pages.get(key)
    if cached is not None:
        return cached
    total = int(await session.scalar(select(func.count()).select_from(Member)) or 0)
    result = await session.execute(
        select(Member).order_by(Member.id.asc()).offset(page * size).limit(size)
    )
    view = MemberPage(
        items=[MemberRead.model_validate(member) for member in result.scalars().all()],
        page=page,
        size=size,
        total=total,
        total_pages=math.ceil(total / size) if size else 0,
    )
    member_cache.member_pages.set(key, view)
    return view


async def member_stats(session: AsyncSession, member: Member) -> MemberStats:
    """Application totals and participation rate for a member."""
    counts = await application_service.status_counts_for_member(session, member.id)
    confirmed = counts.get(ApplicationStatus.CONFIRMED, 0)
    waiting = counts.get(ApplicationStatus.WAITING, 0)
    cancelled = counts.get(ApplicationStatus.CANCELLED, 0)
    total = confirmed + waiting + cancelled
    rate = round(confirmed / total * 100, 1) if total else 0.0
    return MemberStats(
        member_id=member.id,
        total_applications=total,
        confirmed_count=confirmed,
        waiting_count=waiting,
        cancelled_count=cancelled,
        participation_rate=rate,
        join_date=member.created_at.date(),
    )
