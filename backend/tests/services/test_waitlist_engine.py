"""Capacity and waitlist engine behaviour."""

from __future__ import annotations

import asyncio
import random
from datetime import date, time, timedelta

import pytest
from sqlalchemy import update

from app.core.errors import (
    AlreadyCancelled,
    AppError,
    CapacityExceeded,
    ConflictError,
    DuplicateApplication,
    ValidationFailed,
)
from app.core.security import get_password_hash
from app.db.session import get_sessionmaker
from app.models import ApplicationStatus, Member, MemberGrade, Reservation
from app.schemas.reservation import LocationInput, ReservationCreate, ReservationUpdate
from app.services import (
    application_service,
    location_service,
    member_service,
    reservation_service,
    waitlist_engine,
)

pytestmark = pytest.mark.asyncio

CONFIRMED = ApplicationStatus.CONFIRMED
WAITING = ApplicationStatus.WAITING
CANCELLED = ApplicationStatus.CANCELLED


def _member(login_id: str, grade: MemberGrade = MemberGrade.EGG) -> Member:
    return Member(
        login_id=login_id,
        password_hash=get_password_hash("Passw0rd!"),
        name="Tester",
        birth_year=1990,
        grade=grade,
    )


def _payload(capacity: int) -> ReservationCreate:
    return ReservationCreate(
        title="Board game night",
        description="bring snacks",
        locations=[
            {"name": "Study Room", "address": "Seoul 1F", "url": "https://naver.me/IgJGvT1Y"}
        ],
        max_capacity=capacity,
        reservation_date=date.today() + timedelta(days=3),
        reservation_time=time(19, 0),
    )


async def _setup(db_url: str, *, capacity: int = 2, members: int = 4) -> tuple[int, list[int], int]:
    """Create members (index 0 is the creator), an admin and a reservation."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        people = [_member(f"member_{index}") for index in range(members)]
        admin = _member("admin_user", MemberGrade.ROOSTER)
        session.add_all([*people, admin])
        await session.commit()
        member_ids = [person.id for person in people]
        admin_id = admin.id
        reservation = await reservation_service.create_reservation(
            session, _payload(capacity), creator_id=member_ids[0]
        )
        return reservation.id, member_ids, admin_id


async def _apply(db_url: str, member_id: int, reservation_id: int, note: str | None = None):
    async with get_sessionmaker(db_url)() as session:
        return await waitlist_engine.apply(
            session, member_id=member_id, reservation_id=reservation_id, note=note
        )


async def _application_id(db_url: str, member_id: int, reservation_id: int) -> int:
    async with get_sessionmaker(db_url)() as session:
        application = await application_service.find_for_member(
            session, member_id=member_id, reservation_id=reservation_id
        )
        assert application is not None
        return application.id


async def _cancel(db_url: str, member_id: int, reservation_id: int):
    application_id = await _application_id(db_url, member_id, reservation_id)
    async with get_sessionmaker(db_url)() as session:
        return await waitlist_engine.cancel(session, application_id)


async def _state(db_url: str, reservation_id: int) -> tuple[set[int], list[int]]:
    """Confirmed member ids and waiting member ids in promotion order."""
    async with get_sessionmaker(db_url)() as session:
        applications = await application_service.list_by_reservation(session, reservation_id)
    confirmed = {item.member_id for item in applications if item.status == CONFIRMED}
    waiting = [item.member_id for item in applications if item.status == WAITING]
    return confirmed, waiting


async def _assert_invariants(db_url: str, reservation_id: int) -> None:
    async with get_sessionmaker(db_url)() as session:
        reservation = await reservation_service.require_reservation(session, reservation_id)
        applications = await application_service.list_by_reservation(session, reservation_id)
    confirmed = [item for item in applications if item.status == CONFIRMED]
    waiting = [item for item in applications if item.status == WAITING]
    assert len(confirmed) <= reservation.max_capacity
    if len(confirmed) < reservation.max_capacity:
        assert waiting == []
    active_members = [item.member_id for item in applications if item.status != CANCELLED]
    assert len(active_members) == len(set(active_members))
    ordered = sorted(waiting, key=lambda item: (item.applied_at, item.id))
    assert [item.id for item in ordered] == [item.id for item in waiting]


async def _basic_fill(db_url: str) -> tuple[int, list[int], int]:
    reservation_id, members, admin_id = await _setup(db_url, capacity=2)
    for member_id in members[1:]:
        await _apply(db_url, member_id, reservation_id)
    return reservation_id, members, admin_id


async def test_creator_is_confirmed_on_create(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=3)

    async with get_sessionmaker(db_url)() as session:
        applications = await application_service.list_by_reservation(session, reservation_id)
    assert len(applications) == 1
    assert applications[0].member_id == members[0]
    assert applications[0].status == CONFIRMED
    assert applications[0].note == reservation_service.CREATOR_NOTE


async def test_basic_fill(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)

    confirmed, waiting = await _state(db_url, reservation_id)
    assert confirmed == {members[0], members[1]}
    assert waiting == [members[2], members[3]]
    await _assert_invariants(db_url, reservation_id)


async def test_cancel_promotes_oldest_waiter(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)

    cancelled = await _cancel(db_url, members[0], reservation_id)

    assert cancelled.status == CANCELLED
    confirmed, waiting = await _state(db_url, reservation_id)
    assert confirmed == {members[1], members[2]}
    assert waiting == [members[3]]
    await _assert_invariants(db_url, reservation_id)


async def test_reapply_keeps_original_position(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)
    async with get_sessionmaker(db_url)() as session:
        original = await application_service.find_for_member(
            session, member_id=members[2], reservation_id=reservation_id
        )
    assert original is not None

    await _cancel(db_url, members[2], reservation_id)
    confirmed, waiting = await _state(db_url, reservation_id)
    assert waiting == [members[3]]

    revived = await _apply(db_url, members[2], reservation_id, note="retry")

    assert revived.id == original.id
    assert revived.status == WAITING
    assert revived.note == "retry"
    assert revived.version > original.version
    confirmed, waiting = await _state(db_url, reservation_id)
    assert waiting == [members[2], members[3]]
    async with get_sessionmaker(db_url)() as session:
        reloaded = await application_service.require_application(session, original.id)
    assert reloaded.applied_at == original.applied_at
    await _assert_invariants(db_url, reservation_id)


async def test_reapply_without_note_keeps_previous_note(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=3)
    await _apply(db_url, members[1], reservation_id, note="first")
    await _cancel(db_url, members[1], reservation_id)

    revived = await _apply(db_url, members[1], reservation_id, note="   ")

    assert revived.status == CONFIRMED
    assert revived.note == "first"


async def test_duplicate_apply_is_rejected(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)
    before = await _state(db_url, reservation_id)

    with pytest.raises(DuplicateApplication):
        await _apply(db_url, members[1], reservation_id)
    with pytest.raises(DuplicateApplication):
        await _apply(db_url, members[3], reservation_id)

    assert await _state(db_url, reservation_id) == before


async def test_cancel_twice_is_rejected(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)
    await _cancel(db_url, members[3], reservation_id)

    with pytest.raises(AlreadyCancelled):
        await _cancel(db_url, members[3], reservation_id)


async def test_cancel_waiting_does_not_promote(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)

    await _cancel(db_url, members[2], reservation_id)

    confirmed, waiting = await _state(db_url, reservation_id)
    assert confirmed == {members[0], members[1]}
    assert waiting == [members[3]]


async def test_admin_override_cannot_exceed_capacity(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)
    before = await _state(db_url, reservation_id)
    application_id = await _application_id(db_url, members[3], reservation_id)

    async with get_sessionmaker(db_url)() as session:
        with pytest.raises(CapacityExceeded):
            await waitlist_engine.set_status(session, application_id, CONFIRMED)

    assert await _state(db_url, reservation_id) == before
    await _assert_invariants(db_url, reservation_id)


async def test_admin_cancel_through_set_status_promotes(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)
    application_id = await _application_id(db_url, members[1], reservation_id)

    async with get_sessionmaker(db_url)() as session:
        updated = await waitlist_engine.set_status(session, application_id, CANCELLED)

    assert updated.status == CANCELLED
    confirmed, waiting = await _state(db_url, reservation_id)
    assert confirmed == {members[0], members[2]}
    assert waiting == [members[3]]


async def test_concurrent_apply_for_last_slot(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=1, members=3)
    await _cancel(db_url, members[0], reservation_id)

    results = await asyncio.gather(
        _apply(db_url, members[1], reservation_id),
        _apply(db_url, members[2], reservation_id),
    )

    assert sorted(item.status.value for item in results) == ["CONFIRMED", "WAITING"]
    confirmed, waiting = await _state(db_url, reservation_id)
    assert len(confirmed) == 1
    assert len(waiting) == 1
    await _assert_invariants(db_url, reservation_id)


async def test_apply_then_cancel_restores_confirmed_count(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=2, members=5)
    await _apply(db_url, members[1], reservation_id)

    for member_id in members[2:]:
        before, _ = await _state(db_url, reservation_id)
        await _apply(db_url, member_id, reservation_id)
        await _cancel(db_url, member_id, reservation_id)
        after, _ = await _state(db_url, reservation_id)
        assert len(after) == len(before)


async def test_capacity_increase_promotes_waiters(reset_database, db_url: str) -> None:
    reservation_id, members, admin_id = await _basic_fill(db_url)

    async with get_sessionmaker(db_url)() as session:
        admin = await session.get(Member, admin_id)
        await reservation_service.update_reservation(
            session, reservation_id, ReservationUpdate(max_capacity=3), actor=admin
        )

    confirmed, waiting = await _state(db_url, reservation_id)
    assert confirmed == {members[0], members[1], members[2]}
    assert waiting == [members[3]]


async def test_capacity_cannot_drop_below_confirmed(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)

    async with get_sessionmaker(db_url)() as session:
        creator = await session.get(Member, members[0])
        with pytest.raises(ValidationFailed):
            await reservation_service.update_reservation(
                session, reservation_id, ReservationUpdate(max_capacity=1), actor=creator
            )

    confirmed, _ = await _state(db_url, reservation_id)
    assert len(confirmed) == 2


async def test_update_of_past_reservation_is_rejected(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=2)
    async with get_sessionmaker(db_url)() as session:
        await session.execute(
            update(Reservation)
            .where(Reservation.id == reservation_id)
            .values(reservation_date=date.today() - timedelta(days=3))
        )
        await session.commit()

    async with get_sessionmaker(db_url)() as session:
        creator = await session.get(Member, members[0])
        with pytest.raises(ValidationFailed) as excinfo:
            await reservation_service.update_reservation(
                session, reservation_id, ReservationUpdate(title="Renamed"), actor=creator
            )
    assert "reservation_date" in (excinfo.value.errors or {})

    async with get_sessionmaker(db_url)() as session:
        reservation = await reservation_service.require_reservation(session, reservation_id)
    assert reservation.title == "Board game night"


async def test_location_name_race_maps_to_conflict(
    reset_database, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=2)

    async def _not_found(session, name):
        return None

    # another request created the same name between lookup and insert
    monkeypatch.setattr(location_service, "find_by_name", _not_found)
    payload = _payload(2).model_copy(
        update={
            "locations": [
                LocationInput(
                    name="STUDY ROOM", address="Busan", url="https://naver.me/IgJGvT1Y"
                )
            ]
        }
    )
    async with get_sessionmaker(db_url)() as session:
        with pytest.raises(ConflictError):
            await reservation_service.create_reservation(
                session, payload, creator_id=members[1]
            )

    async with get_sessionmaker(db_url)() as session:
        mine = await reservation_service.list_by_creator(session, members[1])
    assert mine == []


async def test_deleting_confirmed_member_promotes_oldest_waiter(
    reset_database, db_url: str
) -> None:
    reservation_id, members, _ = await _basic_fill(db_url)

    async with get_sessionmaker(db_url)() as session:
        await member_service.delete_member(session, members[1])

    confirmed, waiting = await _state(db_url, reservation_id)
    assert confirmed == {members[0], members[2]}
    assert waiting == [members[3]]
    await _assert_invariants(db_url, reservation_id)


async def test_randomized_operations_preserve_invariants(reset_database, db_url: str) -> None:
    reservation_id, members, _ = await _setup(db_url, capacity=3, members=7)
    rng = random.Random(20240601)
    expected_errors = (DuplicateApplication, AlreadyCancelled, CapacityExceeded)

    for _ in range(60):
        member_id = rng.choice(members)
        operation = rng.choice(["apply", "apply", "cancel", "set_status"])
        try:
            if operation == "apply":
                await _apply(db_url, member_id, reservation_id)
            else:
                async with get_sessionmaker(db_url)() as session:
                    application = await application_service.find_for_member(
                        session, member_id=member_id, reservation_id=reservation_id
                    )
                if application is None:
                    continue
                async with get_sessionmaker(db_url)() as session:
                    if operation == "cancel":
                        await waitlist_engine.cancel(session, application.id)
                    else:
                        await waitlist_engine.set_status(
                            session, application.id, rng.choice(list(ApplicationStatus))
                        )
        except expected_errors:
            pass
        except AppError as exc:  # pragma: no cover - surfaces unexpected failures
            pytest.fail(f"{operation} raised {exc!r}")
        await _assert_invariants(db_url, reservation_id)
