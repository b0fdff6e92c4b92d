"""Tests for the bounded activity log queue."""

from __future__ import annotations

import asyncio
import logging

import pytest
from sqlalchemy import select

from app.db.session import get_sessionmaker
from app.models import ActivityLog, ActivityType
from app.services.activity_log_queue import ActivityLogQueue, ActivityRecord, persist_record

pytestmark = pytest.mark.asyncio


def _record(index: int) -> ActivityRecord:
    return ActivityRecord(
        activity_type=ActivityType.VIEW,
        description=f"view {index}",
        member_id=index,
    )


async def test_overflow_drops_oldest_record(caplog: pytest.LogCaptureFixture) -> None:
    written: list[ActivityRecord] = []

    async def writer(record: ActivityRecord) -> None:
        written.append(record)

    queue = ActivityLogQueue(maxsize=3, workers=2, writer=writer)
    with caplog.at_level(logging.WARNING, logger="app.services.activity_log_queue"):
        accepted = [queue.submit(_record(index)) for index in range(5)]

    assert accepted == [True, True, True, False, False]
    assert queue.dropped_count == 2
    assert queue.pending() == 3
    assert "queue full" in caplog.text

    queue.start()
    await queue.drain()
    await queue.stop()

    assert [record.description for record in written] == ["view 2", "view 3", "view 4"]
    assert not queue.running


async def test_writer_failures_do_not_stop_workers() -> None:
    written: list[int] = []

    async def flaky(record: ActivityRecord) -> None:
        if record.member_id == 1:
            raise RuntimeError("database down")
        written.append(record.member_id or 0)

    queue = ActivityLogQueue(maxsize=10, workers=2, writer=flaky)
    queue.start()
    for index in range(4):
        queue.submit(_record(index))
    await asyncio.wait_for(queue.drain(), timeout=5)
    await queue.stop()

    assert sorted(written) == [0, 2, 3]


async def test_persist_record_writes_row(reset_database, db_url: str) -> None:
    await persist_record(
        ActivityRecord(
            activity_type=ActivityType.LOGIN,
            description="Logged in",
            member_id=7,
            member_login_id="alice_01",
            ip_address="10.0.0.1",
            details={"source": "test"},
        )
    )

    async with get_sessionmaker(db_url)() as session:
        rows = (await session.execute(select(ActivityLog))).scalars().all()
    assert len(rows) == 1
    assert rows[0].activity_type == ActivityType.LOGIN
    assert rows[0].member_login_id == "alice_01"
    assert rows[0].details == {"source": "test"}
