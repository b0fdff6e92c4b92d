"""Bounded fire-and-forget queue that persists activity log records."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from app.core.config import get_settings
from app.db.session import get_sessionmaker
from app.models.activity_log import ActivityLog, ActivityType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityRecord:
    """Detached activity data; safe to hand across tasks."""

    activity_type: ActivityType
    description: str | None = None
    member_id: int | None = None
    member_login_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    request_uri: str | None = None
    http_method: str | None = None
    correlation_id: str | None = None
    details: dict[str, Any] | None = field(default=None)


RecordWriter = Callable[[ActivityRecord], Awaitable[None]]


async def persist_record(record: ActivityRecord) -> None:
    """Write one record using its own session."""
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        session.add(
            ActivityLog(
                member_id=record.member_id,
                member_login_id=record.member_login_id,
                activity_type=record.activity_type,
                description=record.description,
                ip_address=record.ip_address,
                user_agent=(record.user_agent or "")[:500] or None,
                request_uri=record.request_uri,
                http_method=record.http_method,
                correlation_id=record.correlation_id,
                details=record.details,
            )
        )
        await session.commit()


class ActivityLogQueue:
    """Bounded queue drained by a small pool of worker tasks.

    ``submit`` never blocks and never raises. When the queue is full the
    oldest pending record is discarded, ``dropped_count`` is incremented and
    a warning is logged.
    """

    def __init__(
        self,
        *,
        maxsize: int = 100,
        workers: int = 2,
        writer: RecordWriter | None = None,
    ) -> None:
        self.maxsize = maxsize
        self.worker_count = workers
        self.dropped_count = 0
        self._writer = writer or persist_record
        self._queue: asyncio.Queue[ActivityRecord] = asyncio.Queue(maxsize=maxsize)
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, record: ActivityRecord) -> bool:
        """Enqueue a record; returns False when an older record had to be dropped."""
        try:
            self._queue.put_nowait(record)
            return True
        except asyncio.QueueFull:
            pass

        try:
            dropped = self._queue.get_nowait()
            self._queue.task_done()
        except asyncio.QueueEmpty:  # pragma: no cover - workers raced us
            dropped = None
        self.dropped_count += 1
        logger.warning(
            "Activity log queue full (maxsize=%d, dropped=%d); discarded oldest %s record",
            self.maxsize,
            self.dropped_count,
            dropped.activity_type.value if dropped else "unknown",
        )
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:  # pragma: no cover - single event loop
            self.dropped_count += 1
        return False

    def start(self) -> None:
        """Spawn the worker tasks on the running loop."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._work(), name=f"activity-log-worker-{index}")
            for index in range(self.worker_count)
        ]

    async def _work(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self._writer(record)
            except Exception:
                logger.exception(
                    "Failed to persist %s activity record", record.activity_type.value
                )
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued record has been handled."""
        await self._queue.join()

    async def stop(self, *, timeout: float = 5.0) -> None:
        """Flush pending records (bounded by ``timeout``) and stop the workers."""
        if self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=timeout)
            except TimeoutError:
                logger.warning(
                    "Stopping activity log workers with %d records pending",
                    self._queue.qsize(),
                )
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def clear(self) -> None:
        """Discard pending records (mainly for tests)."""
        while True:
            try:
                self._queue.get_nowait()
                self._queue.task_done()
            except asyncio.QueueEmpty:
                break


def _build_queue() -> ActivityLogQueue:
    settings = get_settings()
    return ActivityLogQueue(
        maxsize=settings.activity_log_queue_size,
        workers=settings.activity_log_workers,
    )


default_queue = _build_queue()
