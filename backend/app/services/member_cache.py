"""In-process, best-effort caches for member reads."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from app.core.config import get_settings


@dataclass
class _Entry:
    value: Any
    written_at: float
    accessed_at: float


class TTLCache:
    """LRU-bounded cache with write and access expiry.

    An entry expires ``write_ttl`` seconds after it was stored, or
    ``access_ttl`` seconds after it was last read, whichever comes first.
    """

    def __init__(
        self,
        *,
        max_entries: int,
        write_ttl: float,
        access_ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.write_ttl = write_ttl
        self.access_ttl = access_ttl
        self._clock = clock
        self._entries: OrderedDict[Hashable, _Entry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: _Entry, now: float) -> bool:
        return (
            now - entry.written_at >= self.write_ttl
            or now - entry.accessed_at >= self.access_ttl
        )

    def get(self, key: Hashable) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if self._expired(entry, now):
            del self._entries[key]
            return None
        entry.accessed_at = now
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        now = self._clock()
        self._entries[key] = _Entry(value=value, written_at=now, accessed_at=now)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


def _build_cache() -> TTLCache:
    settings = get_settings()
    return TTLCache(
        max_entries=settings.member_cache_max_entries,
        write_ttl=settings.member_cache_write_ttl_seconds,
        access_ttl=settings.member_cache_access_ttl_seconds,
    )


members_by_id = _build_cache()
member_pages = _build_cache()


def invalidate_member(member_id: int) -> None:
    """Drop a member's cached entry and every cached listing page."""
    members_by_id.invalidate(member_id)
    member_pages.clear()


def clear() -> None:
    """Clear both caches (mainly for tests)."""
    members_by_id.clear()
    member_pages.clear()
