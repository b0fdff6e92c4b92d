"""Tests for the member read cache."""

from __future__ import annotations

from app.services.member_cache import TTLCache


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _cache(clock: _FakeClock, *, max_entries: int = 10) -> TTLCache:
    return TTLCache(max_entries=max_entries, write_ttl=1800, access_ttl=600, clock=clock)


def test_entry_expires_after_idle_period() -> None:
    clock = _FakeClock()
    cache = _cache(clock)
    cache.set(1, "alice")

    clock.now += 599
    assert cache.get(1) == "alice"
    clock.now += 599
    assert cache.get(1) == "alice"
    clock.now += 600
    assert cache.get(1) is None
    assert len(cache) == 0


def test_entry_expires_after_write_ttl_even_when_read() -> None:
    clock = _FakeClock()
    cache = _cache(clock)
    cache.set("page", [1, 2])

    for _ in range(3):
        clock.now += 500
        assert cache.get("page") == [1, 2]
    clock.now += 300
    assert cache.get("page") is None


def test_least_recently_used_entry_is_evicted() -> None:
    clock = _FakeClock()
    cache = _cache(clock, max_entries=2)
    cache.set(1, "one")
    cache.set(2, "two")
    assert cache.get(1) == "one"

    cache.set(3, "three")

    assert cache.get(2) is None
    assert cache.get(1) == "one"
    assert cache.get(3) == "three"


def test_invalidate_and_clear() -> None:
    cache = _cache(_FakeClock())
    cache.set(1, "one")
    cache.set(2, "two")

    cache.invalidate(1)
    assert cache.get(1) is None
    cache.clear()
    assert len(cache) == 0
