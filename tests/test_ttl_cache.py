"""TTL cache tests."""

from __future__ import annotations

from app.utils import ttl_cache
from app.utils.ttl_cache import TTLCache


def test_entries_expire(monkeypatch) -> None:
    clock = [100.0]
    monkeypatch.setattr(ttl_cache.time, "monotonic", lambda: clock[0])
    cache = TTLCache(max_entries=10)

    cache.set("token", "user", ttl_seconds=15)
    assert cache.get("token") == "user"

    clock[0] += 15
    assert cache.get("token") is None


def test_zero_ttl_disables_caching() -> None:
    cache = TTLCache(max_entries=10)
    cache.set("key", True, ttl_seconds=0)
    assert cache.get("key") is None


def test_oldest_entry_is_evicted_when_full() -> None:
    cache = TTLCache(max_entries=2)
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("a") is None
    assert (cache.get("b"), cache.get("c")) == (2, 3)
    assert len(cache) == 2
