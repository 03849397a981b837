from shared.cache import TTLCache
from tests.conftest import Clock


def test_entries_expire_after_ttl():
    clock = Clock()
    cache = TTLCache(ttl_seconds=30, clock=clock)
    cache.set("agents", ["a1"])

    clock.advance(30)
    assert cache.get("agents") == ["a1"]

    clock.advance(1)
    assert "agents" not in cache
    assert len(cache) == 0


def test_full_cache_evicts_entry_closest_to_expiry():
    clock = Clock()
    cache = TTLCache(ttl_seconds=60, max_items=2, clock=clock)
    cache.set("voice-1", {"name": "Aria"})
    clock.advance(1)
    cache.set("voice-2", {"name": "Adam"})
    cache.set("voice-2", {"name": "Adam v2"})
    assert len(cache) == 2

    cache.set("voice-3", {"name": "Rachel"})

    assert "voice-1" not in cache
    assert cache.get("voice-2") == {"name": "Adam v2"}
    assert "voice-3" in cache


def test_zero_ttl_disables_caching():
    cache = TTLCache(ttl_seconds=0)
    cache.set("agents", [])
    assert not cache.enabled
    assert cache.get("agents") is None


def test_clear():
    cache = TTLCache()
    cache.set("agents", [])
    cache.clear()
    assert "agents" not in cache
