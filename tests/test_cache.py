from notionlinks.cache import TTLCache
from notionlinks.client.cache import ClientResponseCache, request_key


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_expired_entry_is_dropped_on_lookup():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("a", 1)

    clock.now = 9.9
    assert cache.get("a") == 1

    clock.now = 10
    assert cache.get("a") is None
    assert len(cache) == 0


def test_full_cache_evicts_earliest_insert_not_least_recent_read():
    clock = FakeClock()
    cache = ClientResponseCache(ttl_seconds=100, max_size=3, clock=clock)
    for key in ("a", "b", "c"):
        cache.set(key, key.upper())
    cache.get("a")

    cache.set("d", "D")

    assert cache.keys() == ["b", "c", "d"]
    assert cache.get("a") is None


def test_set_sweeps_expired_entries_before_evicting():
    clock = FakeClock()
    cache = ClientResponseCache(ttl_seconds=10, max_size=2, clock=clock)
    cache.set("old", 1)
    clock.now = 5
    cache.set("fresh", 2)

    clock.now = 12
    cache.set("new", 3)

    assert cache.keys() == ["fresh", "new"]


def test_rewriting_a_key_does_not_evict_others():
    cache = TTLCache(ttl_seconds=100, max_size=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.set("a", 3)

    assert cache.keys() == ["b", "a"]
    assert cache.get("a") == 3


def test_disabled_client_cache_stores_nothing():
    cache = ClientResponseCache(enabled=False)
    cache.set("a", 1)

    assert cache.get("a") is None
    assert len(cache) == 0


def test_clear_empties_cache():
    cache = ClientResponseCache()
    cache.set("a", 1)
    cache.clear()

    assert len(cache) == 0


def test_request_key_is_stable_across_param_order():
    assert request_key("/api/bookmarks", {"page": 1, "limit": 50}) == request_key(
        "/api/bookmarks", {"limit": 50, "page": 1}
    )
    assert request_key("/api/health") == "api_/api/health"
