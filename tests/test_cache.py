from __future__ import annotations

import threading

from ev_route_planner.services.cache import DjangoPlanCache, MemoryPlanCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_memory_cache_expires_entries_after_ttl() -> None:
    clock = FakeClock()
    store = MemoryPlanCache(clock=clock)

    store.set("trip", {"stops": 2}, ttl_seconds=300)
    clock.now += 299
    assert store.get("trip") == {"stops": 2}

    clock.now += 1
    assert store.get("trip") is None
    assert len(store) == 0


def test_memory_cache_evict_and_overwrite() -> None:
    store = MemoryPlanCache()

    store.set("trip", "first", ttl_seconds=60)
    store.set("trip", "second", ttl_seconds=60)
    assert store.get("trip") == "second"

    store.evict("trip")
    store.evict("missing")
    assert store.get("trip") is None


def test_memory_cache_concurrent_writers_leave_one_whole_value() -> None:
    store = MemoryPlanCache()
    barrier = threading.Barrier(8)
    torn: list[object] = []

    def writer(value: int) -> None:
        barrier.wait()
        for _ in range(200):
            store.set("trip", (value, value), ttl_seconds=60)
            cached = store.get("trip")
            if cached[0] != cached[1]:
                torn.append(cached)

    threads = [threading.Thread(target=writer, args=(value,)) for value in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert torn == []
    first, second = store.get("trip")
    assert first == second
    assert len(store) == 1


def test_django_cache_store_round_trip() -> None:
    store = DjangoPlanCache(prefix="test-plan")

    store.set("trip", {"stops": 1}, ttl_seconds=60)
    assert store.get("trip") == {"stops": 1}

    store.evict("trip")
    assert store.get("trip") is None
