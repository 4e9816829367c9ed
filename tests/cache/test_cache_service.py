"""Tests for the TTL cache."""

from __future__ import annotations

import pytest

from assistant_core.cache.service import CacheService


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingProducer:
    """Producer that returns an increasing counter."""

    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> int:
        self.calls += 1
        return self.calls


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheService:
    return CacheService(clock=clock)


@pytest.mark.asyncio
async def test_live_entry_skips_producer(cache: CacheService) -> None:
    producer = CountingProducer()
    assert await cache.get("user_profile:u1", producer) == 1
    assert await cache.get("user_profile:u1", producer) == 1
    assert producer.calls == 1

    stats = cache.get_stats()
    assert (stats.hits, stats.misses, stats.sets) == (1, 1, 1)
    assert stats.hit_rate == 50.0


@pytest.mark.asyncio
async def test_invalidate_forces_producer(cache: CacheService) -> None:
    producer = CountingProducer()
    await cache.get("user_profile:u1", producer)

    assert cache.invalidate("user_profile:u1") is True
    assert cache.invalidate("user_profile:u1") is False
    assert await cache.get("user_profile:u1", producer) == 2


@pytest.mark.asyncio
async def test_force_refresh_always_calls_producer(cache: CacheService) -> None:
    producer = CountingProducer()
    await cache.get("user_projects:u1", producer)

    assert await cache.get("user_projects:u1", producer, force_refresh=True) == 2
    assert await cache.get("user_projects:u1", producer) == 2
    assert producer.calls == 2


@pytest.mark.asyncio
async def test_ttl_by_key_type(cache: CacheService, clock: FakeClock) -> None:
    projects = CountingProducer()
    profile = CountingProducer()
    await cache.get("user_projects:u1", projects)  # 5 minutes
    await cache.get("user_profile:u1", profile)  # 30 minutes

    clock.advance(301)

    assert await cache.get("user_projects:u1", projects) == 2
    assert await cache.get("user_profile:u1", profile) == 1


@pytest.mark.asyncio
async def test_explicit_ttl_and_default(cache: CacheService, clock: FakeClock) -> None:
    cache.set("custom", "short", ttl=10)
    cache.set("unknown_type:1", "default")

    clock.advance(11)
    assert cache.peek("custom") is None
    assert cache.peek("unknown_type:1") == "default"

    clock.advance(300)
    assert cache.peek("unknown_type:1") is None


@pytest.mark.asyncio
async def test_expired_entry_is_a_miss(cache: CacheService, clock: FakeClock) -> None:
    producer = CountingProducer()
    await cache.get("search_projects:u1:web", producer)
    clock.advance(121)

    assert await cache.get("search_projects:u1:web", producer) == 2
    assert cache.get_stats().misses == 2


@pytest.mark.asyncio
async def test_producer_errors_propagate_and_store_nothing(cache: CacheService) -> None:
    async def failing() -> int:
        msg = "backend down"
        raise RuntimeError(msg)

    with pytest.raises(RuntimeError, match="backend down"):
        await cache.get("user_profile:u1", failing)
    assert "user_profile:u1" not in cache
    assert cache.get_stats().sets == 0


def test_evicts_oldest_entry() -> None:
    cache = CacheService(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert cache.peek("a") is None
    assert cache.peek("b") == 2
    assert cache.peek("c") == 3
    assert cache.get_stats().evictions == 1


def test_resetting_a_key_makes_it_newest() -> None:
    cache = CacheService(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.peek("a") == 10
    assert cache.peek("b") is None


def test_invalidate_prefix() -> None:
    cache = CacheService()
    cache.set("user_projects:u1", [])
    cache.set("user_projects:u2", [])
    cache.set("user_profile:u1", {})

    assert cache.invalidate_prefix("user_projects:") == 2
    assert len(cache) == 1


@pytest.mark.parametrize(
    ("entity_type", "entity_id", "dropped", "kept"),
    [
        (
            "project",
            "p1",
            ["project_details:p1", "project_tasks:p1", "user_projects:u1", "dashboard_stats:u1"],
            ["project_details:p2", "chat_conversations:u1"],
        ),
        (
            "task",
            "t1",
            ["project_tasks:p1", "user_tasks:u1", "dashboard_stats:u1"],
            ["project_details:p1", "user_projects:u1"],
        ),
        (
            "conversation",
            "c1",
            ["chat_conversations:u1", "dashboard_stats:u1"],
            ["chat_messages:c1", "user_projects:u1"],
        ),
        (
            "message",
            "c1",
            ["chat_messages:c1", "chat_conversations:u1", "dashboard_stats:u1"],
            ["chat_messages:c2", "user_profile:u1"],
        ),
    ],
)
def test_invalidate_related(
    entity_type: str,
    entity_id: str,
    dropped: list[str],
    kept: list[str],
) -> None:
    cache = CacheService()
    for key in dropped + kept:
        cache.set(key, key)

    assert cache.invalidate_related(entity_type, entity_id) == len(dropped)  # type: ignore[arg-type]
    for key in dropped:
        assert key not in cache
    for key in kept:
        assert key in cache


def test_contains_counts_live_none_values(clock: FakeClock) -> None:
    cache = CacheService(clock=clock)
    cache.set("user_profile:u1", None, ttl=10)
    assert "user_profile:u1" in cache

    clock.advance(11)
    assert "user_profile:u1" not in cache


def test_clear_resets_stats() -> None:
    cache = CacheService()
    cache.set("a", 1)
    cache.clear()

    stats = cache.get_stats()
    assert (stats.size, stats.sets, stats.hits, stats.misses) == (0, 0, 0, 0)
    assert stats.hit_rate == 0.0
    assert stats.max_entries == 1000
