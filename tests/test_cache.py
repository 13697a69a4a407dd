"""
Cache-aside tests for ``CachedSubscriptionRepository``.

The ``CacheManager`` is handed a ``fakeredis`` asyncio client backed by a
private in-process server, so the read-through, invalidation and
degradation paths run against real Redis command semantics without a
Redis server.
"""
import uuid
from unittest.mock import AsyncMock

import fakeredis.aioredis
import pytest
import pytest_asyncio
from redis.exceptions import RedisError

from subtracker.cache import CacheManager, cache_key
from subtracker.dates import parse_month_year
from subtracker.domain import (
    Subscription,
    SubscriptionChanges,
    SubscriptionFilter,
    SummaryQuery,
)
from subtracker.repositories import CachedSubscriptionRepository
from subtracker.services.subscription_service import SubscriptionService


@pytest_asyncio.fixture
async def cache_manager() -> CacheManager:
    manager = CacheManager()
    manager._redis = fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(),
        decode_responses=True,
    )
    yield manager
    await manager.disconnect()


async def _keys(manager: CacheManager) -> list[str]:
    return sorted(await manager._redis.keys("*"))


@pytest.fixture
def cached_repository(repository, cache_manager) -> CachedSubscriptionRepository:
    return CachedSubscriptionRepository(repository, cache_manager, ttl_detail=60, ttl_list=60, ttl_summary=60)


def _subscription(**overrides) -> Subscription:
    fields = dict(
        service_name="Yandex Plus",
        price=400,
        user_id=uuid.uuid4(),
        start_date=parse_month_year("07-2025"),
    )
    fields.update(overrides)
    return Subscription(**fields)


# ---------------------------------------------------------------------------
# Read-through
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_populates_and_hits_cache(cached_repository, cache_manager):
    record = _subscription(end_date=parse_month_year("12-2025"))
    await cached_repository.create(record)

    first = await cached_repository.get(record.id)
    assert cache_key("detail", record.id) in await _keys(cache_manager)

    second = await cached_repository.get(record.id)
    assert second == first
    assert cache_manager.stats["hits"] == 1


@pytest.mark.asyncio
async def test_get_miss_is_not_cached(cached_repository, cache_manager):
    assert await cached_repository.get(uuid.uuid4()) is None
    assert await _keys(cache_manager) == []


@pytest.mark.asyncio
async def test_summary_cached_and_invalidated_by_create(cached_repository):
    query = SummaryQuery(
        start_date=parse_month_year("01-2025"),
        end_date=parse_month_year("12-2025"),
    )
    assert (await cached_repository.summarize(query)).count == 0

    await cached_repository.create(_subscription())
    summary = await cached_repository.summarize(query)
    assert summary.count == 1
    assert summary.total_amount == 400


@pytest.mark.asyncio
async def test_list_invalidated_by_update(cached_repository):
    record = _subscription()
    await cached_repository.create(record)
    assert [s.price for s in await cached_repository.list(SubscriptionFilter())] == [400]

    await cached_repository.update(
        record.id,
        SubscriptionChanges(updated_at=record.updated_at, price=450),
    )
    assert [s.price for s in await cached_repository.list(SubscriptionFilter())] == [450]
    assert (await cached_repository.get(record.id)).price == 450


@pytest.mark.asyncio
async def test_delete_drops_detail_entry(cached_repository, cache_manager):
    record = _subscription()
    await cached_repository.create(record)
    await cached_repository.get(record.id)

    await cached_repository.delete(record.id)
    assert cache_key("detail", record.id) not in await _keys(cache_manager)
    assert await cached_repository.get(record.id) is None


# ---------------------------------------------------------------------------
# Through the service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_service_round_trip_through_cache(cached_repository):
    service = SubscriptionService(cached_repository)
    created = await service.new_subscription(
        service_name="Netflix",
        price=999,
        user_id=uuid.uuid4(),
        start_date="01-2025",
        end_date="06-2025",
    )
    assert await service.get(created.id) == created


# ---------------------------------------------------------------------------
# Degradation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_disabled_cache_is_pass_through(repository):
    manager = CacheManager()
    cached = CachedSubscriptionRepository(repository, manager)
    record = _subscription()
    await cached.create(record)
    assert (await cached.get(record.id)).id == record.id
    assert manager.enabled is False
    assert manager.stats["hits"] == 0


@pytest.mark.asyncio
async def test_redis_failures_fall_back_to_storage(repository, cache_manager, monkeypatch):
    broken = AsyncMock(side_effect=RedisError("connection reset"))
    monkeypatch.setattr(cache_manager._redis, "get", broken)
    monkeypatch.setattr(cache_manager._redis, "set", broken)
    cached = CachedSubscriptionRepository(repository, cache_manager)
    record = _subscription()
    await cached.create(record)

    assert (await cached.get(record.id)).id == record.id
    assert cache_manager.stats["errors"] == 2
    assert cache_manager.stats["misses"] == 1


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

def test_cache_key_layout():
    assert cache_key("detail", "abc") == "subscriptions:detail:abc"
    assert cache_key("summary", "01-2025", "12-2025", "x") == "subscriptions:summary:01-2025:12-2025:x"


def test_filter_fragments_do_not_collide():
    assert SubscriptionFilter().cache_fragment() != SubscriptionFilter(service_name="*").cache_fragment()
    assert SubscriptionFilter(service_name="None").cache_fragment() != SubscriptionFilter().cache_fragment()


@pytest.mark.asyncio
async def test_purge_counts_removed_keys(cache_manager):
    await cache_manager.set(cache_key("list", "a"), [])
    await cache_manager.set(cache_key("list", "b"), [])
    await cache_manager.set(cache_key("detail", "c"), {})
    assert await cache_manager.purge(cache_key("list", "*")) == 2
    assert await _keys(cache_manager) == [cache_key("detail", "c")]
