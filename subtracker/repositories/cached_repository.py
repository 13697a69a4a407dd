"""
Cache-aside decorator for any ``SubscriptionRepository``.

Reads (detail, list, summary) are served from Redis when present and
populated on a miss; every write goes to the wrapped repository first
and then purges the affected entries.  When Redis is down the decorator
is a transparent pass-through (see ``CacheManager``).
"""
from __future__ import annotations

from uuid import UUID

from subtracker.cache import CacheManager, cache_key
from subtracker.dates import format_month_year
from subtracker.domain import (
    Subscription,
    SubscriptionChanges,
    SubscriptionFilter,
    Summary,
    SummaryQuery,
)
from subtracker.repositories.base import SubscriptionRepository


class CachedSubscriptionRepository(SubscriptionRepository):
    def __init__(
        self,
        inner: SubscriptionRepository,
        cache: CacheManager,
        ttl_detail: int | None = None,
        ttl_list: int | None = None,
        ttl_summary: int | None = None,
    ) -> None:
        self.inner = inner
        self.cache = cache
        self.ttl_detail = ttl_detail
        self.ttl_list = ttl_list
        self.ttl_summary = ttl_summary

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, subscription: Subscription) -> None:
        await self.inner.create(subscription)
        await self.cache.invalidate_subscription()

    async def update(self, subscription_id: UUID, changes: SubscriptionChanges) -> None:
        await self.inner.update(subscription_id, changes)
        await self.cache.invalidate_subscription(subscription_id)

    async def delete(self, subscription_id: UUID) -> None:
        await self.inner.delete(subscription_id)
        await self.cache.invalidate_subscription(subscription_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, subscription_id: UUID) -> Subscription | None:
        key = cache_key("detail", subscription_id)
        cached = await self.cache.get(key)
        if cached:
            return Subscription.from_dict(cached)

        subscription = await self.inner.get(subscription_id)
        if subscription is not None:
            await self.cache.set(key, subscription.to_dict(), ttl=self.ttl_detail)
        return subscription

    async def list(self, filter: SubscriptionFilter) -> list[Subscription]:
        key = cache_key("list", filter.cache_fragment())
        cached = await self.cache.get(key)
        if cached is not None:
            return [Subscription.from_dict(item) for item in cached]

        subscriptions = await self.inner.list(filter)
        await self.cache.set(key, [s.to_dict() for s in subscriptions], ttl=self.ttl_list)
        return subscriptions

    async def summarize(self, query: SummaryQuery) -> Summary:
        key = cache_key(
            "summary",
            format_month_year(query.start_date),
            format_month_year(query.end_date),
            query.filter.cache_fragment(),
        )
        cached = await self.cache.get(key)
        if cached:
            return Summary(total_amount=cached["total_amount"], count=cached["count"])

        summary = await self.inner.summarize(query)
        await self.cache.set(
            key,
            {"total_amount": summary.total_amount, "count": summary.count},
            ttl=self.ttl_summary,
        )
        return summary
