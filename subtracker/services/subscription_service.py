"""
Subscription service: business rules for the Subscription aggregate.

Design notes
------------
- The service holds a ``SubscriptionRepository`` and nothing else: no
  logger, no cache, no session.  Every piece of state lives behind the
  repository, so instances are cheap to build per request.
- Every input is validated before the repository is asked to write
  anything; an invalid request never produces a partial write.
- Errors are raised as the typed exceptions in ``subtracker.exceptions``
  and are never translated or logged here.  Repository failures
  (``StorageError``) and asyncio cancellation / timeouts pass through
  unchanged.
- The only accepted external date shape is ``MM-YYYY``; the token-based
  helpers parse through ``subtracker.dates`` on every path.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from subtracker.dates import ensure_utc, parse_month_year, utcnow
from subtracker.domain import (
    Subscription,
    SubscriptionChanges,
    SubscriptionFilter,
    SubscriptionPatch,
    Summary,
    SummaryQuery,
)
from subtracker.exceptions import InvalidPeriodError, NotFoundError
from subtracker.repositories.base import SubscriptionRepository
from subtracker.services.validation import apply_changes, validate_subscription


class SubscriptionService:
    def __init__(self, repository: SubscriptionRepository) -> None:
        self.repository = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Validate and store *subscription*, then return it as persisted.

        The record is re-read after the write so the caller sees exactly
        what storage holds.  A miss on that re-read is a consistency
        fault and raises ``NotFoundError``.
        """
        validate_subscription(subscription)
        await self.repository.create(subscription)
        return await self.get(subscription.id)

    async def new_subscription(
        self,
        service_name: str,
        price: int,
        user_id: UUID,
        start_date: str,
        end_date: str | None = None,
    ) -> Subscription:
        """
        Build a fresh record from ``MM-YYYY`` tokens and create it.

        Assigns a new id and sets ``created_at == updated_at == now``.
        """
        start = parse_month_year(start_date, field="start_date")
        end = parse_month_year(end_date, field="end_date") if end_date is not None else None
        now = utcnow()
        subscription = Subscription(
            id=uuid4(),
            service_name=service_name,
            price=price,
            user_id=user_id,
            start_date=start,
            end_date=end,
            created_at=now,
            updated_at=now,
        )
        return await self.create(subscription)

    async def update(self, subscription_id: UUID, patch: SubscriptionPatch) -> Subscription:
        """
        Apply *patch* to an existing subscription and return the result.

        The merged record (stored fields overridden by the fields present
        in *patch*) must satisfy every invariant.  ``updated_at`` always
        moves forward, even if the clock does not.
        """
        existing = await self.get(subscription_id)

        start = parse_month_year(patch.start_date, field="start_date") if patch.start_date is not None else None
        end = parse_month_year(patch.end_date, field="end_date") if patch.end_date is not None else None

        previous = ensure_utc(existing.updated_at or existing.created_at)
        changes = SubscriptionChanges(
            updated_at=max(utcnow(), previous + timedelta(microseconds=1)),
            service_name=patch.service_name,
            price=patch.price,
            start_date=start,
            end_date=end,
        )
        apply_changes(existing, changes)

        await self.repository.update(subscription_id, changes)
        return await self.get(subscription_id)

    async def delete(self, subscription_id: UUID) -> None:
        """
        Delete the subscription, raising ``NotFoundError`` if it does not
        exist so callers get a reliable confirmation signal.
        """
        await self.get(subscription_id)
        await self.repository.delete(subscription_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get(self, subscription_id: UUID) -> Subscription:
        subscription = await self.repository.get(subscription_id)
        if subscription is None:
            raise NotFoundError(subscription_id)
        return subscription

    async def list(self, filter: SubscriptionFilter | None = None) -> list[Subscription]:
        """Return matching subscriptions, most recently created first."""
        return await self.repository.list(filter or SubscriptionFilter())

    async def summarize(
        self,
        start_date: datetime,
        end_date: datetime,
        filter: SubscriptionFilter | None = None,
    ) -> Summary:
        """
        Total price and count of subscriptions in ``[start_date, end_date]``.

        See ``SummaryQuery`` for the inclusion rule.  An inverted range
        raises ``InvalidPeriodError`` before storage is touched.
        """
        if ensure_utc(start_date) > ensure_utc(end_date):
            raise InvalidPeriodError()
        query = SummaryQuery(
            start_date=start_date,
            end_date=end_date,
            filter=filter or SubscriptionFilter(),
        )
        return await self.repository.summarize(query)

    async def summarize_tokens(
        self,
        start_date: str,
        end_date: str,
        user_id: UUID | None = None,
        service_name: str | None = None,
    ) -> Summary:
        """``summarize`` taking ``MM-YYYY`` tokens for the range bounds."""
        start = parse_month_year(start_date, field="start_date")
        end = parse_month_year(end_date, field="end_date")
        return await self.summarize(
            start, end, SubscriptionFilter(user_id=user_id, service_name=service_name)
        )
