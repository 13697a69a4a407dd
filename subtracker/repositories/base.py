"""
Persistence port for the Subscription aggregate.

The domain service talks to storage only through this interface.  It
carries no decision logic: implementations store what they are given and
execute the structured filter / summary queries they receive.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from subtracker.domain import (
    Subscription,
    SubscriptionChanges,
    SubscriptionFilter,
    Summary,
    SummaryQuery,
)


class SubscriptionRepository(ABC):
    """
    Interface for subscription persistence operations.

    Implementations raise ``StorageError`` for failures the domain cannot
    interpret and must let ``asyncio.CancelledError`` / ``TimeoutError``
    propagate untouched.
    """

    @abstractmethod
    async def create(self, subscription: Subscription) -> None:
        """
        Persist a new subscription.

        Args:
            subscription: Fully validated record with its id assigned
        """

    @abstractmethod
    async def get(self, subscription_id: UUID) -> Subscription | None:
        """
        Fetch a subscription by id.

        Returns:
            The stored record, or None when no such id exists
        """

    @abstractmethod
    async def update(self, subscription_id: UUID, changes: SubscriptionChanges) -> None:
        """
        Apply a partial write.  Only the fields present in *changes* are
        modified; ``updated_at`` is always written.
        """

    @abstractmethod
    async def delete(self, subscription_id: UUID) -> None:
        """Hard-delete the subscription."""

    @abstractmethod
    async def list(self, filter: SubscriptionFilter) -> list[Subscription]:
        """
        Return subscriptions matching *filter*, newest ``created_at`` first.
        An empty list when nothing matches.
        """

    @abstractmethod
    async def summarize(self, query: SummaryQuery) -> Summary:
        """
        Return the price total and row count over the subscriptions
        selected by *query*; ``Summary(0, 0)`` when nothing matches.
        """
