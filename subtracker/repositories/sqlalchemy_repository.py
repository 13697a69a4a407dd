"""
SQLAlchemy implementation of the subscription persistence port.

Filters, patches and summary ranges arrive as structured value objects
and are turned into SQLAlchemy expressions here; no SQL text is ever
assembled by hand.  The repository flushes but never commits: the
transaction boundary belongs to the ``get_db`` dependency that owns the
session.
"""
from __future__ import annotations

from contextlib import contextmanager
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subtracker.dates import ensure_utc
from subtracker.domain import (
    Subscription,
    SubscriptionChanges,
    SubscriptionFilter,
    Summary,
    SummaryQuery,
)
from subtracker.exceptions import StorageError
from subtracker.models import SubscriptionModel
from subtracker.repositories.base import SubscriptionRepository

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextmanager
def _storage_errors(operation: str):
    """Re-raise driver failures as ``StorageError``, keeping the cause."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"{operation} failed: {exc.__class__.__name__}") from exc


def _to_domain(row: SubscriptionModel) -> Subscription:
    """Map an ORM row to a domain record, restoring UTC on naive values."""
    return Subscription(
        id=row.id,
        service_name=row.service_name,
        price=row.price,
        user_id=row.user_id,
        start_date=ensure_utc(row.start_date),
        end_date=ensure_utc(row.end_date) if row.end_date is not None else None,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
    )


def _filter_clauses(filter: SubscriptionFilter) -> list:
    """Return the WHERE clauses for *filter*; both criteria are AND-ed."""
    clauses = []
    if filter.user_id is not None:
        clauses.append(SubscriptionModel.user_id == filter.user_id)
    if filter.service_name is not None:
        clauses.append(SubscriptionModel.service_name == filter.service_name)
    return clauses


def _summary_clauses(query: SummaryQuery) -> list:
    """
    Started within or after the range start, and either open-ended or
    ended on or before the range end.
    """
    return [
        SubscriptionModel.start_date >= query.start_date,
        (SubscriptionModel.end_date.is_(None)) | (SubscriptionModel.end_date <= query.end_date),
        *_filter_clauses(query.filter),
    ]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SQLAlchemySubscriptionRepository(SubscriptionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, subscription: Subscription) -> None:
        row = SubscriptionModel(
            id=subscription.id,
            service_name=subscription.service_name,
            price=subscription.price,
            user_id=subscription.user_id,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        )
        with _storage_errors("create"):
            self.session.add(row)
            await self.session.flush()

    async def get(self, subscription_id: UUID) -> Subscription | None:
        q = (
            select(SubscriptionModel)
            .where(SubscriptionModel.id == subscription_id)
            .execution_options(populate_existing=True)
        )
        with _storage_errors("get"):
            result = await self.session.execute(q)
        row = result.scalar_one_or_none()
        return _to_domain(row) if row is not None else None

    async def update(self, subscription_id: UUID, changes: SubscriptionChanges) -> None:
        q = (
            update(SubscriptionModel)
            .where(SubscriptionModel.id == subscription_id)
            .values(**changes.values())
        )
        with _storage_errors("update"):
            await self.session.execute(q)
            await self.session.flush()

    async def delete(self, subscription_id: UUID) -> None:
        q = delete(SubscriptionModel).where(SubscriptionModel.id == subscription_id)
        with _storage_errors("delete"):
            await self.session.execute(q)
            await self.session.flush()

    async def list(self, filter: SubscriptionFilter) -> list[Subscription]:
        q = (
            select(SubscriptionModel)
            .where(*_filter_clauses(filter))
            .order_by(SubscriptionModel.created_at.desc())
            .execution_options(populate_existing=True)
        )
        with _storage_errors("list"):
            result = await self.session.execute(q)
        return [_to_domain(row) for row in result.scalars().all()]

    async def summarize(self, query: SummaryQuery) -> Summary:
        q = select(
            func.coalesce(func.sum(SubscriptionModel.price), 0),
            func.count(SubscriptionModel.id),
        ).where(*_summary_clauses(query))
        with _storage_errors("summarize"):
            result = await self.session.execute(q)
        total_amount, count = result.one()
        return Summary(total_amount=int(total_amount), count=int(count))
