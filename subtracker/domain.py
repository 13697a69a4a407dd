"""
Domain records and value objects for the Subscription aggregate.

These are plain dataclasses with no persistence or transport concerns:
the repository adapters translate them to and from storage rows, and the
router layer translates them to and from pydantic schemas.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from subtracker.dates import ensure_utc, format_month_year, month_start, parse_month_year, utcnow


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------

@dataclass
class Subscription:
    """
    A user's subscription to a paid service.

    ``start_date`` and ``end_date`` carry month granularity: both are the
    first instant of a calendar month in UTC.  Whether a subscription is
    active is derived from ``end_date`` at read time, never stored.
    """

    service_name: str
    price: int
    user_id: Optional[UUID]
    start_date: Optional[datetime]
    end_date: Optional[datetime] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    def is_active(self, at: datetime | None = None) -> bool:
        """
        True while the subscription has no end month, or its end month
        has not passed yet as of *at* (defaults to now).
        """
        if self.end_date is None:
            return True
        reference = month_start(at or utcnow())
        return ensure_utc(self.end_date) >= reference

    def to_dict(self) -> dict:
        """Serialise to a JSON-safe dict with ``MM-YYYY`` month fields."""
        return {
            "id": str(self.id),
            "service_name": self.service_name,
            "price": self.price,
            "user_id": str(self.user_id) if self.user_id else None,
            "start_date": format_month_year(self.start_date) if self.start_date else None,
            "end_date": format_month_year(self.end_date) if self.end_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Subscription":
        """Inverse of ``to_dict``; used to rehydrate cached records."""
        return cls(
            id=UUID(data["id"]),
            service_name=data["service_name"],
            price=data["price"],
            user_id=UUID(data["user_id"]) if data.get("user_id") else None,
            start_date=parse_month_year(data["start_date"]) if data.get("start_date") else None,
            end_date=parse_month_year(data["end_date"]) if data.get("end_date") else None,
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


# ---------------------------------------------------------------------------
# Partial update
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubscriptionPatch:
    """
    Sparse update as submitted by a caller.  ``None`` means "leave as is".

    Dates are still raw ``MM-YYYY`` tokens; the service parses them.
    """

    service_name: Optional[str] = None
    price: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass(frozen=True)
class SubscriptionChanges:
    """
    Validated, parsed form of a ``SubscriptionPatch`` handed to the
    repository.  ``updated_at`` is always written.
    """

    updated_at: datetime
    service_name: Optional[str] = None
    price: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def values(self) -> dict:
        """Return only the columns that should be written."""
        return {key: value for key, value in asdict(self).items() if value is not None}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubscriptionFilter:
    """
    Optional user / service criteria.  Present criteria are AND-combined
    with exact equality; an absent criterion matches everything.
    """

    user_id: Optional[UUID] = None
    service_name: Optional[str] = None

    def cache_fragment(self) -> str:
        return f"{self.user_id or '-'}:{self.service_name!r}"


@dataclass(frozen=True)
class SummaryQuery:
    """
    Closed month range plus a filter.

    A subscription is counted when it started on or after ``start_date``
    and either has no end month or ended on or before ``end_date``.
    Subscriptions that started before the range are excluded even if
    still running during it.
    """

    start_date: datetime
    end_date: datetime
    filter: SubscriptionFilter = field(default_factory=SubscriptionFilter)


@dataclass(frozen=True)
class Summary:
    total_amount: int = 0
    count: int = 0
