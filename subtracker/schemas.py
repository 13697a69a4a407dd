from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from subtracker.dates import format_month_year
from subtracker.domain import Subscription, SubscriptionPatch, Summary


# --- Subscription ---
#
# Request bodies only check shape; the domain service owns the business
# rules (positive price, MM-YYYY dates, end not before start) so that
# they are enforced identically for every caller.

class SubscriptionCreate(BaseModel):
    service_name: str = Field(max_length=255, examples=["Yandex Plus"])
    price: int = Field(description="Monthly price in minor currency units.", examples=[400])
    user_id: UUID
    start_date: str = Field(description="First month, MM-YYYY.", examples=["07-2025"])
    end_date: str | None = Field(None, description="Last month, MM-YYYY.", examples=["12-2025"])


class SubscriptionUpdate(BaseModel):
    service_name: str | None = Field(None, max_length=255)
    price: int | None = None
    start_date: str | None = None
    end_date: str | None = None

    def to_patch(self) -> SubscriptionPatch:
        return SubscriptionPatch(**self.model_dump(exclude_unset=True, exclude_none=True))


class SubscriptionResponse(BaseModel):
    id: UUID
    service_name: str
    price: int
    user_id: UUID
    start_date: str
    end_date: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            id=subscription.id,
            service_name=subscription.service_name,
            price=subscription.price,
            user_id=subscription.user_id,
            start_date=format_month_year(subscription.start_date),
            end_date=format_month_year(subscription.end_date) if subscription.end_date else None,
            is_active=subscription.is_active(),
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        )


# --- Summary ---

class SummaryRequest(BaseModel):
    start_date: str = Field(examples=["01-2025"])
    end_date: str = Field(examples=["12-2025"])
    user_id: UUID | None = None
    service_name: str | None = Field(None, max_length=255)


class SummaryResponse(BaseModel):
    total_amount: int
    count: int

    @classmethod
    def from_domain(cls, summary: Summary) -> "SummaryResponse":
        return cls(total_amount=summary.total_amount, count=summary.count)


# --- Errors ---

class ErrorResponse(BaseModel):
    error: str
    field: str | None = None
