"""
Invariant checks for subscription records.

Checks run in a fixed order and stop at the first violation so callers
always see the same field named for the same bad input:
service_name, price, user_id, start_date, end_date, updated_at.
"""
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from subtracker.dates import ensure_utc, is_month_start
from subtracker.domain import Subscription, SubscriptionChanges
from subtracker.exceptions import ValidationError


def validate_subscription(
    subscription: Subscription,
    start_date_changed: bool = False,
    stored_end_date: datetime | None = None,
) -> None:
    """
    Raise ``ValidationError`` naming the first invariant *subscription* breaks.

    When *start_date_changed* is set (a patch moved the start month but
    left the end month alone) an inverted period is reported against
    ``start_date`` instead of ``end_date``.  *stored_end_date* is the end
    month on record before a patch; a patched start may not pass it.
    """
    if not isinstance(subscription.service_name, str) or not subscription.service_name.strip():
        raise ValidationError("service_name", "service name is required")

    # bool is an int subclass; True must not pass as a price.
    if (
        not isinstance(subscription.price, int)
        or isinstance(subscription.price, bool)
        or subscription.price <= 0
    ):
        raise ValidationError("price", "price must be greater than 0")

    if not isinstance(subscription.user_id, UUID) or subscription.user_id.int == 0:
        raise ValidationError("user_id", "user ID is required")

    _validate_period(
        subscription.start_date,
        subscription.end_date,
        start_date_changed,
        stored_end_date,
    )

    if subscription.updated_at is not None and subscription.created_at is not None:
        if ensure_utc(subscription.updated_at) < ensure_utc(subscription.created_at):
            raise ValidationError("updated_at", "updated_at cannot precede created_at")


def apply_changes(existing: Subscription, changes: SubscriptionChanges) -> Subscription:
    """
    Return the record *existing* would become after *changes*, validated.

    Fields absent from *changes* keep their stored values.  A new start
    month must not fall after the stored end month, even when the same
    patch also moves the end.
    """
    merged = replace(existing, **changes.values())
    validate_subscription(
        merged,
        start_date_changed=changes.start_date is not None and changes.end_date is None,
        stored_end_date=existing.end_date if changes.start_date is not None else None,
    )
    return merged


def _validate_period(
    start_date: datetime | None,
    end_date: datetime | None,
    start_date_changed: bool,
    stored_end_date: datetime | None,
) -> None:
    if start_date is None:
        raise ValidationError("start_date", "start date is required")
    if not is_month_start(start_date):
        raise ValidationError("start_date", "start date must be the first day of a month")
    if stored_end_date is not None and ensure_utc(start_date) > ensure_utc(stored_end_date):
        raise ValidationError("start_date", "start date cannot be after end date")

    if end_date is None:
        return
    if not is_month_start(end_date):
        raise ValidationError("end_date", "end date must be the first day of a month")
    if ensure_utc(end_date) < ensure_utc(start_date):
        if start_date_changed:
            raise ValidationError("start_date", "start date cannot be after end date")
        raise ValidationError("end_date", "end date cannot be before start date")
