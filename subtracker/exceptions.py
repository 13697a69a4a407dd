"""
Error kinds raised by the subscription domain.

The service layer raises these and never translates them; the router
layer maps each kind to an HTTP status in ``subtracker.routers.errors``.
Cancellation and timeouts are not modelled here: ``asyncio.CancelledError``
and ``TimeoutError`` propagate unchanged from the persistence call that
was in flight.
"""


class SubscriptionError(Exception):
    """Base class for every error the subscription domain raises."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FormatError(SubscriptionError):
    """A date token does not match ``MM-YYYY``."""

    def __init__(self, value: str, field: str | None = None) -> None:
        target = f"{field} " if field else ""
        super().__init__(f"invalid {target}format {value!r}, expected MM-YYYY")
        self.value = value
        self.field = field


class ValidationError(SubscriptionError):
    """A subscription invariant is violated; *field* names the offender."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidPeriodError(SubscriptionError):
    def __init__(self) -> None:
        super().__init__("start date cannot be after end date")


class NotFoundError(SubscriptionError):
    def __init__(self, subscription_id) -> None:
        super().__init__(f"subscription {subscription_id} not found")
        self.subscription_id = subscription_id


class StorageError(SubscriptionError):
    """
    The persistence layer failed for a reason opaque to the domain.

    The underlying driver exception is kept as ``__cause__``.
    """


class ConsistencyError(SubscriptionError):
    """A record just written could not be read back."""

    def __init__(self, subscription_id) -> None:
        super().__init__(f"subscription {subscription_id} could not be read back after create")
        self.subscription_id = subscription_id
