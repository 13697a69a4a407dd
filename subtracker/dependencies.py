from uuid import UUID

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subtracker.cache import cache
from subtracker.config import settings
from subtracker.database import get_db
from subtracker.domain import SubscriptionFilter
from subtracker.repositories import (
    CachedSubscriptionRepository,
    SQLAlchemySubscriptionRepository,
    SubscriptionRepository,
)
from subtracker.services.subscription_service import SubscriptionService


class SubscriptionFilterParams:
    """
    Reusable FastAPI dependency that parses the list filter query
    parameters.

    Usage in a router::

        @router.get("/subscriptions")
        async def list_subscriptions(params: SubscriptionFilterParams = Depends()):
            ...

    Attributes
    ----------
    user_id:
        Only return subscriptions owned by this user.  A value that is
        not a UUID is rejected with 422 rather than silently ignored.
    service_name:
        Only return subscriptions to this service (exact match).  An
        empty string is treated as absent.
    """

    def __init__(
        self,
        user_id: UUID | None = Query(
            None,
            description="Filter by owning user.",
        ),
        service_name: str | None = Query(
            None,
            max_length=255,
            description="Filter by exact service name.",
        ),
    ) -> None:
        self.user_id = user_id
        self.service_name = service_name or None

    def to_filter(self) -> SubscriptionFilter:
        return SubscriptionFilter(user_id=self.user_id, service_name=self.service_name)


def get_subscription_repository(db: AsyncSession = Depends(get_db)) -> SubscriptionRepository:
    repository: SubscriptionRepository = SQLAlchemySubscriptionRepository(db)
    if settings.CACHE_ENABLED:
        repository = CachedSubscriptionRepository(
            repository,
            cache,
            ttl_detail=settings.CACHE_TTL_DETAIL,
            ttl_list=settings.CACHE_TTL_LIST,
            ttl_summary=settings.CACHE_TTL_SUMMARY,
        )
    return repository


def get_subscription_service(
    repository: SubscriptionRepository = Depends(get_subscription_repository),
) -> SubscriptionService:
    return SubscriptionService(repository)
