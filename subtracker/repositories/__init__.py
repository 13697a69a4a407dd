from subtracker.repositories.base import SubscriptionRepository
from subtracker.repositories.cached_repository import CachedSubscriptionRepository
from subtracker.repositories.sqlalchemy_repository import SQLAlchemySubscriptionRepository

__all__ = [
    "CachedSubscriptionRepository",
    "SQLAlchemySubscriptionRepository",
    "SubscriptionRepository",
]
