"""Track user subscriptions to paid services."""

__version__ = "1.0.0"
