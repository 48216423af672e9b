"""Database module — SQLite subscription store."""

from court_watch.database.subscriptions import SubscriptionRecord, SubscriptionStore

__all__ = [
    "SubscriptionRecord",
    "SubscriptionStore",
]
