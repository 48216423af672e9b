"""
SQLite store for change-detection subscriptions.

Each row tracks one (query, subscriber) pair together with the identity
key of the latest filing the subscriber was notified about.  The change
detector only advances ``last_seen_identity`` after a notification was
sent successfully.

Usage:
    from court_watch.database import SubscriptionStore

    store = SubscriptionStore()
    record = store.add_subscription("Ivan Horvat", "ana@example.com")
    for record in store.list_active():
        ...
"""

import secrets
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from court_watch.config import get_settings
from court_watch.core import DatabaseError, get_logger

logger = get_logger(__name__)


@dataclass
class SubscriptionRecord:
    """
    A single row from the subscriptions table.

    Attributes:
        id: Auto-increment primary key.
        query: Tracked search text.
        email: Subscriber address.
        last_seen_identity: Identity key of the last notified filing, or
            None before the first notification.
        is_active: False once the subscriber unsubscribed.
        unsubscribe_token: Secret token used in the unsubscribe link.
        created_at: ISO timestamp of when the subscription was created.
    """

    id: int
    query: str
    email: str
    last_seen_identity: Optional[str]
    is_active: bool
    unsubscribe_token: str
    created_at: str


class SubscriptionStore:
    """
    SQLite registry of tracked queries and their subscribers.

    The database file and table are created on first use
    (``CREATE TABLE IF NOT EXISTS``), so repeated initialisation is safe.

    Example:
        >>> store = SubscriptionStore(db_path="/tmp/subs.sqlite")
        >>> record = store.add_subscription("Ivan Horvat", "ana@example.com")
        >>> store.update_last_seen(record.id, "St-1/2024 - 01.02.2024.")
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        """
        Initialise the store.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     ``settings.database.subscriptions_db_path``.
        """
        self._db_path = db_path or get_settings().database.subscriptions_db_path

        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._create_table()

        logger.debug("SubscriptionStore initialised: %s", self._db_path)

    def _connect(self) -> sqlite3.Connection:
        """Create a new database connection with row factory enabled."""
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_table(self) -> None:
        """Create the subscriptions table if it does not exist."""
        sql = """
            CREATE TABLE IF NOT EXISTS subscriptions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                query TEXT NOT NULL,
                email TEXT NOT NULL,
                last_seen_identity TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                unsubscribe_token TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL
            )
        """
        try:
            with self._connect() as conn:
                conn.execute(sql)
        except sqlite3.Error as e:
            raise DatabaseError(
                "Failed to create subscriptions table",
                details=str(e),
            ) from e

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> SubscriptionRecord:
        return SubscriptionRecord(
            id=row["id"],
            query=row["query"],
            email=row["email"],
            last_seen_identity=row["last_seen_identity"],
            is_active=bool(row["is_active"]),
            unsubscribe_token=row["unsubscribe_token"],
            created_at=row["created_at"],
        )

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def add_subscription(self, query: str, email: str) -> SubscriptionRecord:
        """
        Create an active subscription with a fresh unsubscribe token.

        Raises:
            ValueError: If ``query`` or ``email`` is blank.
            DatabaseError: If the insert fails.
        """
        query = query.strip()
        email = email.strip()
        if not query or not email:
            raise ValueError("Both query and email are required")

        token = secrets.token_urlsafe(24)
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO subscriptions
                        (query, email, last_seen_identity, is_active,
                         unsubscribe_token, created_at)
                    VALUES (?, ?, NULL, 1, ?, ?)
                    """,
                    (query, email, token, created_at),
                )
                record_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to add subscription for {query!r}",
                details=str(e),
            ) from e

        logger.info("Added subscription #%d for %r", record_id, query)
        return SubscriptionRecord(
            id=record_id,
            query=query,
            email=email,
            last_seen_identity=None,
            is_active=True,
            unsubscribe_token=token,
            created_at=created_at,
        )

    def update_last_seen(self, subscription_id: int, identity_key: str) -> None:
        """
        Record the identity key of the filing the subscriber was told about.

        Raises:
            DatabaseError: If the update fails or no such subscription exists.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE subscriptions SET last_seen_identity = ? WHERE id = ?",
                    (identity_key, subscription_id),
                )
                updated = cursor.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to update subscription #{subscription_id}",
                details=str(e),
            ) from e

        if updated == 0:
            raise DatabaseError(f"Subscription #{subscription_id} not found")
        logger.debug("Subscription #%d last seen → %s", subscription_id, identity_key)

    def deactivate(self, token: str) -> Optional[SubscriptionRecord]:
        """
        Deactivate the subscription owning ``token``.

        Returns:
            The deactivated record, or None if the token is unknown.

        Raises:
            DatabaseError: If the update fails.
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    "UPDATE subscriptions SET is_active = 0 WHERE unsubscribe_token = ?",
                    (token,),
                )
                row = conn.execute(
                    "SELECT * FROM subscriptions WHERE unsubscribe_token = ?",
                    (token,),
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError("Failed to deactivate subscription", details=str(e)) from e

        if row is None:
            return None
        logger.info("Deactivated subscription #%d", row["id"])
        return self._row_to_record(row)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_active(self) -> list[SubscriptionRecord]:
        """Active subscriptions in creation order."""
        return self._list("WHERE is_active = 1")

    def list_all(self) -> list[SubscriptionRecord]:
        """Every subscription, active or not, in creation order."""
        return self._list("")

    def _list(self, where: str) -> list[SubscriptionRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT * FROM subscriptions {where} ORDER BY id"
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError("Failed to list subscriptions", details=str(e)) from e
        return [self._row_to_record(r) for r in rows]

    def count(self) -> int:
        """Number of active subscriptions."""
        return len(self.list_active())
