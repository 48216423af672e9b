"""Tests for the SQLite SubscriptionStore.

Each test gets its own database file via the ``tmp_db_path`` fixture.
"""

import pytest

from court_watch.core import DatabaseError
from court_watch.database import SubscriptionStore
from tests.helpers import find_subscription


@pytest.fixture
def store(tmp_db_path) -> SubscriptionStore:
    return SubscriptionStore(db_path=tmp_db_path)


class TestAddSubscription:
    """add_subscription() creates an active row with a secret token."""

    def test_returns_record(self, store):
        record = store.add_subscription(" Ivan Horvat ", " ana@example.com ")
        assert record.id == 1
        assert record.query == "Ivan Horvat"
        assert record.email == "ana@example.com"
        assert record.is_active
        assert record.last_seen_identity is None
        assert len(record.unsubscribe_token) >= 24

    def test_tokens_unique(self, store):
        a = store.add_subscription("A", "a@example.com")
        b = store.add_subscription("A", "a@example.com")
        assert a.unsubscribe_token != b.unsubscribe_token

    @pytest.mark.parametrize("query,email", [("", "a@example.com"), ("A", "  ")])
    def test_blank_rejected(self, store, query, email):
        with pytest.raises(ValueError):
            store.add_subscription(query, email)

    def test_persisted(self, store, tmp_db_path):
        record = store.add_subscription("A", "a@example.com")
        reopened = SubscriptionStore(db_path=tmp_db_path)
        assert find_subscription(reopened, record.id) == record


class TestUpdateLastSeen:
    def test_updates_key(self, store):
        record = store.add_subscription("A", "a@example.com")
        store.update_last_seen(record.id, "St-1/2024 - 01.02.2024.")
        assert find_subscription(store, record.id).last_seen_identity == "St-1/2024 - 01.02.2024."

    def test_unknown_id(self, store):
        with pytest.raises(DatabaseError, match="not found"):
            store.update_last_seen(42, "key")


class TestDeactivate:
    def test_deactivates(self, store):
        record = store.add_subscription("A", "a@example.com")
        deactivated = store.deactivate(record.unsubscribe_token)
        assert deactivated.id == record.id
        assert not deactivated.is_active
        assert store.list_active() == []
        assert len(store.list_all()) == 1

    def test_unknown_token(self, store):
        assert store.deactivate("nope") is None

    def test_idempotent(self, store):
        record = store.add_subscription("A", "a@example.com")
        store.deactivate(record.unsubscribe_token)
        assert store.deactivate(record.unsubscribe_token).is_active is False


class TestQueries:
    def test_list_active_in_creation_order(self, store):
        store.add_subscription("First", "a@example.com")
        second = store.add_subscription("Second", "b@example.com")
        store.add_subscription("Third", "c@example.com")
        store.deactivate(second.unsubscribe_token)
        assert [r.query for r in store.list_active()] == ["First", "Third"]

    def test_count_excludes_inactive(self, store):
        store.add_subscription("A", "a@example.com")
        second = store.add_subscription("B", "b@example.com")
        store.deactivate(second.unsubscribe_token)
        assert store.count() == 1

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "subs.sqlite"
        SubscriptionStore(db_path=str(path))
        assert path.exists()
