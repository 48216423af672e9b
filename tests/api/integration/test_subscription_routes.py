"""
Integration tests for the subscription endpoints.

A real SubscriptionStore on a temporary SQLite file is injected through
``app.dependency_overrides``; the failure path uses a MagicMock store.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from court_watch.api.app import app
from court_watch.api.dependencies import get_subscription_store
from court_watch.core import DatabaseError
from court_watch.database import SubscriptionStore
from tests.helpers import find_subscription


@pytest.fixture
def store(tmp_db_path) -> SubscriptionStore:
    return SubscriptionStore(db_path=tmp_db_path)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_subscription_store] = lambda: store
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def _failing_client():
    store = MagicMock()
    store.add_subscription.side_effect = DatabaseError("Failed to add subscription", "disk full")
    store.deactivate.side_effect = DatabaseError("Failed to deactivate subscription")
    app.dependency_overrides[get_subscription_store] = lambda: store
    return TestClient(app, raise_server_exceptions=False)


# -----------------------------------------------------------------------
# POST /api/subscriptions
# -----------------------------------------------------------------------


class TestCreateSubscription:
    def test_created(self, client, store):
        resp = client.post(
            "/api/subscriptions", json={"query": " Ivan Horvat ", "email": "ana@example.com"}
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["query"] == "Ivan Horvat"
        assert data["email"] == "ana@example.com"
        assert data["is_active"] is True
        assert store.count() == 1

    def test_unsubscribe_url_carries_token(self, client, store):
        data = client.post(
            "/api/subscriptions", json={"query": "Ivan Horvat", "email": "ana@example.com"}
        ).json()
        token = find_subscription(store, data["id"]).unsubscribe_token
        assert data["unsubscribe_url"].endswith(f"/{token}")
        assert "unsubscribe_token" not in data

    def test_invalid_email_returns_422(self, client, store):
        resp = client.post("/api/subscriptions", json={"query": "x", "email": "not-an-email"})
        assert resp.status_code == 422
        assert store.count() == 0

    def test_missing_query_returns_422(self, client):
        resp = client.post("/api/subscriptions", json={"email": "ana@example.com"})
        assert resp.status_code == 422

    def test_database_error_returns_500(self):
        client = _failing_client()
        try:
            resp = client.post(
                "/api/subscriptions", json={"query": "x", "email": "ana@example.com"}
            )
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 500
        detail = resp.json()["detail"]
        assert detail["error"] == "database_error"
        assert detail["details"] == "disk full"


# -----------------------------------------------------------------------
# GET /api/unsubscribe/{token}
# -----------------------------------------------------------------------


class TestUnsubscribe:
    def test_deactivates(self, client, store):
        record = store.add_subscription("Ivan Horvat", "ana@example.com")
        resp = client.get(f"/api/unsubscribe/{record.unsubscribe_token}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["query"] == "Ivan Horvat"
        assert data["message"] == "Uspješno ste se odjavili s obavijesti."
        assert store.list_active() == []

    def test_repeat_is_harmless(self, client, store):
        record = store.add_subscription("Ivan Horvat", "ana@example.com")
        client.get(f"/api/unsubscribe/{record.unsubscribe_token}")
        resp = client.get(f"/api/unsubscribe/{record.unsubscribe_token}")
        assert resp.status_code == 200

    def test_unknown_token_returns_404(self, client):
        resp = client.get("/api/unsubscribe/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["detail"]["error"] == "not_found"

    def test_database_error_returns_500(self):
        client = _failing_client()
        try:
            resp = client.get("/api/unsubscribe/tok")
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 500
        assert resp.json()["detail"]["error"] == "database_error"
