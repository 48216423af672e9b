"""
Subscription endpoints.

    POST /api/subscriptions         — track a query for an e-mail address
    GET  /api/unsubscribe/{token}   — deactivate via the e-mailed link
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from court_watch.api.dependencies import get_subscription_store
from court_watch.api.schemas import (
    SubscriptionRequest,
    SubscriptionResponse,
    UnsubscribeResponse,
)
from court_watch.config import get_settings
from court_watch.core import DatabaseError, get_logger
from court_watch.database import SubscriptionStore

logger = get_logger(__name__)

router = APIRouter()
unsubscribe_router = APIRouter()


def _database_error(e: DatabaseError) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={
            "error": "database_error",
            "message": e.message,
            "details": e.details,
            "hint": "Check that the data directory is writable.",
        },
    )


@router.post(
    "",
    response_model=SubscriptionResponse,
    status_code=201,
    summary="Track a query and get notified about new filings",
)
async def create_subscription(
    body: SubscriptionRequest,
    store: SubscriptionStore = Depends(get_subscription_store),
) -> SubscriptionResponse:
    """Create an active subscription."""
    try:
        record = await asyncio.to_thread(store.add_subscription, body.query, body.email)
    except DatabaseError as e:
        raise _database_error(e) from e

    base_url = get_settings().notify.unsubscribe_base_url.rstrip("/")
    return SubscriptionResponse(
        id=record.id,
        query=record.query,
        email=record.email,
        is_active=record.is_active,
        created_at=record.created_at,
        unsubscribe_url=f"{base_url}/{record.unsubscribe_token}",
    )


@unsubscribe_router.get(
    "/{token}",
    response_model=UnsubscribeResponse,
    summary="Deactivate a subscription",
)
async def unsubscribe(
    token: str,
    store: SubscriptionStore = Depends(get_subscription_store),
) -> UnsubscribeResponse:
    """Deactivate the subscription that owns ``token``."""
    try:
        record = await asyncio.to_thread(store.deactivate, token)
    except DatabaseError as e:
        raise _database_error(e) from e

    if record is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error": "not_found",
                "message": "Unknown unsubscribe link.",
                "hint": "The link may be mistyped or the subscription removed.",
            },
        )
    return UnsubscribeResponse(
        message="Uspješno ste se odjavili s obavijesti.",
        query=record.query,
    )
