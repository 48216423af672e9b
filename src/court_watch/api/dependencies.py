"""
FastAPI dependency providers for court-watch.

All dependencies read pre-initialised singletons from ``request.app.state``
(set during the lifespan startup in ``app.py``).  This guarantees that
route handlers share one job queue, one rate-limiter table, one search
session, and one subscription store across the process.

Usage in route modules::

    from fastapi import Depends
    from court_watch.api.dependencies import get_job_queue

    @router.get("/jobs")
    async def list_jobs(queue: JobQueue = Depends(get_job_queue)):
        return queue.list_jobs()
"""

import math

from fastapi import Depends, HTTPException, Request

from court_watch.api.jobs import JobQueue
from court_watch.api.ratelimit import RateLimiter
from court_watch.core import RateLimitExceededError
from court_watch.database import SubscriptionStore
from court_watch.pipeline import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    """Provide the PipelineOrchestrator singleton (503 if unconfigured)."""
    orchestrator: PipelineOrchestrator | None = request.app.state.orchestrator
    if orchestrator is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "not_configured",
                "message": "The analysis pipeline is not configured.",
                "hint": "Set EXTRACTION_API_KEY and restart the server.",
            },
        )
    return orchestrator


def get_job_queue(request: Request) -> JobQueue:
    """Provide the JobQueue singleton."""
    queue: JobQueue = request.app.state.job_queue
    return queue


def get_rate_limiter(request: Request) -> RateLimiter:
    """Provide the RateLimiter singleton."""
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


def get_subscription_store(request: Request) -> SubscriptionStore:
    """Provide the SubscriptionStore singleton."""
    store: SubscriptionStore = request.app.state.subscriptions
    return store


def client_id(request: Request) -> str:
    """Identify the caller by network address."""
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """
    Admit the request or answer 429.

    The rejection carries ``X-Rate-Limit-Retry-After-Milliseconds`` and a
    standard ``Retry-After`` header (whole seconds, rounded up).
    """
    admission = limiter.admit(client_id(request))
    if admission.allowed:
        return

    error = RateLimitExceededError(admission.retry_after_ms, admission.window or "")
    retry_seconds = max(1, math.ceil(admission.retry_after_ms / 1000))
    raise HTTPException(
        status_code=429,
        detail={
            "error": "rate_limited",
            "message": error.message,
            "details": f"retry_after_ms={error.retry_after_ms}",
            "hint": "Wait before sending another analysis request.",
        },
        headers={
            "X-Rate-Limit-Retry-After-Milliseconds": str(error.retry_after_ms),
            "Retry-After": str(retry_seconds),
        },
    )
