"""
FastAPI application factory for court-watch.

The public symbol is ``app`` — the ASGI application object used by
uvicorn and by the test client.

Architecture:
    - Singletons (PipelineOrchestrator, EOglasnaSearchProvider, JobQueue,
      RateLimiter, SubscriptionStore) are initialised once in the
      lifespan context manager and stored on ``app.state``.
    - Route modules access them through dependency functions in
      ``dependencies.py`` (which read from ``request.app.state``).
    - No business logic lives here — this is pure wiring.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from court_watch import __version__
from court_watch.config import get_settings
from court_watch.core import ConfigurationError, get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: initialise singletons, store on app.state
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Initialise and clean up application-level singletons.

    Pipeline imports happen here (not at module top level) to keep
    ``import court_watch.api.app`` lightweight at test collection time.

    Startup order:
        1. SubscriptionStore (SQLite — fast)
        2. RateLimiter (in-memory table)
        3. EOglasnaSearchProvider (opens one HTTP session)
        4. PipelineOrchestrator (None if the extraction service is
           not configured; analysis requests then get 503)
        5. JobQueue (starts its worker tasks)
        6. Rate-limiter sweeper (background task dropping idle clients)
    """
    from court_watch.api.jobs import JobQueue
    from court_watch.api.ratelimit import RateLimiter
    from court_watch.database import SubscriptionStore
    from court_watch.pipeline import PipelineOrchestrator
    from court_watch.search import EOglasnaSearchProvider

    logger.info("court-watch API starting up (v%s)", __version__)

    settings = get_settings()

    store = SubscriptionStore()
    logger.info("SubscriptionStore ready: %d active subscriptions", store.count())
    limiter = RateLimiter()
    search_provider = EOglasnaSearchProvider()
    await search_provider.open()

    try:
        orchestrator = PipelineOrchestrator(search_provider=search_provider)
    except ConfigurationError as e:
        logger.warning("Analysis disabled: %s", e)
        orchestrator = None

    job_queue = JobQueue(concurrency=settings.queue.concurrency)
    await job_queue.start()

    sweeper = asyncio.create_task(
        limiter.run_sweeper(settings.rate_limit.sweep_interval_seconds),
        name="rate-limit-sweeper",
    )

    app.state.settings = settings
    app.state.subscriptions = store
    app.state.rate_limiter = limiter
    app.state.search_provider = search_provider
    app.state.orchestrator = orchestrator
    app.state.job_queue = job_queue

    logger.info("All singletons initialised. API ready.")
    try:
        yield
    finally:
        logger.info("court-watch API shutting down.")
        sweeper.cancel()
        await asyncio.gather(sweeper, return_exceptions=True)
        await job_queue.stop()
        await search_provider.close()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns a fully configured ASGI application with CORS middleware,
    lifespan management, the analysis and subscription routers, and a
    health-check endpoint.
    """
    settings = get_settings()

    application = FastAPI(
        title="court-watch API",
        description=(
            "Streams AI analyses of the latest public court filings for a "
            "query and manages change-notification subscriptions."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -- CORS ---------------------------------------------------------------
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Routers ------------------------------------------------------------
    from court_watch.api.routes.analysis import router as analysis_router
    from court_watch.api.routes.subscriptions import router as subscriptions_router
    from court_watch.api.routes.subscriptions import unsubscribe_router

    application.include_router(analysis_router, prefix="/api/court-analysis", tags=["analysis"])
    application.include_router(
        subscriptions_router, prefix="/api/subscriptions", tags=["subscriptions"]
    )
    application.include_router(
        unsubscribe_router, prefix="/api/unsubscribe", tags=["subscriptions"]
    )

    # -- Health check -------------------------------------------------------
    @application.get("/api/health", tags=["meta"], summary="Health check")
    async def health() -> dict[str, str]:
        """Return API liveness status."""
        return {"status": "ok", "version": __version__}

    return application


app = create_app()
