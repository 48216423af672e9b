"""
Job admission queue for pipeline runs.

Provides ``JobQueue`` — an in-memory, single-process queue that admits
heavy pipeline runs with bounded concurrency:

    - **N workers** — ``concurrency`` worker tasks drain one FIFO
      ``asyncio.Queue``; with N=1 every run is serialised, protecting the
      shared, rate-limited record source and extraction service.
    - **Deferred execution** — ``enqueue()`` returns immediately with the
      job's ``JobInfo`` and a future; the work itself starts only when a
      worker is free.
    - **No cancellation** — a caller that goes away does not stop its
      job; the job runs to completion and its result is discarded.
    - **Job cleanup** — finished jobs are pruned after one hour.

No Redis, no Celery — job state lives in a plain ``dict``.  All state is
touched only from the event loop thread, so no locking is needed.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from court_watch.core import get_logger

logger = get_logger(__name__)

# Finished jobs are pruned after this many seconds.
_JOB_TTL_SECONDS = 3600  # 1 hour

JobFactory = Callable[[], Awaitable[Any]]


class JobState(str, Enum):
    """Lifecycle states for a queued pipeline run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobInfo:
    """Full state for a single job."""

    job_id: str
    label: str = ""
    state: JobState = JobState.PENDING
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    completed_at: datetime | None = None

    # Monotonic completion time, used for pruning.
    _finished_monotonic: float | None = None

    @property
    def is_finished(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class _QueuedJob:
    info: JobInfo
    factory: JobFactory
    future: asyncio.Future


class JobQueue:
    """
    Bounded-concurrency FIFO queue of pipeline runs.

    Usage (from route handlers)::

        queue = JobQueue(concurrency=1)
        await queue.start()
        info, future = queue.enqueue(lambda: orchestrator.analyze_query(q))
        result = await future

    The queue is stored on ``app.state`` (singleton per process) and
    started/stopped by the application lifespan.
    """

    def __init__(self, concurrency: int = 1, ttl_seconds: float = _JOB_TTL_SECONDS) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self._ttl = ttl_seconds
        self._queue: asyncio.Queue[_QueuedJob] | None = None
        self._workers: list[asyncio.Task] = []
        self._jobs: dict[str, JobInfo] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        """Spawn the worker tasks on the running event loop."""
        if self._workers:
            return
        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"job-worker-{i}")
            for i in range(self.concurrency)
        ]
        logger.info("JobQueue started with %d worker(s)", self.concurrency)

    async def stop(self) -> None:
        """Cancel the workers; jobs still queued fail with CancelledError."""
        workers, self._workers = self._workers, []
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

        if self._queue is not None:
            while not self._queue.empty():
                job = self._queue.get_nowait()
                if not job.future.done():
                    job.future.cancel()
                self._finish(job.info, JobState.FAILED, "Queue stopped")
        logger.info("JobQueue stopped")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, factory: JobFactory, label: str = "") -> tuple[JobInfo, asyncio.Future]:
        """
        Queue a job for deferred execution.

        Args:
            factory: Zero-argument callable returning the awaitable to run;
                it is not called until a worker picks the job up.
            label: Free-form description for job listings.

        Returns:
            ``(info, future)``; the future resolves to the job's result or
            raises its exception.

        Raises:
            RuntimeError: If the queue has not been started.
        """
        if self._queue is None or not self._workers:
            raise RuntimeError("JobQueue is not started")

        self._prune()
        info = JobInfo(job_id=uuid.uuid4().hex, label=label)
        future = asyncio.get_running_loop().create_future()
        self._jobs[info.job_id] = info
        self._queue.put_nowait(_QueuedJob(info=info, factory=factory, future=future))

        logger.info(
            "Queued job %s (%s); %d pending, %d running",
            info.job_id[:8],
            label or "unnamed",
            self.pending_count,
            self.running_count,
        )
        return info, future

    def get_job(self, job_id: str) -> JobInfo | None:
        """Return job info or None if not found."""
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[JobInfo]:
        """Return all jobs (active and recent), oldest first."""
        self._prune()
        return list(self._jobs.values())

    @property
    def pending_count(self) -> int:
        return sum(1 for j in self._jobs.values() if j.state is JobState.PENDING)

    @property
    def running_count(self) -> int:
        return sum(1 for j in self._jobs.values() if j.state is JobState.RUNNING)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _worker(self, index: int) -> None:
        assert self._queue is not None
        while True:
            job = await self._queue.get()
            try:
                await self._execute(job)
            finally:
                self._queue.task_done()

    async def _execute(self, job: _QueuedJob) -> None:
        info = job.info
        info.state = JobState.RUNNING
        info.started_at = datetime.now(timezone.utc)
        logger.info("Job %s started", info.job_id[:8])

        try:
            result = await job.factory()
        except asyncio.CancelledError:
            self._finish(info, JobState.FAILED, "Cancelled")
            if not job.future.done():
                job.future.cancel()
            raise
        except Exception as exc:
            self._finish(info, JobState.FAILED, str(exc))
            if not job.future.done():
                job.future.set_exception(exc)
            logger.warning("Job %s failed: %s", info.job_id[:8], exc)
            return

        self._finish(info, JobState.COMPLETED)
        if not job.future.done():
            job.future.set_result(result)
        logger.info("Job %s completed", info.job_id[:8])

    @staticmethod
    def _finish(info: JobInfo, state: JobState, error: str | None = None) -> None:
        info.state = state
        info.error = error
        info.completed_at = datetime.now(timezone.utc)
        info._finished_monotonic = time.monotonic()

    def _prune(self) -> None:
        """Drop finished jobs older than the TTL."""
        cutoff = time.monotonic() - self._ttl
        expired = [
            job_id
            for job_id, info in self._jobs.items()
            if info.is_finished
            and info._finished_monotonic is not None
            and info._finished_monotonic < cutoff
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.debug("Pruned %d finished jobs", len(expired))
