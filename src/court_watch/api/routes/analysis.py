"""
Court analysis endpoints.

``POST /api/court-analysis`` answers immediately with an event stream and
queues the pipeline run behind the ``JobQueue``.  The stream carries
``queued`` first, ``starting`` once a worker picks the run up, then the
pipeline's own events, and ends with ``complete`` or ``error``.

If the client disconnects, the run is not cancelled: it finishes in the
background and its remaining events are dropped by the closed sink.
"""

import asyncio
from typing import AsyncIterator, Callable

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from court_watch.api.dependencies import (
    enforce_rate_limit,
    get_job_queue,
    get_orchestrator,
)
from court_watch.api.jobs import JobQueue
from court_watch.api.schemas import AnalysisRequest, JobListResponse, JobSchema
from court_watch.config import Messages
from court_watch.core import PipelineResult, ProgressEvent, Step, get_logger
from court_watch.pipeline import PipelineOrchestrator, StreamSink, to_sse

logger = get_logger(__name__)

router = APIRouter()

# Progress shown when a queued run actually starts
PROGRESS_STARTING = 5
PROGRESS_DONE = 100

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _fail_stream(sink: StreamSink, messages: Messages) -> None:
    """End ``sink`` with an ``error`` event unless a terminal event went out."""
    if not sink.terminal_sent:
        sink.emit(
            ProgressEvent(step=Step.ERROR, message=messages.generic_error, progress=PROGRESS_DONE)
        )
    sink.close()


def _settle_stream(sink: StreamSink, messages: Messages) -> Callable[[asyncio.Future], None]:
    """
    Done-callback for a queued run.

    A job cancelled before a worker picked it up (queue shutdown) never
    runs ``job()``, so its stream is ended here.  The outcome is marked
    as retrieved; errors were already streamed.
    """

    def callback(future: asyncio.Future) -> None:
        if future.cancelled():
            _fail_stream(sink, messages)
        else:
            future.exception()

    return callback


@router.post(
    "",
    summary="Analyse the latest filings for a query (server-sent events)",
    dependencies=[Depends(enforce_rate_limit)],
)
async def court_analysis(
    body: AnalysisRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
    queue: JobQueue = Depends(get_job_queue),
) -> StreamingResponse:
    """Queue a pipeline run and stream its progress events."""
    messages = orchestrator.messages
    sink = StreamSink()
    sink.emit(ProgressEvent(step=Step.QUEUED, message=messages.queued, progress=0))

    async def job() -> PipelineResult:
        sink.emit(
            ProgressEvent(
                step=Step.STARTING,
                message=messages.starting,
                progress=PROGRESS_STARTING,
            )
        )
        try:
            return await orchestrator.analyze_query(body.query, body.case_count, sink)
        except BaseException:
            _fail_stream(sink, messages)
            raise
        finally:
            sink.close()

    if not queue.started:
        await queue.start()
    info, future = queue.enqueue(job, label=body.query)
    future.add_done_callback(_settle_stream(sink, messages))

    async def stream() -> AsyncIterator[str]:
        finished = False
        try:
            async for event in sink:
                yield to_sse(event)
                finished = event.is_terminal
        finally:
            if not finished:
                logger.info("Client left job %s before it finished", info.job_id[:8])
            sink.close()

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/jobs", response_model=JobListResponse, summary="Job queue snapshot")
async def list_jobs(queue: JobQueue = Depends(get_job_queue)) -> JobListResponse:
    """Return pending, running, and recently finished pipeline runs."""
    jobs = [
        JobSchema(
            job_id=info.job_id,
            label=info.label,
            state=info.state.value,
            error=info.error,
            created_at=info.created_at,
            started_at=info.started_at,
            completed_at=info.completed_at,
        )
        for info in queue.list_jobs()
    ]
    return JobListResponse(
        pending=queue.pending_count,
        running=queue.running_count,
        concurrency=queue.concurrency,
        jobs=jobs,
    )
