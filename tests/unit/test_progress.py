"""Tests for progress sinks and server-sent event framing."""

import asyncio
import json

import pytest

from court_watch.core import ProgressEvent, Step
from court_watch.pipeline.progress import (
    CallbackSink,
    LoggingSink,
    NullSink,
    StreamSink,
    to_sse,
)


def _event(step: Step = Step.DOWNLOADING, message: str = "m", **kwargs) -> ProgressEvent:
    return ProgressEvent(step=step, message=message, **kwargs)


class TestSimpleSinks:
    def test_null_sink_accepts_events(self):
        NullSink().emit(_event())

    def test_callback_sink_forwards(self):
        received = []
        CallbackSink(received.append).emit(_event(message="hello"))
        assert [e.message for e in received] == ["hello"]

    def test_logging_sink_accepts_events(self):
        sink = LoggingSink(label="Ivan Horvat")
        sink.emit(_event(progress=10))
        sink.emit(_event())


class TestStreamSink:
    """StreamSink buffers events for one consumer and tolerates disconnects."""

    @pytest.mark.asyncio
    async def test_iteration_stops_after_terminal_event(self):
        sink = StreamSink()
        sink.emit(_event(Step.QUEUED))
        sink.emit(_event(Step.COMPLETE))
        sink.emit(_event(Step.DOWNLOADING))

        received = [event.step async for event in sink]

        assert received == [Step.QUEUED, Step.COMPLETE]

    @pytest.mark.asyncio
    async def test_close_ends_iteration(self):
        sink = StreamSink()
        sink.emit(_event(Step.QUEUED))
        sink.close()
        assert [event.step async for event in sink] == [Step.QUEUED]

    @pytest.mark.asyncio
    async def test_emit_after_close_is_dropped(self):
        sink = StreamSink()
        sink.close()
        sink.emit(_event())
        sink.emit(_event())
        assert sink.closed
        assert sink.dropped == 2

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        sink = StreamSink()
        sink.close()
        sink.close()
        assert [event async for event in sink] == []

    def test_terminal_sent_tracks_complete_and_error(self):
        sink = StreamSink()
        sink.emit(_event(Step.STARTING))
        assert not sink.terminal_sent
        sink.emit(_event(Step.ERROR))
        assert sink.terminal_sent

    def test_terminal_after_close_not_counted(self):
        sink = StreamSink()
        sink.close()
        sink.emit(_event(Step.COMPLETE))
        assert not sink.terminal_sent

    @pytest.mark.asyncio
    async def test_consumer_waits_for_producer(self):
        sink = StreamSink()

        async def produce():
            await asyncio.sleep(0.01)
            sink.emit(_event(Step.ANALYZING))
            await asyncio.sleep(0.01)
            sink.emit(_event(Step.ERROR))

        producer = asyncio.create_task(produce())
        received = [event.step async for event in sink]
        await producer

        assert received == [Step.ANALYZING, Step.ERROR]


class TestToSse:
    """to_sse() frames one JSON object per event."""

    def test_framing(self):
        frame = to_sse(_event(Step.SCRAPING, "searching", progress=10))
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {
            "step": "scraping",
            "message": "searching",
            "progress": 10,
        }

    def test_non_ascii_kept(self):
        frame = to_sse(_event(message="Analiza je završena!"))
        assert "završena" in frame
