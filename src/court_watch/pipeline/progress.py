"""
Progress sinks.

The orchestrator writes ``ProgressEvent`` objects to a sink and never
learns who (if anyone) is listening.  Transports are separate consumers:

    - CallbackSink: forwards to a plain callable (CLI progress display)
    - LoggingSink: logs each message (scheduled change detection)
    - NullSink: discards everything
    - StreamSink: buffers events for an HTTP stream; tolerates the client
      going away (writes after ``close()`` are dropped)

``to_sse()`` frames an event as one server-sent text event.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Callable, Protocol

from court_watch.core import ProgressEvent, get_logger

logger = get_logger(__name__)


class ProgressSink(Protocol):
    """Destination for a run's progress events."""

    def emit(self, event: ProgressEvent) -> None: ...


class NullSink:
    """Sink that discards every event."""

    def emit(self, event: ProgressEvent) -> None:
        pass


class CallbackSink:
    """Sink that forwards each event to ``callback``."""

    def __init__(self, callback: Callable[[ProgressEvent], None]) -> None:
        self._callback = callback

    def emit(self, event: ProgressEvent) -> None:
        self._callback(event)


class LoggingSink:
    """Sink that logs each event, prefixed with a context label."""

    def __init__(self, label: str = "", level: int = logging.INFO) -> None:
        self._label = label
        self._level = level

    def emit(self, event: ProgressEvent) -> None:
        prefix = f"[{self._label}] " if self._label else ""
        if event.progress is not None:
            logger.log(self._level, "%s%s (%d%%): %s", prefix, event.step.value, event.progress, event.message)
        else:
            logger.log(self._level, "%s%s: %s", prefix, event.step.value, event.message)


class StreamSink:
    """
    Asyncio-queue backed sink for streaming events to one HTTP client.

    The producer (the queued pipeline run) calls ``emit()``; the consumer
    (the response generator) iterates the sink.  Iteration ends after a
    terminal event or when the sink is closed.  Once closed, because the
    client disconnected for instance, further writes are silently
    dropped, so the run completes unaware that nobody is listening.

    Example:
        >>> sink = StreamSink()
        >>> sink.emit(ProgressEvent(Step.QUEUED, "queued"))
        >>> async for event in sink:
        ...     yield to_sse(event)
    """

    _CLOSED = object()

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._terminal_sent = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminal_sent(self) -> bool:
        """True once a ``complete`` or ``error`` event was accepted."""
        return self._terminal_sent

    def emit(self, event: ProgressEvent) -> None:
        if self._closed:
            self.dropped += 1
            return
        if event.is_terminal:
            self._terminal_sent = True
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop accepting events and wake up a waiting consumer."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item
            if item.is_terminal:
                return


def to_sse(event: ProgressEvent) -> str:
    """Frame ``event`` as a server-sent event (``data: <json>\\n\\n``)."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"
