"""
Shared test helper utilities for court-watch tests.

Plain functions and fakes (not pytest fixtures) that can be imported
directly by test modules. Kept separate from conftest.py because
conftest.py is for fixtures only — plain helpers must be in a regular
module to be importable via standard Python imports.
"""

import asyncio
import io
import json
import zipfile
from collections.abc import Callable
from pathlib import Path

import httpx

from court_watch.core import (
    AttachmentLink,
    CaseExtraction,
    DocumentAnalysis,
    ExtractedFile,
    FilingInfo,
    ProcessedFiling,
    ProgressEvent,
)
from court_watch.database import SubscriptionRecord
from court_watch.monitor import Notification


# ---------------------------------------------------------------------------
# Domain factories
# ---------------------------------------------------------------------------


def make_filing(
    *,
    title: str = "Oglas o stečaju",
    case_number: str = "St-1/2024",
    court: str = "Trgovački sud u Zagrebu",
    date: str = "01.02.2024.",
    links: list[tuple[str, str]] | None = None,
) -> FilingInfo:
    """
    Factory for creating FilingInfo instances with sensible defaults.

    ``links`` is a list of ``(url, text)`` pairs.
    """
    if links is None:
        links = [(f"https://court.test/{case_number}/preuzimanje", "Preuzmi zip")]
    return FilingInfo(
        title=title,
        case_number=case_number,
        court=court,
        date=date,
        detail_link=f"https://court.test/objave/{case_number}",
        attachment_links=tuple(AttachmentLink(url=u, text=t) for u, t in links),
    )


def make_extracted_file(
    path: Path,
    *,
    text: str | None = None,
    url: str = "https://court.test/objave/1/preuzimanje",
) -> ExtractedFile:
    return ExtractedFile(path=path, text=text or path.name, url=url)


def make_analysis(
    file: ExtractedFile,
    *,
    summary: str | None = "Summary",
    error: str | None = None,
) -> DocumentAnalysis:
    """A successful analysis with ``summary``, or a failed one with ``error``."""
    if error is not None:
        return DocumentAnalysis(file=file, error=error)
    return DocumentAnalysis(
        file=file,
        result=CaseExtraction(
            case_number="St-1/2024",
            parties=["Ivan Horvat"],
            decision_date="01.02.2024.",
            summary=summary,
        ),
    )


def make_processed(
    filing: FilingInfo,
    summaries: list[str | None],
    tmp_path: Path,
) -> ProcessedFiling:
    """
    A ProcessedFiling with one analysis per entry of ``summaries``.

    A ``None`` entry produces a failed analysis.
    """
    analyses = []
    for i, summary in enumerate(summaries):
        file = make_extracted_file(tmp_path / f"{filing.case_number.replace('/', '_')}_{i}.txt")
        if summary is None:
            analyses.append(make_analysis(file, error="Could not extract text from file"))
        else:
            analyses.append(make_analysis(file, summary=summary))
    return ProcessedFiling(filing=filing, analyses=analyses)


def extraction_json(
    summary: str = "Stečajni postupak je otvoren.",
    *,
    case_number: str = "St-1/2024",
    fenced: bool = False,
) -> str:
    """A well-formed extraction service answer."""
    payload = json.dumps(
        {
            "caseNumber": case_number,
            "parties": ["Ivan Horvat"],
            "decisionDate": "01.02.2024.",
            "summary": summary,
        },
        ensure_ascii=False,
    )
    if fenced:
        return f"```json\n{payload}\n```"
    return payload


def make_subscription_record(
    *,
    id: int = 1,
    query: str = "Ivan Horvat",
    email: str = "ana@example.com",
    last_seen_identity: str | None = None,
    is_active: bool = True,
    unsubscribe_token: str = "tok-123",
    created_at: str = "2024-03-12T10:00:00+00:00",
) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=id,
        query=query,
        email=email,
        last_seen_identity=last_seen_identity,
        is_active=is_active,
        unsubscribe_token=unsubscribe_token,
        created_at=created_at,
    )


def find_subscription(store, subscription_id: int) -> SubscriptionRecord | None:
    """Look a subscription up by id, active or not."""
    return next((r for r in store.list_all() if r.id == subscription_id), None)


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------


def zip_bytes(entries: dict[str, bytes], directories: list[str] | None = None) -> bytes:
    """Build an in-memory zip with the given entries (and directory entries)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for directory in directories or []:
            archive.writestr(directory.rstrip("/") + "/", b"")
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeExtractionService:
    """
    Scripted ``ExtractionService``.

    ``handler(prompt, images)`` returns the answer text or raises. Every
    call is recorded in ``calls`` as ``(prompt, images)``. ``delay``
    keeps each call in flight for a while, so tests can observe how many
    calls overlap (``max_in_flight``).
    """

    def __init__(
        self,
        handler: Callable[[str, list[bytes] | None], str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.handler = handler or (lambda prompt, images: extraction_json())
        self.delay = delay
        self.calls: list[tuple[str, list[bytes] | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def invoke(self, prompt, images=None):
        self.calls.append((prompt, list(images) if images else None))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.handler(prompt, images)
        finally:
            self.in_flight -= 1

    @property
    def prompts(self) -> list[str]:
        return [prompt for prompt, _ in self.calls]


class FakeSearchProvider:
    """``SearchProvider`` returning a fixed list (or raising ``error``)."""

    def __init__(self, filings: list[FilingInfo] | None = None, error: Exception | None = None):
        self.filings = filings or []
        self.error = error
        self.queries: list[tuple[str, int]] = []

    async def find_latest(self, query, limit):
        self.queries.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.filings[:limit]


class FakeNotifier:
    """``Notifier`` that records notifications, optionally failing."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.sent: list[Notification] = []

    async def notify(self, notification):
        if self.error is not None:
            raise self.error
        self.sent.append(notification)


def mock_client(routes: dict[str, httpx.Response | Exception]) -> httpx.AsyncClient:
    """
    An ``httpx.AsyncClient`` answering from ``routes`` (keyed by full URL).

    A route value that is an exception is raised by the transport.
    Unknown URLs get a 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        answer = routes.get(str(request.url))
        if answer is None:
            return httpx.Response(404, text="not found")
        if isinstance(answer, Exception):
            raise answer
        # A fresh copy per request, so one route can be fetched repeatedly.
        return httpx.Response(
            answer.status_code, headers=answer.headers, content=answer.content
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def file_response(content: bytes, filename: str | None = None, content_type: str | None = None) -> httpx.Response:
    """A download response with optional Content-Disposition / Content-Type."""
    headers = {}
    if filename is not None:
        headers["content-disposition"] = f'attachment; filename="{filename}"'
    if content_type is not None:
        headers["content-type"] = content_type
    return httpx.Response(200, headers=headers, content=content)


class RecordingSink:
    """Progress sink that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def last(self) -> ProgressEvent | None:
        return self.events[-1] if self.events else None
