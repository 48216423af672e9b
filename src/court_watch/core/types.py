"""Core data types for court-watch.

This module defines the domain objects that flow through the pipeline:
    - FilingInfo: One published court record with its attachment links
    - DownloadedFile / ExtractedFile: Local files owned by a pipeline run
    - CaseExtraction / DocumentAnalysis: Per-document analysis outcome
    - ProcessedFiling / PipelineResult: Accumulated run output
    - ProgressEvent: One entry of a run's progress stream

Design notes:
    - Dataclasses are used for simplicity (no runtime validation beyond
      the invariants enforced in ``__post_init__``)
    - Records parsed from the record source are frozen (immutable)
    - ``to_public_dict()`` methods never expose local file paths; they
      produce the payload sent to HTTP clients
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from court_watch.config.constants import IDENTITY_KEY_SEPARATOR


@dataclass(frozen=True)
class AttachmentLink:
    """A downloadable attachment referenced by a filing.

    Attributes:
        url: Absolute download URL
        text: Display text of the link as shown on the record source
    """

    url: str
    text: str


@dataclass(frozen=True)
class Participant:
    """A party listed on a filing (name, tax id, address, role)."""

    name: str
    oib: str = "N/A"
    address: str = "N/A"
    role: str = "N/A"


@dataclass(frozen=True)
class FilingInfo:
    """A single published court record matching a query.

    Immutable once parsed from a search result. Search providers return
    these newest-first, each carrying the attachment links to download.

    Attributes:
        title: Headline of the notice
        case_number: Filing identifier (e.g., "St-123/2024")
        court: Issuing court
        date: Publication date exactly as shown by the source
        detail_link: URL of the notice's detail page
        attachment_links: Links the fetcher should download
        participants: Parties listed on the notice

    Example:
        >>> filing = FilingInfo(
        ...     title="Oglas o stečaju",
        ...     case_number="St-123/2024",
        ...     court="Trgovački sud u Zagrebu",
        ...     date="12.03.2024.",
        ...     detail_link="https://example.test/objave/1",
        ... )
    """

    title: str
    case_number: str
    court: str
    date: str
    detail_link: str
    attachment_links: tuple[AttachmentLink, ...] = ()
    participants: tuple[Participant, ...] = ()

    def __post_init__(self) -> None:
        """Normalise list inputs to tuples so the record stays hashable."""
        object.__setattr__(self, "attachment_links", tuple(self.attachment_links))
        object.__setattr__(self, "participants", tuple(self.participants))

    @property
    def identity_key(self) -> str:
        """Composite change-detection key: case number + publication date.

        Two filings sharing both values (e.g., at different courts) map
        to the same key; callers must not assume it is globally unique.
        """
        return f"{self.case_number}{IDENTITY_KEY_SEPARATOR}{self.date}"

    def to_public_dict(self) -> dict[str, Any]:
        """Serialise for API clients and notifications."""
        return {
            "title": self.title,
            "case_number": self.case_number,
            "court": self.court,
            "date": self.date,
            "detail_link": self.detail_link,
            "attachment_links": [
                {"url": link.url, "text": link.text}
                for link in self.attachment_links
            ],
            "participants": [
                {
                    "name": p.name,
                    "oib": p.oib,
                    "address": p.address,
                    "role": p.role,
                }
                for p in self.participants
            ],
        }


@dataclass
class DownloadedFile:
    """An attachment saved to local storage during one run.

    Owned by the orchestrator for the lifetime of the run and always
    scheduled for deletion.
    """

    path: Path
    url: str
    text: str

    def to_public_dict(self) -> dict[str, str]:
        """Origin URL and display text only; the local path is private."""
        return {"url": self.url, "text": self.text}


@dataclass
class ExtractedFile:
    """A file ready for analysis, possibly expanded out of an archive.

    Attributes:
        path: Local path (inside the container's directory for archive
              entries)
        text: Display text (the original entry name for archive entries)
        url: Origin URL of the download this file came from
    """

    path: Path
    text: str
    url: str

    @classmethod
    def from_download(cls, downloaded: DownloadedFile) -> "ExtractedFile":
        """Pass a non-container download through unchanged."""
        return cls(path=downloaded.path, text=downloaded.text, url=downloaded.url)


@dataclass
class CaseExtraction:
    """Structured fields the extraction service returns for one document."""

    case_number: Optional[str]
    parties: list[str]
    decision_date: Optional[str]
    summary: Optional[str]

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "CaseExtraction":
        """Build from the service's JSON object.

        Keys follow the prompt contract (``caseNumber``, ``parties``,
        ``decisionDate``, ``summary``). Missing keys become None; a
        scalar ``parties`` value is wrapped in a list.
        """
        parties = payload.get("parties") or []
        if not isinstance(parties, list):
            parties = [parties]
        return cls(
            case_number=_optional_str(payload.get("caseNumber")),
            parties=[str(p) for p in parties],
            decision_date=_optional_str(payload.get("decisionDate")),
            summary=_optional_str(payload.get("summary")),
        )

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "caseNumber": self.case_number,
            "parties": list(self.parties),
            "decisionDate": self.decision_date,
            "summary": self.summary,
        }


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass
class DocumentAnalysis:
    """Outcome of analysing one extracted file.

    Exactly one of ``result`` and ``error`` is set.

    Raises:
        ValueError: If both or neither of ``result`` and ``error`` are set.
    """

    file: ExtractedFile
    result: Optional[CaseExtraction] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError(
                "DocumentAnalysis requires exactly one of result or error"
            )

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "text": self.file.text,
            "url": self.file.url,
            "result": self.result.to_public_dict() if self.result else None,
            "error": self.error,
        }


@dataclass
class ProcessedFiling:
    """A filing together with its downloads and per-document analyses.

    Attributes:
        filing: The filing as returned by the search provider
        files: Original downloads, kept so the user can re-download them
        analyses: One entry per analysed file (empty when nothing was
                  downloadable or analysable)
        note: Explanation attached when ``analyses`` is empty
    """

    filing: FilingInfo
    files: list[DownloadedFile] = field(default_factory=list)
    analyses: list[DocumentAnalysis] = field(default_factory=list)
    note: Optional[str] = None

    @property
    def successful_summaries(self) -> list[str]:
        """Non-empty summaries of documents that were analysed successfully."""
        return [
            a.result.summary
            for a in self.analyses
            if a.result is not None and a.result.summary
        ]

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "filing": self.filing.to_public_dict(),
            "files": [f.to_public_dict() for f in self.files],
            "analyses": [a.to_public_dict() for a in self.analyses],
            "note": self.note,
        }


@dataclass
class PipelineResult:
    """Ordered processed filings plus one synthesized narrative."""

    filings: list[ProcessedFiling]
    narrative: str

    def to_public_dict(self) -> dict[str, Any]:
        """Redacted payload for the terminal ``complete`` event."""
        return {
            "filings": [f.to_public_dict() for f in self.filings],
            "narrative": self.narrative,
        }


class Step(str, Enum):
    """Progress steps emitted during a run, in pipeline order."""

    QUEUED = "queued"
    STARTING = "starting"
    SCRAPING = "scraping"
    PROCESSING_SETUP = "processing_setup"
    PROCESSING_CASE = "processing_case"
    DOWNLOADING = "downloading"
    UNZIPPING = "unzipping"
    ANALYZING = "analyzing"
    COMPARING = "comparing"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STEPS = frozenset({Step.COMPLETE, Step.ERROR})


@dataclass(frozen=True)
class ProgressEvent:
    """One entry of a run's strictly ordered progress stream.

    Attributes:
        step: Pipeline step
        message: Locale-appropriate human-readable message
        progress: Percentage in [0, 100], omitted for sub-steps that do
                  not move the overall bar
        data: Terminal payload (only on ``complete``)
    """

    step: Step
    message: str
    progress: Optional[int] = None
    data: Optional[dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS

    def to_dict(self) -> dict[str, Any]:
        """Wire representation; optional fields are omitted when unset."""
        payload: dict[str, Any] = {"step": self.step.value, "message": self.message}
        if self.progress is not None:
            payload["progress"] = self.progress
        if self.data is not None:
            payload["data"] = self.data
        return payload
