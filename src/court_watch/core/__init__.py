"""Core module — types, exceptions, and logging.

This module provides the foundational components used throughout the package:
    - Data types (FilingInfo, DownloadedFile, DocumentAnalysis, ProgressEvent, ...)
    - Exception hierarchy (CourtWatchError and subclasses)
    - Logging utilities (get_logger, configure_logging)

Usage:
    from court_watch.core import (
        FilingInfo,
        ProgressEvent,
        FetchError,
        get_logger,
    )
"""

from court_watch.core.exceptions import (
    ArchiveError,
    ConfigurationError,
    CourtWatchError,
    DatabaseError,
    ExtractionError,
    FetchError,
    NoFilingsFoundError,
    NotificationError,
    RateLimitExceededError,
    SearchProviderError,
    SynthesisError,
)
from court_watch.core.logging import (
    configure_logging,
    get_logger,
    suppress_third_party_loggers,
)
from court_watch.core.types import (
    TERMINAL_STEPS,
    AttachmentLink,
    CaseExtraction,
    DocumentAnalysis,
    DownloadedFile,
    ExtractedFile,
    FilingInfo,
    Participant,
    PipelineResult,
    ProcessedFiling,
    ProgressEvent,
    Step,
)

__all__ = [
    # Types
    "AttachmentLink",
    "Participant",
    "FilingInfo",
    "DownloadedFile",
    "ExtractedFile",
    "CaseExtraction",
    "DocumentAnalysis",
    "ProcessedFiling",
    "PipelineResult",
    "ProgressEvent",
    "Step",
    "TERMINAL_STEPS",
    # Exceptions
    "CourtWatchError",
    "ConfigurationError",
    "SearchProviderError",
    "NoFilingsFoundError",
    "FetchError",
    "ArchiveError",
    "ExtractionError",
    "SynthesisError",
    "DatabaseError",
    "NotificationError",
    "RateLimitExceededError",
    # Logging
    "get_logger",
    "configure_logging",
    "suppress_third_party_loggers",
]
