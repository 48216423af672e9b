"""court-watch — change monitoring and AI analysis of public court filings.

This package searches the public court notice board, downloads and unpacks
filing attachments, extracts structured information from every document,
and synthesizes a narrative, on demand or whenever a tracked query
turns up a new filing.

Usage:
    from court_watch import __version__
    from court_watch.config import get_settings
    from court_watch.pipeline import PipelineOrchestrator
    from court_watch.monitor import ChangeDetector
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("court-watch")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Re-export lightweight core types for convenience.
# Pipeline modules are NOT imported here to avoid pulling in PyMuPDF,
# python-docx, and the Anthropic SDK on every import.
from court_watch.core import (
    AttachmentLink,
    CourtWatchError,
    DocumentAnalysis,
    FilingInfo,
    PipelineResult,
    ProgressEvent,
    Step,
)

__all__ = [
    "__version__",
    # Core types
    "AttachmentLink",
    "FilingInfo",
    "DocumentAnalysis",
    "PipelineResult",
    "ProgressEvent",
    "Step",
    # Base exception
    "CourtWatchError",
]
