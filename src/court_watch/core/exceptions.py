"""
Custom exception hierarchy for court-watch.

All exceptions inherit from CourtWatchError, allowing callers to catch
all project-specific errors with a single except clause when desired.

Exception hierarchy:
    CourtWatchError (base)
    ├── ConfigurationError — Invalid or missing configuration
    ├── SearchProviderError — Record source unreachable or unparseable
    ├── NoFilingsFoundError — Nothing to analyse for a run
    ├── FetchError — Attachment download failures (per link)
    ├── ArchiveError — Container expansion failures
    ├── ExtractionError — Text extraction or extraction-service failures
    ├── SynthesisError — Cross-document summary failures
    ├── DatabaseError — Subscription store failures
    ├── NotificationError — Outbound notification failures
    └── RateLimitExceededError — Client exhausted a rate window

Only SearchProviderError and NoFilingsFoundError are fatal for a pipeline
run. The others are converted into explicit failure records (or logged)
at the boundary of the component that raised them.
"""

from typing import Optional


class CourtWatchError(Exception):
    """
    Base exception for all court-watch errors.

    Args:
        message: Human-readable error description.
        details: Optional additional context for debugging.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            return f"{self.message} — {self.details}"
        return self.message


class ConfigurationError(CourtWatchError):
    """
    Raised when configuration is invalid or missing.

    Examples:
        - Missing EXTRACTION_API_KEY when the extraction service is used
        - Missing SMTP host when notifications are sent
    """

    pass


class SearchProviderError(CourtWatchError):
    """
    Raised when the public record source cannot be searched.

    Examples:
        - Network connectivity issues
        - Non-2xx response from the notice board
        - Result page layout that cannot be parsed
    """

    pass


class NoFilingsFoundError(CourtWatchError):
    """
    Raised when a run has no filings to process.

    Fatal for the run: the orchestrator emits one ``error`` progress
    event and re-raises.
    """

    pass


class FetchError(CourtWatchError):
    """
    Raised when downloading a single attachment link fails.

    Examples:
        - Network timeout
        - Non-2xx response
        - Local write error
    """

    pass


class ArchiveError(CourtWatchError):
    """Raised when a compressed container cannot be expanded."""

    pass


class ExtractionError(CourtWatchError):
    """
    Raised when a document cannot be turned into structured data.

    Examples:
        - No text layer and no renderable pages
        - Extraction service call failed
        - Response is not a JSON object
    """

    pass


class SynthesisError(CourtWatchError):
    """Raised internally when the cross-document summary cannot be built."""

    pass


class DatabaseError(CourtWatchError):
    """
    Raised when subscription store operations fail.

    Examples:
        - SQLite write errors
        - Schema creation failures
    """

    pass


class NotificationError(CourtWatchError):
    """Raised when a subscriber notification cannot be delivered."""

    pass


class RateLimitExceededError(CourtWatchError):
    """
    Raised when a client has no tokens left in one of its rate windows.

    Attributes:
        retry_after_ms: Milliseconds until the exhausted window refills
            its next token.
        window: Name of the exhausted window ("burst" or "sustained").
    """

    def __init__(
        self,
        retry_after_ms: int,
        window: str,
        details: Optional[str] = None,
    ) -> None:
        self.retry_after_ms = retry_after_ms
        self.window = window
        message = (
            f"Too many requests ({window} limit). "
            f"Retry after {retry_after_ms} ms."
        )
        super().__init__(message, details)
