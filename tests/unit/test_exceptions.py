"""
Tests for the custom exception hierarchy.

The exception classes carry structured data (message + details) and
custom formatting. We verify:
    - Base class message formatting (with and without details)
    - The em-dash separator in _format_message()
    - Inheritance chain (all exceptions are CourtWatchError)
    - RateLimitExceededError's custom __init__ and attributes
"""

import pytest

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


class TestBaseException:
    """CourtWatchError is the root of the hierarchy."""

    def test_message_only(self):
        exc = CourtWatchError("Something went wrong")
        assert exc.message == "Something went wrong"
        assert exc.details is None
        assert str(exc) == "Something went wrong"

    def test_message_with_details(self):
        exc = CourtWatchError("Failed", details="Connection refused")
        assert exc.message == "Failed"
        assert exc.details == "Connection refused"
        assert str(exc) == "Failed — Connection refused"

    def test_empty_details_are_omitted(self):
        exc = CourtWatchError("Failed", details="")
        assert str(exc) == "Failed"

    def test_is_exception(self):
        """Must be catchable as a standard Exception."""
        with pytest.raises(Exception):
            raise CourtWatchError("boom")


class TestHierarchy:
    """Every project exception is catchable as CourtWatchError."""

    @pytest.mark.parametrize(
        "exc_class",
        [
            ConfigurationError,
            SearchProviderError,
            NoFilingsFoundError,
            FetchError,
            ArchiveError,
            ExtractionError,
            SynthesisError,
            DatabaseError,
            NotificationError,
        ],
    )
    def test_subclass(self, exc_class):
        exc = exc_class("msg", details="ctx")
        assert isinstance(exc, CourtWatchError)
        assert str(exc) == "msg — ctx"

    def test_rate_limit_is_court_watch_error(self):
        assert issubclass(RateLimitExceededError, CourtWatchError)


class TestRateLimitExceededError:
    """RateLimitExceededError builds its own message from its attributes."""

    def test_attributes(self):
        exc = RateLimitExceededError(retry_after_ms=1500, window="burst")
        assert exc.retry_after_ms == 1500
        assert exc.window == "burst"

    def test_message_mentions_window_and_wait(self):
        exc = RateLimitExceededError(retry_after_ms=1500, window="sustained")
        assert "sustained" in exc.message
        assert "1500 ms" in exc.message

    def test_details_passed_through(self):
        exc = RateLimitExceededError(250, "burst", details="client 10.0.0.1")
        assert exc.details == "client 10.0.0.1"
        assert str(exc).endswith("— client 10.0.0.1")
