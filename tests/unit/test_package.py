"""Tests for the package-level __init__.py.

Verifies version discovery, re-exported types, and __all__ contents.
The package __init__ avoids importing the pipeline (PyMuPDF,
python-docx, the Anthropic SDK) — only lightweight core types are
re-exported.
"""

import court_watch


class TestVersion:
    """__version__ should be readable and well-formed."""

    def test_version_is_string(self):
        assert isinstance(court_watch.__version__, str)

    def test_version_matches_pyproject(self):
        """In dev mode (pip install -e .), version comes from metadata."""
        assert court_watch.__version__ == "0.1.0"


class TestReExports:
    """Core types should be importable directly from the package."""

    def test_types(self):
        from court_watch import AttachmentLink, FilingInfo, PipelineResult, ProgressEvent, Step

        assert FilingInfo is court_watch.core.FilingInfo
        assert all(t is not None for t in (AttachmentLink, PipelineResult, ProgressEvent, Step))

    def test_base_exception(self):
        from court_watch import CourtWatchError

        assert issubclass(CourtWatchError, Exception)

    def test_all_matches_exports(self):
        for name in court_watch.__all__:
            assert hasattr(court_watch, name), name
