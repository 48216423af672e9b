"""Tests for configuration management, constants, and locale messages.

The settings module carries the same two Pydantic v2 pitfalls as any
nested BaseSettings layout (extra="ignore" and load_dotenv before nested
defaults). These tests serve as regression guards. We also verify the
singleton pattern, environment overrides, and locale fallback.
"""

import pytest

import court_watch.config.settings as settings_module
from court_watch.config.constants import (
    ARCHIVE_EXTENSIONS,
    DEFAULT_BURST_CAPACITY,
    DEFAULT_CASE_COUNT,
    DEFAULT_SUSTAINED_CAPACITY,
    IDENTITY_KEY_SEPARATOR,
    MONITOR_CASE_COUNT,
)
from court_watch.config.messages import CROATIAN, ENGLISH, get_messages
from court_watch.config.settings import (
    ExtractionSettings,
    NotifySettings,
    PipelineSettings,
    RateLimitSettings,
    Settings,
    get_settings,
    reload_settings,
)


@pytest.fixture
def restore_settings():
    """Put the original singleton back after a test that reloads settings."""
    original = settings_module._settings_instance
    yield
    settings_module._settings_instance = original


# -----------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------


class TestConstants:
    """Verify critical constants that other modules depend on."""

    def test_case_counts(self):
        assert DEFAULT_CASE_COUNT == 2
        assert MONITOR_CASE_COUNT == 1

    def test_identity_separator(self):
        assert IDENTITY_KEY_SEPARATOR == " - "

    def test_zip_is_a_container(self):
        assert ".zip" in ARCHIVE_EXTENSIONS

    def test_rate_limit_defaults(self):
        assert DEFAULT_BURST_CAPACITY == 5
        assert DEFAULT_SUSTAINED_CAPACITY == 1000


# -----------------------------------------------------------------------
# Messages
# -----------------------------------------------------------------------


class TestMessages:
    """get_messages() picks a locale and falls back to Croatian."""

    def test_english(self):
        assert get_messages("en") is ENGLISH

    def test_croatian(self):
        assert get_messages("hr") is CROATIAN

    def test_region_suffix_ignored(self):
        assert get_messages("en-GB") is ENGLISH

    def test_unknown_falls_back_to_croatian(self):
        assert get_messages("de") is CROATIAN

    def test_templates_format(self):
        assert ENGLISH.processing_case.format(index=1, total=2, title="X") == (
            "Processing notice 1 of 2: X"
        )

    def test_summary_language(self):
        assert CROATIAN.language == "Croatian"


# -----------------------------------------------------------------------
# Nested settings defaults and overrides
# -----------------------------------------------------------------------


class TestSettingsDefaults:
    """Nested settings classes should have sensible defaults."""

    def test_pipeline_defaults(self, monkeypatch):
        monkeypatch.delenv("PIPELINE_DEFAULT_CASE_COUNT", raising=False)
        monkeypatch.delenv("PIPELINE_MAX_PARALLEL_DOCUMENTS", raising=False)
        s = PipelineSettings()
        assert s.default_case_count == 2
        assert s.max_parallel_documents == 0

    def test_extraction_key_absent(self, monkeypatch):
        monkeypatch.delenv("EXTRACTION_API_KEY", raising=False)
        assert ExtractionSettings().api_key is None

    def test_rate_limit_defaults(self, monkeypatch):
        monkeypatch.delenv("RATE_LIMIT_BURST_CAPACITY", raising=False)
        s = RateLimitSettings()
        assert s.burst_capacity == 5
        assert s.burst_window_seconds == 5
        assert s.sustained_window_seconds == 3600

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("NOTIFY_SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("NOTIFY_SMTP_PORT", "2525")
        s = NotifySettings()
        assert s.smtp_host == "smtp.example.com"
        assert s.smtp_port == 2525


class TestRootSettings:
    """The root Settings class composes all nested settings."""

    def test_has_all_sections(self):
        s = Settings()
        for section in (
            "source",
            "fetch",
            "extraction",
            "pipeline",
            "queue",
            "rate_limit",
            "database",
            "notify",
            "monitor",
            "api",
        ):
            assert hasattr(s, section)

    def test_extra_ignore(self):
        """Prefixed env vars belong to nested classes and must not be rejected."""
        assert Settings.model_config.get("extra") == "ignore"


class TestSingleton:
    """get_settings() returns one instance until reload_settings()."""

    def test_get_settings_is_singleton(self):
        assert get_settings() is get_settings()

    def test_reload_picks_up_environment(self, monkeypatch, restore_settings):
        monkeypatch.setenv("PIPELINE_DEFAULT_CASE_COUNT", "4")
        monkeypatch.setenv("PIPELINE_LOCALE", "en")
        s = reload_settings()
        assert s.pipeline.default_case_count == 4
        assert s.pipeline.locale == "en"
        assert get_settings() is s
