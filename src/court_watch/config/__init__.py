"""Configuration module — settings, constants, and locale messages."""

from court_watch.config.constants import (
    ARCHIVE_EXTENSIONS,
    DEFAULT_CASE_COUNT,
    FALLBACK_EXTENSION,
    IDENTITY_KEY_SEPARATOR,
    MONITOR_CASE_COUNT,
    PDF_EXTENSIONS,
    TEXT_EXTENSIONS,
    WORD_EXTENSIONS,
)
from court_watch.config.messages import Messages, get_messages
from court_watch.config.settings import (
    ApiSettings,
    DatabaseSettings,
    ExtractionSettings,
    FetchSettings,
    MonitorSettings,
    NotifySettings,
    PipelineSettings,
    QueueSettings,
    RateLimitSettings,
    Settings,
    SourceSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    # Constants
    "ARCHIVE_EXTENSIONS",
    "PDF_EXTENSIONS",
    "WORD_EXTENSIONS",
    "TEXT_EXTENSIONS",
    "FALLBACK_EXTENSION",
    "IDENTITY_KEY_SEPARATOR",
    "DEFAULT_CASE_COUNT",
    "MONITOR_CASE_COUNT",
    # Messages
    "Messages",
    "get_messages",
    # Settings
    "Settings",
    "SourceSettings",
    "FetchSettings",
    "ExtractionSettings",
    "PipelineSettings",
    "QueueSettings",
    "RateLimitSettings",
    "DatabaseSettings",
    "NotifySettings",
    "MonitorSettings",
    "ApiSettings",
    "get_settings",
    "reload_settings",
]
