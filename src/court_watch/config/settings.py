"""Configuration management using Pydantic Settings v2."""

from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from court_watch.config.constants import (
    DEFAULT_BURST_CAPACITY,
    DEFAULT_BURST_WINDOW_SECONDS,
    DEFAULT_CASE_COUNT,
    DEFAULT_EXTRACTION_MODEL,
    DEFAULT_MAX_VISION_PAGES,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    DEFAULT_PROMPT_CHAR_LIMIT,
    DEFAULT_RENDER_DPI,
    DEFAULT_SEARCH_PATH,
    DEFAULT_SOURCE_BASE_URL,
    DEFAULT_SUBSCRIPTIONS_DB_PATH,
    DEFAULT_SUSTAINED_CAPACITY,
    DEFAULT_SUSTAINED_WINDOW_SECONDS,
)

# Load .env into os.environ BEFORE nested BaseSettings classes are
# instantiated as default values in the Settings class body.  The nested
# sections only search os.environ; they have no env_file of their own.
load_dotenv()


class SourceSettings(BaseSettings):
    """Public record source (court notice board)."""

    base_url: str = DEFAULT_SOURCE_BASE_URL
    search_path: str = DEFAULT_SEARCH_PATH
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    timeout_seconds: float = 90.0

    model_config = SettingsConfigDict(env_prefix="SOURCE_")


class FetchSettings(BaseSettings):
    """Attachment download configuration."""

    download_dir: str = "./uploads"
    timeout_seconds: float = 60.0
    max_file_size: int = 200 * 1024 * 1024

    model_config = SettingsConfigDict(env_prefix="FETCH_")


class ExtractionSettings(BaseSettings):
    """Extraction service (LLM) configuration."""

    api_key: Optional[str] = None
    model: str = DEFAULT_EXTRACTION_MODEL
    max_tokens: int = 4096
    prompt_char_limit: int = DEFAULT_PROMPT_CHAR_LIMIT
    render_dpi: int = DEFAULT_RENDER_DPI
    max_vision_pages: int = DEFAULT_MAX_VISION_PAGES

    model_config = SettingsConfigDict(env_prefix="EXTRACTION_")


class PipelineSettings(BaseSettings):
    """Pipeline behaviour."""

    default_case_count: int = DEFAULT_CASE_COUNT
    locale: str = "hr"
    # 0 means "no cap": every document of a filing is analysed at once.
    max_parallel_documents: int = 0

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")


class QueueSettings(BaseSettings):
    """Job admission queue."""

    concurrency: int = 1

    model_config = SettingsConfigDict(env_prefix="QUEUE_")


class RateLimitSettings(BaseSettings):
    """Per-client dual-window token buckets."""

    burst_capacity: int = DEFAULT_BURST_CAPACITY
    burst_window_seconds: float = DEFAULT_BURST_WINDOW_SECONDS
    sustained_capacity: int = DEFAULT_SUSTAINED_CAPACITY
    sustained_window_seconds: float = DEFAULT_SUSTAINED_WINDOW_SECONDS
    max_clients: int = 10_000
    sweep_interval_seconds: float = 300.0

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_")


class DatabaseSettings(BaseSettings):
    """Subscription store configuration."""

    subscriptions_db_path: str = DEFAULT_SUBSCRIPTIONS_DB_PATH

    model_config = SettingsConfigDict(env_prefix="DB_")


class NotifySettings(BaseSettings):
    """Outbound e-mail notifications."""

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    use_tls: bool = True
    sender: str = "admin@alimentacija.info"
    unsubscribe_base_url: str = "http://localhost:8000/api/unsubscribe"

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")


class MonitorSettings(BaseSettings):
    """Change detection schedule."""

    interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SECONDS

    model_config = SettingsConfigDict(env_prefix="MONITOR_")


class ApiSettings(BaseSettings):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(env_prefix="API_")


class Settings(BaseSettings):
    """Root settings class combining all sections."""

    source: SourceSettings = SourceSettings()
    fetch: FetchSettings = FetchSettings()
    extraction: ExtractionSettings = ExtractionSettings()
    pipeline: PipelineSettings = PipelineSettings()
    queue: QueueSettings = QueueSettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    database: DatabaseSettings = DatabaseSettings()
    notify: NotifySettings = NotifySettings()
    monitor: MonitorSettings = MonitorSettings()
    api: ApiSettings = ApiSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore prefixed env vars handled by nested classes
    )


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the global Settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reload_settings() -> Settings:
    """Reload settings from environment (mainly for testing)."""
    global _settings_instance
    _settings_instance = Settings(
        source=SourceSettings(),
        fetch=FetchSettings(),
        extraction=ExtractionSettings(),
        pipeline=PipelineSettings(),
        queue=QueueSettings(),
        rate_limit=RateLimitSettings(),
        database=DatabaseSettings(),
        notify=NotifySettings(),
        monitor=MonitorSettings(),
        api=ApiSettings(),
    )
    return _settings_instance
