"""Application-wide constants."""

# Record source
DEFAULT_SOURCE_BASE_URL = "https://e-oglasna.pravosudje.hr"
DEFAULT_SEARCH_PATH = "/pretraga"

# Filings analysed per interactive run, and per change-detection check
DEFAULT_CASE_COUNT = 2
MONITOR_CASE_COUNT = 1

# Separator between case number and date in a filing's identity key
IDENTITY_KEY_SEPARATOR = " - "

# File types
ARCHIVE_EXTENSIONS = frozenset({".zip"})
PDF_EXTENSIONS = frozenset({".pdf"})
WORD_EXTENSIONS = frozenset({".docx"})
TEXT_EXTENSIONS = frozenset({".txt"})

# Extension used when neither headers nor link text identify the file type
FALLBACK_EXTENSION = ".bin"

# Keyword in a link's display text that marks a compressed container
ARCHIVE_LINK_KEYWORD = "zip"

# Generic MIME types whose extension mapping carries no information
GENERIC_CONTENT_TYPES = frozenset(
    {"application/octet-stream", "binary/octet-stream", "application/download"}
)

# Maximum characters of a sanitised display name used in local filenames
SAFE_NAME_LENGTH = 40

# Extraction service defaults
DEFAULT_EXTRACTION_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_PROMPT_CHAR_LIMIT = 25000
DEFAULT_RENDER_DPI = 150
DEFAULT_MAX_VISION_PAGES = 20

# Raw service output quoted in a parse-failure error message
ERROR_RESPONSE_PREVIEW = 200

# Rate limiting (tokens per window)
DEFAULT_BURST_CAPACITY = 5
DEFAULT_BURST_WINDOW_SECONDS = 5
DEFAULT_SUSTAINED_CAPACITY = 1000
DEFAULT_SUSTAINED_WINDOW_SECONDS = 3600

# Database
DEFAULT_SUBSCRIPTIONS_DB_PATH = "./data/subscriptions.sqlite"

# Change detection
DEFAULT_MONITOR_INTERVAL_SECONDS = 24 * 60 * 60
