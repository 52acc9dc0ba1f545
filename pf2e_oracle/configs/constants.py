"""
PF2e Oracle Constants

Static configuration values that rarely change: repository layout,
file filters, pipeline defaults and timeout configuration.
"""

# --- Remote Repository Layout ---

DEFAULT_REPOSITORY = "foundryvtt/pf2e"
DEFAULT_BRANCH = "main"

# Compendium content lives below this prefix, one directory per category
PATH_PREFIX = "packs/pf2e"

GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"
USER_AGENT = "pf2e-oracle/1.0 (Pathfinder 2e AI Oracle)"

# --- File Filters ---

CONTENT_EXTENSION = ".json"

# Folder metadata files that share the extension but hold no rules content
NON_CONTENT_SUFFIXES = ("_folders.json",)

# --- Pipeline Defaults ---

MAX_PARALLEL_DOWNLOADS = 10
MAX_PARALLEL_EMBEDDINGS = 5
EMBEDDING_BATCH_SIZE = 50
PROGRESS_INTERVAL = 50

# --- Timeout Configuration ---
# Centralized timeout values (in seconds)

TIMEOUTS = {
    "http_default": 10,  # Default HTTP request timeout
    "github_tree": 60,  # Recursive tree listing is large
    "github_raw": 30,  # Single raw file download
    "llm_request": 120,  # LLM API requests (can be slow)
}


def get_timeout(key: str, default: int | float | None = None) -> int | float:
    """
    Get a timeout value by key.

    Args:
        key: Timeout key from TIMEOUTS dict
        default: Default value if key not found

    Returns:
        Timeout value in seconds
    """
    if default is None:
        default = TIMEOUTS.get("http_default", 10)
    return TIMEOUTS.get(key, default)
