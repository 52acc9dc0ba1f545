"""
PF2e Oracle Data Paths

Manages the data directory, SQLite database and ChromaDB locations.
Auto-detects Docker environment for appropriate path selection.
"""

import os
from pathlib import Path

DEFAULT_DATA_PATH = Path.home() / ".pf2e-oracle"


def get_data_path() -> Path:
    """Get the oracle data directory path.

    Resolution order:
    - PF2E_DATA_PATH env var
    - Docker: /app/oracle_data (when /app exists and is writable)
    - Host: ~/.pf2e-oracle

    Returns:
        Path to the data directory
    """
    data_path = os.environ.get("PF2E_DATA_PATH")
    if data_path:
        return Path(data_path).expanduser()
    if os.path.exists("/app") and os.access("/app", os.W_OK):
        return Path("/app/oracle_data")
    return DEFAULT_DATA_PATH


def ensure_data_dir() -> Path:
    """Ensure the data directory exists and return it."""
    data_path = get_data_path()
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


def get_default_database_url() -> str:
    """SQLite database inside the data directory."""
    return f"sqlite:///{get_data_path() / 'oracle.db'}"


def get_default_chroma_path() -> str:
    """Get the ChromaDB persistence directory."""
    env_path = os.environ.get("PF2E_CHROMA_PATH")
    if env_path:
        return os.path.expanduser(env_path)
    return str(get_data_path() / "chroma")
