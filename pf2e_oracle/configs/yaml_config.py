"""
PF2e Oracle YAML Configuration

Loading and defaults for ~/.pf2e-oracle/config.yaml.
"""

from pathlib import Path

import yaml

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.configs.paths import ensure_data_dir, get_data_path

logger = get_logger("config")

# --- Default Config Template ---

DEFAULT_CONFIG_YAML = """\
# PF2e Oracle Configuration
# Edit this file to customize oracle behavior.

# HTTP server port
http_port: 8080

# Enable debug logging
debug: false

# Source repository (Foundry VTT PF2e system)
github:
  repository: "foundryvtt/pf2e"
  # Token read from GITHUB_TOKEN env var (raises rate limit from 60 to 5000 req/h)
  max_parallel_downloads: 10

# Import from GitHub into the database
import:
  path_prefix: "packs/pf2e"
  progress_interval: 50

# Embedding into the vector store
ingestion:
  max_parallel_embeddings: 5
  batch_size: 50

# Question answering
llm:
  provider: "anthropic"
  fallback_chain: ["ollama"]
  model: "claude-3-5-haiku-latest"
  # API key read from ANTHROPIC_API_KEY env var
  ollama:
    base_url: "http://localhost:11434"
    model: "llama3.2"
"""


def get_config_path() -> Path:
    """Get the path to config.yaml."""
    return get_data_path() / "config.yaml"


def load_yaml_config() -> dict:
    """
    Load configuration from ~/.pf2e-oracle/config.yaml.

    Returns:
        Configuration dictionary (empty if file doesn't exist or is invalid)
    """
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        loaded = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Ignoring invalid config file {config_path}: {e}")
        return {}
    if not isinstance(loaded, dict):
        logger.warning(f"Ignoring config file {config_path}: expected a mapping")
        return {}
    return loaded


def create_default_config() -> bool:
    """
    Create default config.yaml if it doesn't exist.

    Returns:
        True if file was created, False if it already exists
    """
    config_path = get_config_path()
    if config_path.exists():
        return False

    ensure_data_dir()
    config_path.write_text(DEFAULT_CONFIG_YAML)
    return True
