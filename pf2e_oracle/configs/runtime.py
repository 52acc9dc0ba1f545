"""
PF2e Oracle Runtime Configuration

Runtime defaults and configuration merging logic.
Combines defaults, YAML config, and environment variables.
"""

import copy
import os

from pf2e_oracle.configs.constants import (
    DEFAULT_REPOSITORY,
    EMBEDDING_BATCH_SIZE,
    MAX_PARALLEL_DOWNLOADS,
    MAX_PARALLEL_EMBEDDINGS,
    PATH_PREFIX,
    PROGRESS_INTERVAL,
    TIMEOUTS,
)
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.configs.paths import get_default_chroma_path, get_default_database_url
from pf2e_oracle.configs.yaml_config import load_yaml_config

logger = get_logger("config")

# --- Default Runtime Configuration ---

DEFAULT_CONFIG = {
    "debug": False,
    "http_port": 8080,
    "github": {
        "repository": DEFAULT_REPOSITORY,
        "token": None,
        "max_parallel_downloads": MAX_PARALLEL_DOWNLOADS,
    },
    "import": {
        "path_prefix": PATH_PREFIX,
        "progress_interval": PROGRESS_INTERVAL,
    },
    "ingestion": {
        "max_parallel_embeddings": MAX_PARALLEL_EMBEDDINGS,
        "batch_size": EMBEDDING_BATCH_SIZE,
    },
    "llm": {
        "provider": "anthropic",
        "fallback_chain": ["ollama"],
        "model": "claude-3-5-haiku-latest",
        "ollama": {"base_url": "http://localhost:11434", "model": "llama3.2"},
    },
    "database_url": None,  # Resolved lazily to the data directory
    "chroma_path": None,
    "collection_name": "pf2e_rules",
    "timeouts": TIMEOUTS,
}

# (env var, section, key, converter)
ENV_OVERRIDES = [
    ("PF2E_GITHUB_REPOSITORY", "github", "repository", str),
    ("GITHUB_TOKEN", "github", "token", str),
    ("PF2E_MAX_PARALLEL_DOWNLOADS", "github", "max_parallel_downloads", int),
    ("PF2E_PATH_PREFIX", "import", "path_prefix", str),
    ("PF2E_MAX_PARALLEL_EMBEDDINGS", "ingestion", "max_parallel_embeddings", int),
    ("PF2E_BATCH_SIZE", "ingestion", "batch_size", int),
    ("PF2E_LLM_PROVIDER", "llm", "provider", str),
    ("PF2E_LLM_MODEL", "llm", "model", str),
    ("PF2E_DATABASE_URL", None, "database_url", str),
    ("PF2E_CHROMA_PATH", None, "chroma_path", str),
    ("PF2E_HTTP_PORT", None, "http_port", int),
]


def _merge_section(target: dict, overrides: dict) -> None:
    """Copy known keys from overrides into target, one level deep."""
    for key, value in overrides.items():
        if key not in target:
            continue
        if isinstance(target[key], dict) and isinstance(value, dict):
            for sub_key, sub_value in value.items():
                if sub_key in target[key]:
                    target[key][sub_key] = sub_value
        else:
            target[key] = value


def get_full_config() -> dict:
    """
    Get full configuration merged from defaults, YAML, and environment.

    Priority (highest wins):
    1. Environment variables
    2. YAML config file
    3. DEFAULT_CONFIG

    Returns:
        Merged configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    _merge_section(config, load_yaml_config())

    for env_var, section, key, convert in ENV_OVERRIDES:
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            value = convert(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_var}: {raw!r}")
            continue
        if section:
            config[section][key] = value
        else:
            config[key] = value

    if os.environ.get("PF2E_DEBUG"):
        config["debug"] = os.environ["PF2E_DEBUG"].lower() in ("true", "1", "yes")

    if not config["database_url"]:
        config["database_url"] = get_default_database_url()
    if not config["chroma_path"]:
        config["chroma_path"] = get_default_chroma_path()

    return config
