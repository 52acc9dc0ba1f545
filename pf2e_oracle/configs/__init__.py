"""
PF2e Oracle Configuration Module

Re-exports commonly used functions for cleaner imports across the codebase.
"""

# Logging (most commonly used)
from pf2e_oracle.configs.logging import correlation_id_var, get_logger, setup_logging

# Paths
from pf2e_oracle.configs.paths import ensure_data_dir, get_data_path

# Constants
from pf2e_oracle.configs.constants import (
    DEFAULT_REPOSITORY,
    PATH_PREFIX,
    TIMEOUTS,
    get_timeout,
)

# YAML config
from pf2e_oracle.configs.yaml_config import (
    DEFAULT_CONFIG_YAML,
    create_default_config,
    get_config_path,
    load_yaml_config,
)

# Runtime
from pf2e_oracle.configs.runtime import DEFAULT_CONFIG, get_full_config

# Note: services.py is NOT imported here to avoid circular imports.
# Services should be imported directly: from pf2e_oracle.configs.services import ...

__all__ = [
    # Logging
    "correlation_id_var",
    "get_logger",
    "setup_logging",
    # Paths
    "get_data_path",
    "ensure_data_dir",
    # Constants
    "DEFAULT_REPOSITORY",
    "PATH_PREFIX",
    "TIMEOUTS",
    "get_timeout",
    # YAML config
    "DEFAULT_CONFIG_YAML",
    "get_config_path",
    "load_yaml_config",
    "create_default_config",
    # Runtime
    "DEFAULT_CONFIG",
    "get_full_config",
]
