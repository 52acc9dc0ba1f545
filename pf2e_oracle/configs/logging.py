"""
PF2e Oracle Logging Configuration

Configures logging based on environment variables:
- PF2E_DEBUG: Enable debug logging (default: false)
- PF2E_LOG_FILE: Log file path (default: $PF2E_DATA_PATH/oracle.log)
"""

import logging
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Optional

from pf2e_oracle.configs.paths import get_data_path

# Set per HTTP request by the correlation middleware
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(
    debug: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging for the oracle.

    Args:
        debug: Enable debug level. Defaults to PF2E_DEBUG env var.
        log_file: Log file path. Defaults to PF2E_LOG_FILE env var,
                  or $PF2E_DATA_PATH/oracle.log if not set.

    Returns:
        Root logger for pf2e
    """
    # Read from env if not provided
    if debug is None:
        debug = os.environ.get("PF2E_DEBUG", "").lower() in ("true", "1", "yes")
    if log_file is None:
        log_file = os.environ.get("PF2E_LOG_FILE")
        if not log_file:
            log_file = str(get_data_path() / "oracle.log")

    # Ensure log directory exists
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    # Component tags plus the request correlation id
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)-5s [%(name)s] [%(correlation_id)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    correlation_filter = CorrelationIdFilter()

    logger = logging.getLogger("pf2e")
    logger.setLevel(level)
    logger.handlers.clear()

    # Always add stderr handler (but only for warnings+ unless debug)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.addFilter(correlation_filter)
    if log_file:
        stderr_handler.setLevel(logging.WARNING)
    else:
        stderr_handler.setLevel(level)
    logger.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(correlation_filter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_file}")

    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., "import", "ingestion", "github")

    Returns:
        Logger instance for the component
    """
    return logging.getLogger(f"pf2e.{component}")
