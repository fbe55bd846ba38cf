"""
JaxSpot - Logging Utilities

Provides centralized logging configuration for the entire application.
Outputs logs to both console and a file in the 'logs' directory.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

# Global flag to ensure we only configure the root logger once
_LOGGER_INITIALIZED = False


def _ensure_log_dir() -> Path:
    """
    Ensures the 'logs' directory exists at the project root.
    Returns the path to the logs directory.
    """
    from jaxspot.core.paths import get_project_root

    log_dir = get_project_root() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    from jaxspot.core.config import LOG_LEVEL

    resolved = logging.getLevelName(str(LOG_LEVEL).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def init_logging(level: Optional[int] = None) -> None:
    """
    Configures the root logger with StreamHandler and FileHandler.
    This should be called once at the start of the application or script.
    """
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Position timestamps are UTC, so the log is too
    formatter.converter = time.gmtime

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    # Clear existing handlers to avoid duplicates if re-initialized
    if root.handlers:
        root.handlers.clear()

    # 1. Stream Handler (Console)
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    # 2. File Handler
    log_file = None
    try:
        log_file = _ensure_log_dir() / "jaxspot.log"
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)
    except OSError as e:
        root.warning(f"File logging disabled: {e}")

    _LOGGER_INITIALIZED = True

    logging.getLogger("jaxspot.core.logging_utils").info(f"Logging initialized. Log file: {log_file}")


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Returns a configured logger instance.
    Ensures logging is initialized before returning.
    """
    if not _LOGGER_INITIALIZED:
        init_logging()

    return logging.getLogger(name if name else "jaxspot")
