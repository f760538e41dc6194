"""
Logging setup for bucketsync.

Every module logs through logging.getLogger(__name__), so all records fall
under the 'bucketsync' logger hierarchy. This module attaches handlers to
that logger once.

Environment:
    BUCKETSYNC_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default INFO)
    BUCKETSYNC_LOG_FILE: Optional file to log to in addition to stdout
    BUCKETSYNC_DEBUG: 'true', '1' or 'yes' forces DEBUG

Log Format:
    %(asctime)s - %(name)s - %(levelname)s - %(message)s
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER_NAME = "bucketsync"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _env_level() -> str:
    if os.getenv("BUCKETSYNC_DEBUG", "").lower() in ("true", "1", "yes"):
        return "DEBUG"
    return os.getenv("BUCKETSYNC_LOG_LEVEL", "INFO").upper()


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the bucketsync logger hierarchy.

    Only the first call takes effect unless force is True.

    Args:
        level: Log level name; defaults to the environment configuration
        log_file: Optional log file path; defaults to BUCKETSYNC_LOG_FILE
        force: Replace handlers installed by an earlier call

    Returns:
        The 'bucketsync' logger
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _configured and not force:
        return root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    log_level = getattr(logging, (level or _env_level()).upper(), logging.INFO)
    root.setLevel(log_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    log_file = log_file or os.getenv("BUCKETSYNC_LOG_FILE")
    if log_file:
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"Failed to create log file {log_file}: {e}")

    _configured = True
    return root

