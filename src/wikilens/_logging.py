"""Logging configuration for wikilens.

This module provides consistent logging across the codebase.

Usage in other modules:
    import logging
    log = logging.getLogger(__name__)

    log.debug("Detailed info for debugging")
    log.info("General operational info")
    log.warning("Unexpected but handled situation")

The log level can be configured via the WIKILENS_LOG_LEVEL environment variable:
    - DEBUG: Detailed debugging information (cache evictions, rescans)
    - INFO: General operational messages (default)
    - WARNING: Unreadable files and directories skipped during a scan
    - ERROR: Errors that prevented an operation

Set WIKILENS_LOG_FILE to additionally append timestamped records to a file.
Logs always go to stderr: stdout carries the MCP stdio transport.
"""

import logging
import os
import sys

PACKAGE_LOGGER = "wikilens"


def configure_logging() -> None:
    """Configure logging for the wikilens package.

    Call this once at application startup (in cli.py or server.py).
    Subsequent calls are no-ops.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)

    # Skip if already configured (has handlers)
    if root_logger.handlers:
        return

    level_name = os.environ.get("WIKILENS_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))
    root_logger.addHandler(handler)

    log_file = os.environ.get("WIKILENS_LOG_FILE")
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            root_logger.warning("Cannot open log file %s: %s", log_file, e)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter(
                    fmt="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%dT%H:%M:%S",
                )
            )
            root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

    # Prevent propagation to root logger (avoids duplicate messages)
    root_logger.propagate = False


def set_quiet_mode(quiet: bool) -> None:
    """Restrict console output to errors (used by ``--quiet``)."""
    root_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.FileHandler
        ):
            handler.setLevel(logging.ERROR if quiet else root_logger.level)
