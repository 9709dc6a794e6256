"""Logging utilities for kinscan.

This module provides loguru-based logging configuration.
"""

import sys
from pathlib import Path

from loguru import logger


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru for kinscan.

    Sets up console logging with INFO level (or DEBUG if verbose), and
    optional file logging with JSON serialization. The scanners log their
    per-call summaries at DEBUG, so verbose=True is what shows them.

    Args:
        verbose: If True, set console logging to DEBUG level.
        log_file: Optional path to log file. If provided, DEBUG-level
            logs are written with JSON serialization.
    """
    logger.remove()

    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stdout,
        level=level,
        format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            serialize=True,
            level="DEBUG",
        )
