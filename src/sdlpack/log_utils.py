"""Logging setup for the sdlpack command-line tool."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger.

    Diagnostics go to stderr so they never mix with relayed tool output on
    stdout. When SDLPACK_LOG_FILE is set, a rotating log file is added as
    well and always records at DEBUG level.

    Args:
        verbose: Log DEBUG messages to the console instead of WARNING+
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        if getattr(handler, "_sdlpack", False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._sdlpack = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)

    log_file = os.environ.get("SDLPACK_LOG_FILE")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler._sdlpack = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)
