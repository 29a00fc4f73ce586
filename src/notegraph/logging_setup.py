"""
Logging setup for the command line entry point

Library modules only call logging.getLogger(__name__); handlers are
installed here, once per process.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import settings

LOGGER_NAME = "notegraph"


def setup_logging(level: Optional[str] = None, log_file: bool = True) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if logger.handlers:
        return logger

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    # stdout carries JSON results, diagnostics go to stderr
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level or settings.LOG_LEVEL)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        try:
            settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                settings.LOG_PATH, maxBytes=2 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
        except OSError:
            logger.warning("cannot open log file %s, logging to stderr only", settings.LOG_PATH)
        else:
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(fmt)
            logger.addHandler(fh)

    logger.debug("Logging initialized. log_file=%s", settings.LOG_PATH if log_file else None)
    return logger
