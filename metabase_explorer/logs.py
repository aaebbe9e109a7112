from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "metabase_explorer"


def setup_logging(log_file: Path | None, level: str = "INFO") -> Path | None:
    """Route package logs to a file; the terminal belongs to the UI.

    Without a log file the package logger gets a NullHandler so nothing leaks
    onto the screen. Safe to call repeatedly: previous handlers are replaced.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return None

    log_file = log_file.expanduser().resolve()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper().strip(), logging.INFO))
    return log_file
