from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "visual_search_circle"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(log_file: Path | None = None, *, level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger for console output and an optional log file.

    Calling this again replaces the handlers it installed before, so a host
    running several sessions does not duplicate output.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        # Start each session with a fresh file.
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
