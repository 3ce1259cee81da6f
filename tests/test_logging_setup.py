from __future__ import annotations

import logging
from pathlib import Path

from visual_search_circle.logging_setup import LOGGER_NAME, setup_logging


def test_setup_logging_writes_file_and_does_not_stack_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "session.log"
    setup_logging(log_file)
    logger = setup_logging(log_file, level=logging.DEBUG)

    assert logger.name == LOGGER_NAME
    assert len(logger.handlers) == 2

    logging.getLogger(f"{LOGGER_NAME}.trial").info("trial ended: correct=True")
    for handler in logger.handlers:
        handler.flush()
    assert "INFO - trial ended: correct=True" in log_file.read_text(encoding="utf-8")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
