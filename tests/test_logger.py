"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from runmetrics.utils import logger as logger_module
from runmetrics.utils import setup_logging


@pytest.fixture
def root_logger(monkeypatch):
    """Root logger with handlers and level restored after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    monkeypatch.setattr(logger_module, "_configured", False)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_installs_handlers_once(root_logger):
    before = len(root_logger.handlers)

    setup_logging("INFO")
    setup_logging("DEBUG")

    added = root_logger.handlers[before:]
    assert len(added) == 1
    assert isinstance(added[0], RichHandler)
    assert root_logger.level == logging.DEBUG


def test_file_handler(root_logger, tmp_path):
    log_file = tmp_path / "logs" / "runmetrics.log"

    setup_logging("INFO", log_file=log_file)
    logging.getLogger("runmetrics.test").info("hello file")
    for handler in root_logger.handlers:
        handler.flush()

    line = log_file.read_text().strip()
    assert line.endswith("runmetrics.test - INFO - hello file")


def test_unknown_level_falls_back_to_info(root_logger):
    setup_logging("chatty")
    assert root_logger.level == logging.INFO
