"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from flowplane.core.observability.logging_config import _parse_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_unknown_falls_back(self):
        assert _parse_level("chatty") == logging.WARNING
        assert _parse_level(None) == logging.WARNING


class TestSetupLogging:
    def test_console_only(self, restore_root_logger):
        setup_logging("INFO")
        assert restore_root_logger.level == logging.INFO
        assert len(restore_root_logger.handlers) == 1

    def test_file_level_lowers_root(self, restore_root_logger, tmp_path: Path):
        log_file = tmp_path / "run.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        assert restore_root_logger.level == logging.DEBUG

        logging.getLogger("flowplane.test").debug("binding started")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "binding started" in log_file.read_text()

    def test_info_format_names_worker_thread(self, restore_root_logger):
        setup_logging("INFO")
        formatter = restore_root_logger.handlers[0].formatter
        assert "%(threadName)s" in formatter._fmt

    def test_warning_format_is_plain(self, restore_root_logger):
        setup_logging("WARNING")
        assert restore_root_logger.handlers[0].formatter._fmt == "%(message)s"
