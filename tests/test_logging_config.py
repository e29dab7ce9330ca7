"""Tests for setup_logging()."""

import logging

import pytest

from tracker_exporter.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestSetupLogging:
    """Tests for handler wiring."""

    def test_console_only(self):
        assert setup_logging("WARNING") is None
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.WARNING

    def test_repeat_calls_do_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("LOUD")
        assert logging.getLogger().handlers[0].level == logging.INFO

    def test_log_file_created(self, tmp_path):
        log_file = setup_logging("INFO", log_dir=str(tmp_path / "logs"))
        assert log_file is not None
        assert log_file.parent == tmp_path / "logs"
        assert log_file.name.startswith("run-")

        logging.getLogger("tracker_exporter.test").debug("debug line")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "debug line" in log_file.read_text(encoding="utf-8")

    def test_third_party_loggers_quietened(self):
        setup_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
