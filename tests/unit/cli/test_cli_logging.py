"""Unit tests for fileguard.cli.utils logging setup."""

import logging

import pytest

from fileguard.cli.utils import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
@pytest.mark.cli
class TestSetupLogging:
    def test_level_is_applied(self):
        setup_logging("debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_warning(self):
        setup_logging("chatty")
        assert logging.getLogger().level == logging.WARNING

    def test_log_file_receives_records(self, tmp_path):
        log_file = tmp_path / "logs" / "fileguard.log"

        setup_logging("info", str(log_file))
        logging.getLogger("fileguard.test").info("hello from test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "fileguard.test - INFO - hello from test" in content
