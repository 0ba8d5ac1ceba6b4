"""
Tests for logging setup.
"""

import logging
from pathlib import Path

from terrable.core.observability.logging_config import _parse_level, setup_logging


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("WARNING") == logging.WARNING

    def test_fallback_to_info(self):
        assert _parse_level(None) == logging.INFO
        assert _parse_level("") == logging.INFO
        assert _parse_level("chatty") == logging.INFO


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("WARNING")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.WARNING
        assert root.level == logging.WARNING

    def test_repeated_calls_do_not_stack(self):
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(logging.getLogger().handlers) == 1

    def test_info_console_format_is_bare(self):
        setup_logging("INFO")
        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "✔ - Hash is good", None, None)
        assert handler.format(record) == "✔ - Hash is good"

    def test_debug_format_has_location(self):
        setup_logging("DEBUG")
        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord("terrable.x", logging.DEBUG, __file__, 42, "msg", None, None)
        assert "terrable.x:42" in handler.format(record)

    def test_log_file(self, tmp_path: Path):
        log_file = tmp_path / "terrable.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("terrable.test").debug("to the file only")
        for handler in root.handlers:
            handler.flush()

        assert "to the file only" in log_file.read_text(encoding="utf-8")
        for handler in root.handlers:
            handler.close()
