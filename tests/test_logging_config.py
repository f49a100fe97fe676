"""Tests for structured logging configuration."""

import json
import logging

import structlog

from cli.logging_config import _redact_sensitive, _redact_value, setup_logging


class TestLoggingConfig:
    """Test structlog setup modes."""

    def test_console_mode(self):
        """Console mode installs a single stderr handler."""
        setup_logging(json_mode=False, level="DEBUG")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        structlog.get_logger().info("test.message", key="value")

    def test_level_filtering(self):
        setup_logging(json_mode=False, level="WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_default_level_is_info(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="CHATTY")
        assert logging.getLogger().level == logging.INFO

    def test_file_handler_lowers_root_level(self, tmp_path):
        log_file = tmp_path / "logs" / "prefsync.log"
        setup_logging(level="WARNING", log_file=log_file, file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert log_file.parent.is_dir()

    def test_file_receives_json_lines(self, tmp_path):
        log_file = tmp_path / "prefsync.log"
        setup_logging(level="ERROR", log_file=log_file, file_level="INFO")
        logging.getLogger("test_json").info("json test")
        for handler in logging.getLogger().handlers:
            handler.flush()
        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["event"] == "json test"

    def test_processor_chain_redacts(self):
        setup_logging(json_mode=True, level="DEBUG")
        processors = structlog.get_config()["processors"]
        assert _redact_sensitive in processors


class TestRedaction:
    def test_email_in_message(self):
        assert _redact_value("invite sent to sam@example.com") == "invite sent to REDACTED@email"

    def test_phone_formats(self):
        for phone in ("555-123-4567", "(555) 123 4567", "+1 555.123.4567", "+15551234567"):
            assert "REDACTED-phone" in _redact_value(f"call {phone}"), phone

    def test_dates_and_ids_untouched(self):
        for text in ("2026-05-01T09:30:00", "companion_1714555800123_abc", "version 12"):
            assert _redact_value(text) == text

    def test_sensitive_keys_fully_redacted(self):
        event = _redact_sensitive(None, None, {"event": "companion.added", "email": "x", "phone": "1"})
        assert event == {"event": "companion.added", "email": "REDACTED", "phone": "REDACTED"}

    def test_empty_sensitive_value_left_alone(self):
        event = _redact_sensitive(None, None, {"email": None, "count": 3})
        assert event == {"email": None, "count": 3}
