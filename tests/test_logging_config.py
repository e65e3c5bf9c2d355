"""Tests for logging configuration."""

import json
import logging

import pytest

from gemini_gateway.logging_config import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_fields(self):
        record = logging.LogRecord("gemini_gateway.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "gemini_gateway.test"
        assert data["message"] == "hello world"
        assert "extra" not in data

    def test_extra_fields(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        record.trace_id = "00001_120000_chat_hi"

        data = json.loads(JsonFormatter().format(record))

        assert data["extra"] == {"trace_id": "00001_120000_chat_hi"}


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_level_and_json(self, restore_root_logger):
        configure_logging(level="DEBUG", format="json", force=True)

        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_environment(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("GATEWAY_LOG_LEVEL", "WARNING")

        configure_logging(force=True)

        assert restore_root_logger.level == logging.WARNING

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "gateway.log"

        configure_logging(level="INFO", file_path=str(log_file), force=True)
        logging.getLogger("gemini_gateway.test").info("written")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert "written" in log_file.read_text()
        for handler in restore_root_logger.handlers:
            handler.close()

    def test_unknown_level(self, restore_root_logger):
        with pytest.raises(ValueError, match="level"):
            configure_logging(level="LOUD", force=True)
