"""
Tests for the logging configuration.
"""
import json
import logging
import sys

from app.core.logging_setup import JsonFormatter, _build_config


def make_record(message, *args):
    return logging.LogRecord(
        name="app.services",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )


class TestJsonFormatter:
    """Test JSON log output."""

    def test_quotes_and_newlines_stay_valid_json(self):
        """Test that messages with quotes and newlines still parse."""
        record = make_record('Course "%s"\nfailed', "A")

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == 'Course "A"\nfailed'
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "app.services"

    def test_exception_is_included(self):
        """Test that exception text is carried in its own field."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record("failed")
            record.exc_info = sys.exc_info()

        entry = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in entry["exc_info"]


def test_build_config_selects_formatter():
    """Test that the json option uses the formatter class."""
    assert _build_config("INFO", "json")["formatters"]["default"] == {
        "()": "app.core.logging_setup.JsonFormatter"
    }
    assert "format" in _build_config("INFO", "text")["formatters"]["default"]
