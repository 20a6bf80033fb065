"""Tests for JSON and console formatters."""

import json
import logging
import sys

import pytest

from kodama_auth.logging.context import clear_log_context, set_log_context
from kodama_auth.logging.formatters import ConsoleFormatter, JSONFormatter, redact_url


def _record(msg="test message", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="kodama_auth.test",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def clear_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


class TestJSONFormatter:
    def test_base_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "kodama_auth.test"
        assert entry["message"] == "test message"
        assert entry["ts"].endswith("Z")
        assert "file" not in entry

    def test_source_location_on_error(self):
        entry = json.loads(JSONFormatter().format(_record(level=logging.ERROR)))
        assert entry["file"] == "test.py:42"

    def test_injects_context(self):
        set_log_context(session="sess-1", auth_type="federated")

        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["session"] == "sess-1"
        assert entry["auth_type"] == "federated"
        assert "operation" not in entry

    def test_extra_fields(self):
        entry = json.loads(
            JSONFormatter().format(_record(profile="work", http_status="401", unknown="x"))
        )

        assert entry["profile"] == "work"
        assert entry["http_status"] == 401
        assert "unknown" not in entry

    def test_sanitizes_url_query_params(self):
        entry = json.loads(
            JSONFormatter().format(
                _record(token_endpoint="https://auth.example.com/token?client_secret=abc&x=1")
            )
        )

        assert entry["token_endpoint"] == (
            "https://auth.example.com/token?client_secret=[REDACTED]&x=1"
        )

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "boom"
        assert "Traceback" in entry["exception"]["stacktrace"]

    def test_prerendered_exception_text(self):
        record = _record()
        record.exc_text = "Traceback: [REDACTED]"

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"] == {"stacktrace": "Traceback: [REDACTED]"}


class TestConsoleFormatter:
    def test_plain_line(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False

        line = formatter.format(_record())

        assert line.endswith(" - INFO - test message")

    def test_context_prefix(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        set_log_context(session="sess-1", auth_type="file")

        line = formatter.format(_record())

        assert "INFO - [sess-1] - [file] - test message" in line

    def test_colors(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True

        line = formatter.format(_record(level=logging.ERROR))

        assert "\033[31mERROR\033[0m" in line

    def test_appends_exception_text(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        record = _record()
        record.exc_text = "Traceback: [REDACTED]"

        assert formatter.format(record).endswith("\nTraceback: [REDACTED]")

    def test_identifying_fields_suffix(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False

        line = formatter.format(_record(profile="work", http_status=401))

        assert line.endswith("test message (profile=work http_status=401)")


class TestRedactUrl:
    def test_no_query(self):
        assert redact_url("https://auth.example.com/token") == "https://auth.example.com/token"

    def test_sensitive_params(self):
        assert redact_url("https://h/t?refresh_token=rt&Token=x&scope=a") == (
            "https://h/t?refresh_token=[REDACTED]&Token=[REDACTED]&scope=a"
        )

    def test_param_without_value_kept(self):
        assert redact_url("https://h/t?flag&key=abc") == "https://h/t?flag&key=[REDACTED]"
