"""Tests for logging utility functions."""

import logging

from kodama_auth.auth.sanitize import Sanitizer
from kodama_auth.errors import TokenRefreshError
from kodama_auth.logging.utilities import (
    MAX_ERROR_MESSAGE_LENGTH,
    log_exception,
    log_with_context,
)

LOGGER_NAME = "kodama_auth.test.utilities"


class TestLogWithContext:
    def test_extra_fields(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log_with_context(logger, logging.INFO, "Credentials resolved", profile="work")

        record = caplog.records[-1]
        assert record.getMessage() == "Credentials resolved"
        assert record.profile == "work"

    def test_reserved_keys_dropped(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log_with_context(logger, logging.INFO, "msg", name="ignored", profile="work")

        assert caplog.records[-1].name == LOGGER_NAME


class TestLogException:
    def test_category_and_type(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)
        err = TokenRefreshError("token refresh failed with status: 401", status=401)

        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            log_exception(logger, err, "Refresh failed")

        record = caplog.records[-1]
        assert record.error_category == "permanent"
        assert record.error_type == "TokenRefreshError"
        assert record.exc_info is not None

    def test_sanitizer_redacts_and_drops_traceback(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)
        err = TokenRefreshError("exchange of secret-rt rejected")

        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            log_exception(logger, err, "Refresh failed", sanitizer=Sanitizer(["secret-rt"]))

        record = caplog.records[-1]
        assert record.error_message == "exchange of [REDACTED] rejected"
        assert record.exc_info is None

    def test_truncates_long_messages(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)

        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            log_exception(logger, ValueError("x" * 1000), "failed", include_traceback=False)

        record = caplog.records[-1]
        assert len(record.error_message) == MAX_ERROR_MESSAGE_LENGTH + 3
