"""
Structured logging module.

Provides console/JSON logging with context propagation and token redaction.
"""

from kodama_auth.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from kodama_auth.logging.filters import SanitizingFilter
from kodama_auth.logging.formatters import ConsoleFormatter, JSONFormatter, redact_url
from kodama_auth.logging.setup import get_logger, setup_logging
from kodama_auth.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    "redact_url",
    # Filters
    "SanitizingFilter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Utilities
    "log_with_context",
    "log_exception",
]
