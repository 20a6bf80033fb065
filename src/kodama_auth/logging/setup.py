"""Logging setup and configuration."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from kodama_auth.auth.sanitize import Sanitizer
from kodama_auth.logging.context import set_log_context
from kodama_auth.logging.filters import SanitizingFilter
from kodama_auth.logging.formatters import ConsoleFormatter, JSONFormatter

# Default settings
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "aiohttp",
    "asyncio",
    "urllib3",
]


def setup_logging(
    name: str = "kodama_auth",
    session: str | None = None,
    json_format: bool = False,
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    log_file: Path | None = None,
    sanitizer: Sanitizer | None = None,
    suppress_noisy: bool = True,
) -> logging.Logger:
    """
    Configure root logging with a console handler and optional file handler.

    When a sanitizer is supplied, a SanitizingFilter is attached to every
    handler, so tokens registered at any later point are redacted from all
    output.

    Args:
        name: Name of the returned logger
        session: Session name injected into every record's context
        json_format: Emit one JSON object per line instead of console text
        console_level: Console handler level (default: INFO)
        file_level: File handler level (default: DEBUG)
        log_file: Optional log file path (size-rotated)
        sanitizer: Registry of secrets to redact from all handlers
        suppress_noisy: Quiet down HTTP client loggers

    Returns:
        Configured logger instance
    """
    if session:
        set_log_context(session=session)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    handlers.append(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    if sanitizer is not None:
        sanitizing_filter = SanitizingFilter(sanitizer)
        for handler in handlers:
            handler.addFilter(sanitizing_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """Get a logger, for modules that import from kodama_auth.logging."""
    return logging.getLogger(name)
