"""Helpers for structured log calls."""

import logging
from typing import Any

from kodama_auth.auth.sanitize import Sanitizer
from kodama_auth.logging.filters import STANDARD_RECORD_ATTRS

MAX_ERROR_MESSAGE_LENGTH = 500


def _extra(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if key not in STANDARD_RECORD_ATTRS}


def log_with_context(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """
    Log ``msg`` with keyword arguments as structured ``extra`` fields.

    ``exc_info`` is forwarded to the logger; names that collide with
    LogRecord attributes are dropped.

    Example:
        log_with_context(logger, logging.INFO, "Credentials resolved", auth_type="file", profile="work")
    """
    exc_info = fields.pop("exc_info", None)
    logger.log(level, msg, exc_info=exc_info, extra=_extra(fields))


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    sanitizer: Sanitizer | None = None,
    **fields: Any,
) -> None:
    """
    Log an exception as structured fields.

    Adds ``error_type``, ``error_message`` (truncated) and, for AuthError
    subclasses, ``error_category``. With a sanitizer the message is redacted
    and the traceback is never attached, since frame locals may hold secrets.

    Example:
        try:
            await provider.refresh()
        except AuthError as e:
            log_exception(logger, e, "Refresh failed", sanitizer=sanitizer)
    """
    category = getattr(exc, "category", None)
    if category is not None and fields.get("error_category") is None:
        fields["error_category"] = getattr(category, "value", str(category))

    message = str(exc)
    if sanitizer is not None:
        message = sanitizer.sanitize(message)
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        message = f"{message[:MAX_ERROR_MESSAGE_LENGTH]}..."

    fields.setdefault("error_type", type(exc).__name__)
    fields["error_message"] = message

    attach_traceback = include_traceback and sanitizer is None
    logger.log(level, msg, exc_info=exc if attach_traceback else None, extra=_extra(fields))
