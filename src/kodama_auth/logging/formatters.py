"""Log formatters for JSON and console output."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from kodama_auth.auth.sanitize import REDACTED
from kodama_auth.logging.context import get_log_context
from kodama_auth.utils.json_serializers import json_serializer

# Structured fields copied from ``extra=`` into log output, in output order
AUTH_FIELDS = ("auth_type", "source", "profile", "path", "env_var", "expires_at")
FEDERATED_FIELDS = ("token_endpoint", "cache_file", "refresh_url", "http_status", "duration_ms")
ERROR_FIELDS = ("error_category", "error_type", "error_message", "error")

# Query parameters whose values are never logged
SENSITIVE_QUERY_KEYS = frozenset(
    {
        "token",
        "access_token",
        "refresh_token",
        "client_secret",
        "secret",
        "password",
        "key",
        "api_key",
        "auth",
        "sig",
    }
)


def redact_url(url: str) -> str:
    """
    Blank out sensitive query parameter values in a URL.

    Scheme, host and path are kept so endpoints remain identifiable.

    Example:
        >>> redact_url("https://auth.example.com/token?client_secret=abc&x=1")
        'https://auth.example.com/token?client_secret=[REDACTED]&x=1'
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = []
    for param in parts.query.split("&"):
        name, sep, _ = param.partition("=")
        if sep and name.lower() in SENSITIVE_QUERY_KEYS:
            params.append(f"{name}={REDACTED}")
        else:
            params.append(param)
    return urlunsplit(parts._replace(query="&".join(params)))


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Output keys: ``ts``, ``level``, ``logger``, ``message``, non-empty log
    context, whitelisted ``extra`` fields, ``file`` for DEBUG/ERROR and above,
    and ``exception`` when present.
    """

    EXTRA_FIELDS = AUTH_FIELDS + FEDERATED_FIELDS + ERROR_FIELDS
    URL_FIELDS = frozenset({"token_endpoint", "refresh_url"})
    COERCE = {"http_status": int, "duration_ms": float}

    def _field_value(self, name: str, value: Any) -> Any:
        coerce = self.COERCE.get(name)
        if coerce is not None:
            try:
                value = coerce(value)
            except (TypeError, ValueError):
                return None
        if name in self.URL_FIELDS and isinstance(value, str):
            return redact_url(value)
        return value

    def _exception_entry(self, record: logging.LogRecord) -> dict | None:
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            return {
                "type": getattr(exc_type, "__name__", None),
                "message": str(exc_value) if exc_value is not None else None,
                "stacktrace": self.formatException(record.exc_info),
            }
        if record.exc_text:
            # Rendered earlier, e.g. by SanitizingFilter
            return {"stacktrace": record.exc_text}
        return None

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC)
        entry: dict[str, Any] = {
            "ts": timestamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{timestamp.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        entry.update({k: v for k, v in get_log_context().items() if v})

        if record.levelno == logging.DEBUG or record.levelno >= logging.ERROR:
            entry["file"] = f"{record.filename}:{record.lineno}"

        for name in self.EXTRA_FIELDS:
            raw = getattr(record, name, None)
            if raw is None:
                continue
            value = self._field_value(name, raw)
            if value is not None:
                entry[name] = value

        exception = self._exception_entry(record)
        if exception is not None:
            entry["exception"] = exception

        return json.dumps(entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Single-line human-readable output for terminals.

    Layout: ``<time> - <LEVEL> - [session] - [auth_type] - <message>`` followed
    by ``key=value`` pairs for a few identifying fields. Level names are
    colored only when stderr is a TTY.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    # Fields appended as key=value, when present
    SUFFIX_FIELDS = ("profile", "source", "http_status", "error_category")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stderr.isatty()

    def _level(self, record: logging.LogRecord) -> str:
        code = self.LEVEL_COLORS.get(record.levelno)
        if not self._use_colors or code is None:
            return record.levelname
        return f"\033[{code}m{record.levelname}\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        log_context = get_log_context()
        parts = [
            datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S"),
            self._level(record),
        ]
        parts.extend(f"[{log_context[key]}]" for key in ("session", "auth_type") if log_context[key])
        parts.append(record.getMessage())
        line = " - ".join(parts)

        suffix = " ".join(
            f"{name}={getattr(record, name)}"
            for name in self.SUFFIX_FIELDS
            if getattr(record, name, None) is not None
        )
        if suffix:
            line = f"{line} ({suffix})"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"

        return line
