"""JSON encoding hook for values the stdlib encoder rejects."""

from datetime import date
from enum import Enum
from typing import Any


def json_serializer(obj: Any) -> Any:
    """
    ``default=`` hook for json.dump/json.dumps.

    Dates and datetimes become ISO 8601 strings (RFC3339 for aware
    datetimes) and enums their value. Anything else, paths included,
    falls back to ``str(obj)`` so a log line is never lost to a TypeError.
    """
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


__all__ = ["json_serializer"]
