"""Log filters for token redaction."""

import logging

from kodama_auth.auth.sanitize import Sanitizer

# Attributes LogRecord sets itself; never user data, and rejected in extra=
STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class SanitizingFilter(logging.Filter):
    """
    Redact registered tokens from every record passing through a handler.

    The message is rendered once, sanitized, and stored back with empty args
    so formatters see only redacted text. String ``extra`` fields and
    exception text are sanitized too.

    Usage:
        sanitizer = Sanitizer()
        handler = logging.StreamHandler()
        handler.addFilter(SanitizingFilter(sanitizer))
    """

    def __init__(self, sanitizer: Sanitizer):
        """
        Initialize filter for a sanitizer.

        Args:
            sanitizer: Registry of secrets; tokens added later are honoured
        """
        super().__init__()
        self.sanitizer = sanitizer

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Sanitize the record in place.

        Returns:
            Always True; this filter never drops records
        """
        record.msg = self.sanitizer.sanitize(record.getMessage())
        record.args = ()

        for key, value in list(record.__dict__.items()):
            if key in STANDARD_RECORD_ATTRS or not isinstance(value, str):
                continue
            setattr(record, key, self.sanitizer.sanitize(value))

        if record.exc_info and record.exc_info[1] is not None:
            # Render once so formatters reuse the redacted text
            record.exc_text = self.sanitizer.sanitize(
                logging.Formatter().formatException(record.exc_info)
            )
            record.exc_info = None

        return True
