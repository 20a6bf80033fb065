"""
Token sanitization for error messages and logs.

A Sanitizer is a registry of secret strings. Every registered secret is
replaced with ``[REDACTED]`` in any text passed through ``sanitize()``.
Callers register a token as soon as they obtain it, so any message built
afterwards (command output, exception text, log lines) can be redacted before
it is shown.

Replacement is literal, not regex, and longest secret first: when one secret
is a substring of another, the longer one is redacted whole instead of
leaving its tail visible.

Known limitation: a very short secret that equals an ordinary word is
redacted wherever that word appears.
"""

import threading
from collections.abc import Iterable

REDACTED = "[REDACTED]"


class SanitizedError(Exception):
    """
    Flat error carrying only a redacted message.

    The original exception type, attributes and chain are discarded because
    any structured payload could carry the secret.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Hide the implicit context when raised inside an except block
        self.__suppress_context__ = True


class Sanitizer:
    """
    Thread-safe registry of secrets to redact.

    Example:
        >>> s = Sanitizer()
        >>> s.add_token("token1")
        >>> s.add_token("token2")
        >>> s.sanitize("token1 was used but token2 failed")
        '[REDACTED] was used but [REDACTED] failed'
    """

    def __init__(self, tokens: Iterable[str] = ()):
        self._tokens: set[str] = set()
        self._lock = threading.Lock()
        self.add_tokens(*tokens)

    def add_token(self, token: str) -> None:
        """Register a secret. Empty strings are ignored."""
        if not token:
            return

        with self._lock:
            self._tokens.add(token)

    def add_tokens(self, *tokens: str) -> None:
        """Register several secrets at once."""
        with self._lock:
            self._tokens.update(t for t in tokens if t)

    def sanitize(self, text: str) -> str:
        """Replace every registered secret in ``text`` with [REDACTED]."""
        with self._lock:
            tokens = sorted(self._tokens, key=len, reverse=True)

        result = text
        for token in tokens:
            result = result.replace(token, REDACTED)
        return result

    def sanitize_error(self, err: BaseException | None) -> SanitizedError | None:
        """
        Return a new error whose message is the sanitized ``str(err)``.

        Re-raise the result with ``raise ... from None`` to keep the original
        exception out of tracebacks.
        """
        if err is None:
            return None

        return SanitizedError(self.sanitize(str(err)))

    def clear(self) -> None:
        """Forget every registered secret."""
        with self._lock:
            self._tokens = set()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._tokens

    def __repr__(self) -> str:
        return f"Sanitizer(tokens={len(self)})"


__all__ = ["REDACTED", "SanitizedError", "Sanitizer"]
