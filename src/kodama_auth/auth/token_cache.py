"""
Thread-safe token cache with expiration tracking.

This module provides the in-memory cache used by the federated provider. The
cache holds exactly one token and its absolute expiry, and only ever exposes
them as a pair: readers get an immutable snapshot, writers replace both fields
in a single critical section. A reader can therefore never observe a new token
with an old expiry (or the reverse).

Thread Safety:
    All cache operations are protected by a threading.Lock. The lock is held
    only while copying or replacing the pair, never across I/O.

Example:
    >>> cache = TokenCache()
    >>> cache.snapshot().is_valid()
    False
    >>> _ = cache.set("eyJ0eXAi...", datetime.now(UTC) + timedelta(hours=1))
    >>> cache.snapshot().is_valid()
    True
"""

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from kodama_auth.auth.models import to_utc

# Refresh when fewer than 5 minutes remain
REFRESH_BUFFER = timedelta(minutes=5)

# Expiry of a cache that was never populated
ZERO_INSTANT = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class CachedToken:
    """
    Immutable token + expiry pair.

    Attributes:
        token: The access token string ("" when unset)
        expires_at: Absolute UTC expiry (ZERO_INSTANT when unset)
    """

    token: str = ""
    expires_at: datetime = ZERO_INSTANT

    def is_valid(self) -> bool:
        """Token is non-empty and has not yet expired."""
        return bool(self.token) and datetime.now(UTC) < self.expires_at

    def remaining(self) -> timedelta:
        """Time left until expiry (negative when expired)."""
        return self.expires_at - datetime.now(UTC)

    def needs_refresh(self, buffer: timedelta = REFRESH_BUFFER) -> bool:
        """
        Check if the token expires within ``buffer``.

        A never-populated cache has a ZERO_INSTANT expiry and always needs a
        refresh.
        """
        return self.remaining() < buffer

    def __repr__(self) -> str:
        return f"CachedToken(token='***', expires_at={self.expires_at!r})"


class TokenCache:
    """
    Thread-safe holder of one (token, expiry) pair.

    Operations:
        snapshot(): read both fields atomically
        set(): replace both fields atomically
        compare_and_swap(): replace both fields only if the current pair is
            the expected one
        clear(): reset to the unset pair
    """

    def __init__(self):
        """Initialize empty cache with thread lock."""
        self._current = CachedToken()
        self._lock = threading.Lock()

    def snapshot(self) -> CachedToken:
        """Return the current pair."""
        with self._lock:
            return self._current

    def set(self, token: str, expires_at: datetime) -> CachedToken:
        """
        Replace token and expiry together.

        Args:
            token: New access token
            expires_at: Absolute expiry; naive datetimes are taken as UTC

        Returns:
            The newly stored pair
        """
        new = CachedToken(token=token, expires_at=to_utc(expires_at))
        with self._lock:
            self._current = new
        return new

    def compare_and_swap(
        self, expected: CachedToken, token: str, expires_at: datetime
    ) -> bool:
        """
        Replace the pair only if it still equals ``expected``.

        Used when loading the disk cache so that a value read from disk never
        overwrites a token obtained by a concurrent refresh.

        Returns:
            True if the swap happened, False if the cache had changed
        """
        new = CachedToken(token=token, expires_at=to_utc(expires_at))
        with self._lock:
            if self._current != expected:
                return False
            self._current = new
            return True

    def clear(self) -> None:
        """Reset to the unset pair."""
        with self._lock:
            self._current = CachedToken()


__all__ = ["TokenCache", "CachedToken", "REFRESH_BUFFER", "ZERO_INSTANT"]
