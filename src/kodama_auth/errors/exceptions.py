"""
Unified exception hierarchy for kodama_auth.

Provides typed exceptions with retry classification so callers can decide
whether to retry, refresh, or ask the user to fix their configuration.
"""

from kodama_auth.types import ErrorCategory


class AuthError(Exception):
    """
    Base exception for all credential provider errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    @property
    def should_refresh_auth(self) -> bool:
        return self.category == ErrorCategory.AUTH

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Configuration / Resolution Errors (Permanent)
# =============================================================================


class ConfigurationError(AuthError):
    """Strategy configuration is missing or invalid."""

    category = ErrorCategory.PERMANENT


class CredentialsUnavailableError(AuthError):
    """No credentials could be resolved by any configured path."""

    category = ErrorCategory.PERMANENT


class ProfileNotFoundError(CredentialsUnavailableError):
    """The resolved profile name is absent from the credential file."""

    def __init__(self, profile: str, cause: Exception | None = None):
        super().__init__(
            f"profile {profile!r} not found in auth file",
            cause,
            {"profile": profile},
        )
        self.profile = profile


class InvalidExpiryError(AuthError):
    """A declared expiry timestamp is not valid RFC3339."""

    category = ErrorCategory.PERMANENT


class RefreshNotSupportedError(AuthError):
    """The strategy has no automatic refresh path."""

    category = ErrorCategory.PERMANENT


class CacheWriteError(AuthError):
    """Token cache could not be persisted to disk."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Credential Lifecycle Errors
# =============================================================================


class TokenExpiredError(AuthError):
    """Token was read successfully but is already past its expiry."""

    category = ErrorCategory.AUTH


class TokenRefreshError(AuthError):
    """OAuth refresh-token exchange failed (transport, status or payload)."""

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        message: str,
        status: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status = status
        if status is not None:
            self.category = classify_http_status(status)


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify a token endpoint HTTP status code into an error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    # invalid_grant / invalid_client: the refresh token itself is bad
    if status_code in (400, 401, 403):
        return ErrorCategory.PERMANENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify an exception into error category."""
    if isinstance(exc, AuthError):
        return exc.category

    if isinstance(exc, (ConnectionError, TimeoutError)):
        return ErrorCategory.TRANSIENT

    if isinstance(exc, (FileNotFoundError, PermissionError, ValueError)):
        return ErrorCategory.PERMANENT

    return ErrorCategory.UNKNOWN


def is_retryable_error(exc: BaseException) -> bool:
    """
    Check if exception should be retried.

    Retryable errors include:
    - Transient errors (token endpoint timeouts, 5xx)
    - Auth errors (after a refresh)
    - Unknown errors (conservative retry)

    Non-retryable:
    - Permanent errors (bad configuration, unknown profile, 4xx)
    """
    if isinstance(exc, AuthError):
        return exc.is_retryable

    return classify_exception(exc) in (
        ErrorCategory.TRANSIENT,
        ErrorCategory.AUTH,
        ErrorCategory.UNKNOWN,
    )


__all__ = [
    "AuthError",
    "ConfigurationError",
    "CredentialsUnavailableError",
    "ProfileNotFoundError",
    "InvalidExpiryError",
    "RefreshNotSupportedError",
    "CacheWriteError",
    "TokenExpiredError",
    "TokenRefreshError",
    "classify_http_status",
    "classify_exception",
    "is_retryable_error",
]
