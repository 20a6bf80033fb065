"""
Error classification and exception hierarchy.

Provides:
- AuthError hierarchy for typed exceptions
- Classification utilities for retry decisions
"""

from kodama_auth.errors.exceptions import (
    # Base class
    AuthError,
    CacheWriteError,
    # Permanent errors
    ConfigurationError,
    CredentialsUnavailableError,
    InvalidExpiryError,
    ProfileNotFoundError,
    RefreshNotSupportedError,
    # Lifecycle errors
    TokenExpiredError,
    TokenRefreshError,
    # Classification utilities
    classify_exception,
    classify_http_status,
    is_retryable_error,
)
from kodama_auth.types import ErrorCategory

__all__ = [
    "ErrorCategory",
    "AuthError",
    "ConfigurationError",
    "CredentialsUnavailableError",
    "ProfileNotFoundError",
    "InvalidExpiryError",
    "RefreshNotSupportedError",
    "CacheWriteError",
    "TokenExpiredError",
    "TokenRefreshError",
    "classify_exception",
    "classify_http_status",
    "is_retryable_error",
]
