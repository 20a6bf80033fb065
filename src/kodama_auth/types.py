"""
Core types shared across the kodama_auth package.

This module provides the enums used to tag authentication strategies and to
classify errors, so that every module agrees on the same values.
"""

from enum import Enum


class AuthType(str, Enum):
    """
    Authentication strategy tag.

    Values match the strings used in configuration files, so
    ``AuthType("federated")`` round-trips from YAML without a lookup table.
    """

    TOKEN = "token"
    FILE = "file"
    FEDERATED = "federated"

    def __str__(self) -> str:
        return self.value


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed on retry
                   (e.g., token endpoint timeouts, 5xx responses)
        AUTH: Credential is stale and a refresh should resolve it
              (e.g., expired token in the credential file)
        PERMANENT: Non-retriable failures that need a human
                   (e.g., missing configuration, unknown profile)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = ["AuthType", "ErrorCategory"]
