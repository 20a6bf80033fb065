"""
Authentication module.

Provides pluggable bearer-token credentials for the remote-exec client.

Components:
    - AuthProvider: common interface (get_credentials, type, needs_refresh, refresh)
    - TokenProvider: static token from config or environment
    - FileProvider: named profile in ~/.kodama/claude-auth.json
    - FederatedProvider: OAuth refresh-token grant with in-memory + disk cache
    - new_auth_provider / get_default_auth_provider: strategy selection
    - Sanitizer: redacts registered tokens from text and errors
    - authenticate: refresh-if-needed, resolve, register-for-redaction flow

Usage:
    provider = get_default_auth_provider()
    sanitizer = Sanitizer()
    credentials = await authenticate(provider, sanitizer)
    headers = {"Authorization": f"Bearer {credentials.token}"}
"""

from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.federated import REFRESH_TIMEOUT_SECONDS, FederatedProvider
from kodama_auth.auth.file import FileProvider
from kodama_auth.auth.models import (
    DEFAULT_PROFILE_NAME,
    DEFAULT_TOKEN_ENV_VAR,
    AuthConfig,
    AuthFile,
    Credentials,
    FederatedConfig,
    FileConfig,
    Profile,
    TokenConfig,
)
from kodama_auth.auth.provider import get_default_auth_provider, new_auth_provider
from kodama_auth.auth.sanitize import REDACTED, SanitizedError, Sanitizer
from kodama_auth.auth.session import authenticate
from kodama_auth.auth.token import TokenProvider
from kodama_auth.auth.token_cache import REFRESH_BUFFER, CachedToken, TokenCache

__all__ = [
    # Interface
    "AuthProvider",
    # Providers
    "TokenProvider",
    "FileProvider",
    "FederatedProvider",
    "REFRESH_TIMEOUT_SECONDS",
    # Factory
    "new_auth_provider",
    "get_default_auth_provider",
    # Models
    "Credentials",
    "AuthConfig",
    "TokenConfig",
    "FileConfig",
    "FederatedConfig",
    "AuthFile",
    "Profile",
    "DEFAULT_TOKEN_ENV_VAR",
    "DEFAULT_PROFILE_NAME",
    # Token cache
    "TokenCache",
    "CachedToken",
    "REFRESH_BUFFER",
    # Sanitization
    "Sanitizer",
    "SanitizedError",
    "REDACTED",
    "authenticate",
]
