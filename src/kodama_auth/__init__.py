"""
kodama_auth: credential providers and token sanitization for kodama.

Resolves bearer tokens for the remote-exec client from a static token, a
multi-profile credential file, or an OAuth refresh-token flow, and redacts
those tokens from anything shown to the user.
"""

from kodama_auth.auth import (
    AuthConfig,
    AuthProvider,
    Credentials,
    FederatedConfig,
    FederatedProvider,
    FileConfig,
    FileProvider,
    SanitizedError,
    Sanitizer,
    TokenConfig,
    TokenProvider,
    authenticate,
    get_default_auth_provider,
    new_auth_provider,
)
from kodama_auth.config import load_auth_config, resolve_auth_provider
from kodama_auth.errors import AuthError
from kodama_auth.types import AuthType, ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "AuthType",
    "ErrorCategory",
    "AuthError",
    "AuthProvider",
    "Credentials",
    "AuthConfig",
    "TokenConfig",
    "FileConfig",
    "FederatedConfig",
    "TokenProvider",
    "FileProvider",
    "FederatedProvider",
    "new_auth_provider",
    "get_default_auth_provider",
    "load_auth_config",
    "resolve_auth_provider",
    "Sanitizer",
    "SanitizedError",
    "authenticate",
]
