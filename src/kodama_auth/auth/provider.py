"""
Provider factory and default resolution.

``new_auth_provider`` builds the strategy named by an explicit AuthConfig.
``get_default_auth_provider`` is used when the caller has no configuration
and falls back in a fixed order:

    1. CLAUDE_CODE_AUTH_TOKEN environment variable (token provider)
    2. ~/.kodama/claude-auth.json (file provider)
    3. error naming both remedies
"""

import logging
import os

from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.federated import FederatedProvider
from kodama_auth.auth.file import FileProvider
from kodama_auth.auth.models import (
    DEFAULT_TOKEN_ENV_VAR,
    AuthConfig,
    FileConfig,
    TokenConfig,
)
from kodama_auth.auth.paths import DEFAULT_AUTH_DIR, DEFAULT_AUTH_FILENAME, default_auth_file_path
from kodama_auth.auth.token import TokenProvider
from kodama_auth.errors import ConfigurationError, CredentialsUnavailableError
from kodama_auth.types import AuthType

logger = logging.getLogger(__name__)


def new_auth_provider(config: AuthConfig) -> AuthProvider:
    """
    Create an auth provider from explicit configuration.

    Args:
        config: Strategy selection; ``config.type`` may be an AuthType or its
            string value

    Returns:
        Provider matching ``config.type``

    Raises:
        ConfigurationError: If the type is not recognised
    """
    try:
        auth_type = AuthType(config.type)
    except ValueError:
        raise ConfigurationError(f"unsupported auth type: {config.type}") from None

    if auth_type is AuthType.TOKEN:
        return TokenProvider(config.token_source)
    if auth_type is AuthType.FILE:
        return FileProvider(config.file_source)
    return FederatedProvider(config.federated_source)


def get_default_auth_provider() -> AuthProvider:
    """
    Resolve a provider from the environment and the default credential file.

    Only the first satisfied branch is attempted.

    Returns:
        TokenProvider bound to CLAUDE_CODE_AUTH_TOKEN, or FileProvider bound
        to the default credential file

    Raises:
        CredentialsUnavailableError: If neither source is available
    """
    if os.getenv(DEFAULT_TOKEN_ENV_VAR):
        logger.debug("Using token auth from environment", extra={"env_var": DEFAULT_TOKEN_ENV_VAR})
        return TokenProvider(TokenConfig(env_var=DEFAULT_TOKEN_ENV_VAR))

    auth_file_path = default_auth_file_path()
    if auth_file_path is not None and auth_file_path.is_file():
        logger.debug("Using file auth", extra={"path": str(auth_file_path)})
        return FileProvider(FileConfig(path=str(auth_file_path)))

    location = (
        str(auth_file_path)
        if auth_file_path is not None
        else f"~/{DEFAULT_AUTH_DIR}/{DEFAULT_AUTH_FILENAME}"
    )
    raise CredentialsUnavailableError(
        f"no authentication configured: set {DEFAULT_TOKEN_ENV_VAR} or create {location}"
    )


__all__ = ["new_auth_provider", "get_default_auth_provider"]
