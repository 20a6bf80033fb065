"""Caller-side authentication flow shared by remote-exec adapters."""

import logging

from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.models import Credentials
from kodama_auth.auth.sanitize import Sanitizer
from kodama_auth.errors import AuthError

logger = logging.getLogger(__name__)


async def authenticate(provider: AuthProvider, sanitizer: Sanitizer) -> Credentials:
    """
    Obtain credentials and register the token for redaction.

    Refreshes first when the provider reports the token is stale. Errors are
    passed through the sanitizer before being raised, so they are safe to
    print or log.

    Args:
        provider: Credential provider
        sanitizer: Session sanitizer that will receive the token

    Returns:
        Valid credentials; ``credentials.token`` is registered in ``sanitizer``

    Raises:
        SanitizedError: If refresh or credential resolution fails
    """
    if provider.needs_refresh():
        logger.debug("Credentials need refresh", extra={"auth_type": provider.type.value})
        try:
            await provider.refresh()
        except AuthError as e:
            raise sanitizer.sanitize_error(
                AuthError(f"failed to refresh credentials: {e}")
            ) from None

    try:
        credentials = await provider.get_credentials()
    except AuthError as e:
        raise sanitizer.sanitize_error(
            AuthError(f"failed to get credentials: {e}")
        ) from None

    sanitizer.add_token(credentials.token)
    return credentials


__all__ = ["authenticate"]
