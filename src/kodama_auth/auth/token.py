"""Static token authentication provider."""

import logging
import os

from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.models import DEFAULT_TOKEN_ENV_VAR, Credentials, TokenConfig
from kodama_auth.errors import CredentialsUnavailableError
from kodama_auth.types import AuthType

logger = logging.getLogger(__name__)


class TokenProvider(AuthProvider):
    """
    Provider for static bearer tokens.

    Resolution order on every call:
        1. Direct token in config (testing only)
        2. Named environment variable, if configured
        3. CLAUDE_CODE_AUTH_TOKEN

    Static tokens have no lifecycle: ``needs_refresh()`` is always False and
    ``refresh()`` is a no-op.
    """

    def __init__(self, config: TokenConfig | None = None):
        self.config = config or TokenConfig()

    @property
    def type(self) -> AuthType:
        return AuthType.TOKEN

    def _resolve(self) -> tuple[str, str]:
        """Return (token, source) following the fixed resolution order."""
        if self.config.token:
            return self.config.token, "direct"
        if self.config.env_var:
            return os.getenv(self.config.env_var, ""), f"env:{self.config.env_var}"
        return os.getenv(DEFAULT_TOKEN_ENV_VAR, ""), f"env:{DEFAULT_TOKEN_ENV_VAR}"

    async def get_credentials(self) -> Credentials:
        token, source = self._resolve()

        if not token:
            logger.debug("No static token available", extra={"source": source})
            raise CredentialsUnavailableError(
                "no authentication token available", context={"source": source}
            )

        return Credentials(token=token, expires_at=None, metadata={"source": source})

    def needs_refresh(self) -> bool:
        return False

    async def refresh(self) -> None:
        return None


__all__ = ["TokenProvider"]
