"""Base authentication provider interface."""

from abc import ABC, abstractmethod

from kodama_auth.auth.models import Credentials
from kodama_auth.types import AuthType


class AuthProvider(ABC):
    """
    Abstract base class for authentication providers.

    Implementations resolve a bearer token from one trust source (static
    token, credential file, OAuth refresh-token flow). Callers typically
    check ``needs_refresh()``, call ``refresh()`` if needed, then call
    ``get_credentials()``.
    """

    @property
    @abstractmethod
    def type(self) -> AuthType:
        """Stable tag identifying the strategy."""

    @abstractmethod
    async def get_credentials(self) -> Credentials:
        """
        Return currently valid credentials.

        Returns:
            Credentials with a non-empty token

        Raises:
            AuthError: If no valid token can be produced. A known-expired
                token is never returned.
        """

    @abstractmethod
    def needs_refresh(self) -> bool:
        """
        Check whether credentials should be refreshed.

        Cheap, non-blocking and free of side effects. Returns False whenever
        expiry does not apply to the strategy.
        """

    @abstractmethod
    async def refresh(self) -> None:
        """
        Do whatever is needed for a later ``get_credentials()`` to succeed.

        Safe to call when no refresh is needed.

        Raises:
            AuthError: If refresh is unsupported or fails
        """

    async def close(self) -> None:
        """Release any resources held by the provider."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.type.value!r})"


__all__ = ["AuthProvider"]
