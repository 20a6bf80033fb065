"""
File-based authentication provider.

Reads a bearer token from a named profile inside a JSON credential file:

    {
      "defaultProfile": "work",
      "profiles": {
        "work": {
          "token": "...",
          "expiresAt": "2026-01-21T16:00:00Z",
          "refreshUrl": "https://auth.example.com/refresh"
        }
      }
    }

Profile selection falls back from the configured profile, to the file's
``defaultProfile``, to the literal ``"default"``.
"""

import logging
import threading
from datetime import UTC, datetime
from pathlib import Path


from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.models import (
    DEFAULT_PROFILE_NAME,
    AuthFile,
    Credentials,
    FileConfig,
    Profile,
    parse_rfc3339,
)
from kodama_auth.auth.paths import default_auth_file_path, expand_path
from kodama_auth.auth.token_cache import REFRESH_BUFFER
from kodama_auth.errors import (
    CredentialsUnavailableError,
    InvalidExpiryError,
    ProfileNotFoundError,
    RefreshNotSupportedError,
    TokenExpiredError,
)
from kodama_auth.types import AuthType

logger = logging.getLogger(__name__)


class FileProvider(AuthProvider):
    """
    Provider reading credentials from a multi-profile JSON file.

    The file is re-read on every ``get_credentials()`` call so edits made by
    the user take effect without restarting. The last profile read is cached
    for ``needs_refresh()``.

    Attributes:
        config: File path and profile selection
        last_read: UTC time of the last successful profile selection
    """

    def __init__(self, config: FileConfig | None = None):
        self.config = config or FileConfig()
        self.last_read: datetime | None = None
        self._cached_profile: Profile | None = None
        self._lock = threading.Lock()

    @property
    def type(self) -> AuthType:
        return AuthType.FILE

    def resolve_path(self) -> Path:
        """
        Resolve the credential file path.

        Raises:
            CredentialsUnavailableError: If no path is configured and the home
                directory cannot be determined
        """
        if not self.config.path:
            path = default_auth_file_path()
            if path is None:
                raise CredentialsUnavailableError("failed to get home directory")
            return path

        return Path(expand_path(self.config.path))

    def _read_auth_file(self) -> AuthFile:
        path = self.resolve_path()

        try:
            data = path.read_bytes()
        except OSError as e:
            raise CredentialsUnavailableError(
                f"failed to read auth file {path}", cause=e, context={"path": str(path)}
            ) from e

        try:
            return AuthFile.model_validate_json(data)
        except ValueError as e:
            raise CredentialsUnavailableError(
                f"failed to parse auth file {path}",
                cause=e,
                context={"path": str(path)},
            ) from e

    def _select_profile_name(self, auth_file: AuthFile) -> str:
        return self.config.profile or auth_file.default_profile or DEFAULT_PROFILE_NAME

    async def get_credentials(self) -> Credentials:
        auth_file = self._read_auth_file()

        profile_name = self._select_profile_name(auth_file)
        profile = auth_file.profiles.get(profile_name)
        if profile is None:
            raise ProfileNotFoundError(profile_name)

        # Cache the profile for refresh checks
        with self._lock:
            self._cached_profile = profile
            self.last_read = datetime.now(UTC)

        expires_at: datetime | None = None
        if profile.expires_at:
            try:
                expires_at = parse_rfc3339(profile.expires_at)
            except ValueError as e:
                raise InvalidExpiryError(
                    "invalid expiresAt format",
                    cause=e,
                    context={"profile": profile_name},
                ) from e

            if datetime.now(UTC) >= expires_at:
                raise TokenExpiredError(
                    f"token expired at {profile.expires_at}",
                    context={"profile": profile_name},
                )

        if not profile.token:
            raise CredentialsUnavailableError(
                f"profile {profile_name!r} has no token",
                context={"profile": profile_name},
            )

        logger.debug(
            "Loaded credentials from auth file",
            extra={
                "profile": profile_name,
                "expires_at": profile.expires_at or None,
            },
        )

        return Credentials(
            token=profile.token,
            expires_at=expires_at,
            metadata={
                "profile": profile_name,
                "refreshUrl": profile.refresh_url,
            },
        )

    def needs_refresh(self) -> bool:
        with self._lock:
            profile = self._cached_profile

        if profile is None or not profile.expires_at:
            return False

        try:
            expires_at = parse_rfc3339(profile.expires_at)
        except ValueError:
            return False

        return expires_at - datetime.now(UTC) < REFRESH_BUFFER

    async def refresh(self) -> None:
        with self._lock:
            profile = self._cached_profile

        if profile is None or not profile.refresh_url:
            raise RefreshNotSupportedError(
                "token refresh not supported: no refresh URL configured"
            )

        # TODO: exchange the token at profile.refresh_url once the refresh
        # endpoint contract for credential files is defined
        raise RefreshNotSupportedError(
            "automatic token refresh not yet implemented, "
            "please manually update the auth file",
            context={"refresh_url": profile.refresh_url},
        )


__all__ = ["FileProvider"]
