"""
Federated (OAuth refresh-token) authentication provider.

Keeps a short-lived access token in memory, refreshing it from the token
endpoint with the refresh_token grant. The token can optionally be persisted
to a cache file so that a new process starts with a valid token instead of
hitting the endpoint.

Refresh flow:
    1. POST {grant_type, refresh_token, client_id, client_secret?} as JSON
    2. Expect HTTP 200 with {access_token, expires_in, token_type}
    3. Replace the cached (token, expiry) pair atomically
    4. Best-effort write of the cache file (failure is logged, not raised)

Concurrency:
    Refreshes on one provider are serialised with an asyncio.Lock.
    get_credentials() re-checks the cache once it holds the lock, so
    concurrent callers that all saw an expired token share one exchange.
"""

import asyncio
import contextlib
import json
import logging
import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiohttp

from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.models import (
    Credentials,
    FederatedConfig,
    OAuth2TokenResponse,
    TokenCacheFile,
)
from kodama_auth.auth.paths import expand_path
from kodama_auth.auth.token_cache import CachedToken, TokenCache
from kodama_auth.errors import (
    AuthError,
    CacheWriteError,
    ConfigurationError,
    TokenRefreshError,
)
from kodama_auth.types import AuthType
from kodama_auth.utils.json_serializers import json_serializer

logger = logging.getLogger(__name__)

# Fixed timeout for the token endpoint exchange
REFRESH_TIMEOUT_SECONDS = 30

# Owner read/write only: the cache file holds a live bearer token
CACHE_FILE_MODE = 0o600
CACHE_DIR_MODE = 0o700


class FederatedProvider(AuthProvider):
    """
    Provider exchanging a refresh token for short-lived access tokens.

    Attributes:
        config: Token endpoint, refresh token, client credentials, cache file
        cache: In-memory (token, expiry) pair
    """

    def __init__(self, config: FederatedConfig | None = None):
        self.config = config or FederatedConfig()
        self.cache = TokenCache()
        self._session: aiohttp.ClientSession | None = None
        self._refresh_lock = asyncio.Lock()

        if self.config.cache_file:
            self._load_cache_file()

        logger.debug(
            "Initialized federated provider",
            extra={
                "token_endpoint": self.config.token_endpoint,
                "cache_file": self.config.cache_file or None,
            },
        )

    @property
    def type(self) -> AuthType:
        return AuthType.FEDERATED

    @staticmethod
    def _to_credentials(cached: CachedToken) -> Credentials:
        return Credentials(token=cached.token, expires_at=cached.expires_at, metadata={})

    async def get_credentials(self) -> Credentials:
        cached = self.cache.snapshot()
        if cached.is_valid():
            return self._to_credentials(cached)

        async with self._refresh_lock:
            # Another coroutine may have refreshed while we waited
            cached = self.cache.snapshot()
            if cached.is_valid():
                logger.debug("Token was refreshed by another caller")
                return self._to_credentials(cached)

            try:
                refreshed = await self._refresh_locked()
            except AuthError as e:
                wrapped = TokenRefreshError("failed to refresh token", cause=e)
                wrapped.category = e.category
                raise wrapped from e

        return self._to_credentials(refreshed)

    def needs_refresh(self) -> bool:
        return self.cache.snapshot().needs_refresh()

    async def refresh(self) -> None:
        async with self._refresh_lock:
            await self._refresh_locked()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP client session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _build_request_body(self) -> dict[str, str]:
        body = {
            "grant_type": "refresh_token",
            "refresh_token": self.config.refresh_token,
            "client_id": self.config.client_id,
        }
        if self.config.client_secret:
            body["client_secret"] = self.config.client_secret
        return body

    async def _refresh_locked(self) -> CachedToken:
        """
        Perform the refresh-token exchange. Caller holds ``_refresh_lock``.

        Raises:
            ConfigurationError: If endpoint or refresh token is missing
            TokenRefreshError: If the exchange fails
        """
        if not self.config.token_endpoint:
            raise ConfigurationError("token endpoint not configured")
        if not self.config.refresh_token:
            raise ConfigurationError("refresh token not configured")

        token_response = await self._exchange()

        try:
            expires_at = datetime.now(UTC) + timedelta(seconds=token_response.expires_in)
        except OverflowError as e:
            raise TokenRefreshError(
                f"invalid expires_in in response: {token_response.expires_in}", cause=e
            ) from e

        cached = self.cache.set(token_response.access_token, expires_at)

        logger.info(
            "Refreshed federated token",
            extra={
                "token_endpoint": self.config.token_endpoint,
                "expires_at": cached.expires_at.isoformat(),
            },
        )

        if self.config.cache_file:
            try:
                self._write_cache_file(cached)
            except CacheWriteError as e:
                logger.warning(
                    "Failed to write token cache file",
                    extra={"cache_file": self.config.cache_file, "error": str(e)},
                )

        return cached

    async def _exchange(self) -> OAuth2TokenResponse:
        session = await self._ensure_session()

        try:
            async with session.post(
                self.config.token_endpoint,
                json=self._build_request_body(),
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=REFRESH_TIMEOUT_SECONDS),
            ) as response:
                if response.status != 200:
                    reason = f" {response.reason}" if response.reason else ""
                    logger.error(
                        "Token refresh failed",
                        extra={
                            "token_endpoint": self.config.token_endpoint,
                            "http_status": response.status,
                        },
                    )
                    raise TokenRefreshError(
                        f"token refresh failed with status: {response.status}{reason}",
                        status=response.status,
                    )

                try:
                    payload = await response.json(content_type=None)
                    token_response = OAuth2TokenResponse.model_validate(payload)
                except (ValueError, aiohttp.ContentTypeError) as e:
                    raise TokenRefreshError("failed to parse response", cause=e) from e

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "HTTP error during token refresh",
                extra={
                    "token_endpoint": self.config.token_endpoint,
                    "error_type": type(e).__name__,
                },
            )
            raise TokenRefreshError("failed to execute request", cause=e) from e

        if not token_response.access_token:
            raise TokenRefreshError("no access token in response")
        if token_response.expires_in <= 0:
            raise TokenRefreshError(
                f"invalid expires_in in response: {token_response.expires_in}"
            )

        return token_response

    def cache_path(self) -> Path:
        """Cache file path, with ``~`` expanded at the point of use."""
        return Path(expand_path(self.config.cache_file))

    def _load_cache_file(self) -> None:
        """
        Load a previously persisted token.

        Any failure (missing file, undecodable bytes, malformed JSON) is ignored: the next
        get_credentials()/needs_refresh() cycle simply triggers a refresh.
        """
        path = self.cache_path()
        try:
            cached = TokenCacheFile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(
                "Token cache file not loaded",
                extra={"cache_file": str(path), "error_type": type(e).__name__},
            )
            return

        self.cache.compare_and_swap(CachedToken(), cached.token, cached.expires_at)

    def _write_cache_file(self, cached: CachedToken) -> None:
        """
        Persist the cached pair with owner-only permissions.

        Written to a temp file in the target directory and moved into place,
        so readers never see a partially written file.

        Raises:
            CacheWriteError: If the directory or file cannot be written
        """
        path = self.cache_path()
        document = {"token": cached.token, "expiresAt": cached.expires_at}

        try:
            path.parent.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, default=json_serializer)
                os.chmod(tmp_name, CACHE_FILE_MODE)
                os.replace(tmp_name, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise CacheWriteError(
                "failed to write cache file", cause=e, context={"path": str(path)}
            ) from e

    async def close(self) -> None:
        """Close HTTP client session."""
        if self._session and not self._session.closed:
            await self._session.close()


__all__ = ["FederatedProvider", "REFRESH_TIMEOUT_SECONDS"]
