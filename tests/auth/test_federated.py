"""Tests for FederatedProvider - OAuth refresh-token grant with token cache."""

import asyncio
import json
import logging
import os
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from kodama_auth.auth.federated import REFRESH_TIMEOUT_SECONDS, FederatedProvider
from kodama_auth.auth.models import FederatedConfig
from kodama_auth.errors import ConfigurationError, TokenRefreshError
from kodama_auth.types import AuthType, ErrorCategory

TOKEN_ENDPOINT = "https://auth.example.com/token"


def _make_config(**overrides):
    defaults = {
        "token_endpoint": TOKEN_ENDPOINT,
        "refresh_token": "test-rt",
        "client_id": "kodama",
    }
    defaults.update(overrides)
    return FederatedConfig(**defaults)


def _mock_session_with_response(response_mock):
    """Create a mock session where post() returns the given response context manager."""
    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.post = MagicMock(return_value=response_mock)
    return mock_session


def _response(status, data=None, reason="OK", json_side_effect=None):
    """Create a mock async context manager for a token endpoint response."""
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.reason = reason
    if json_side_effect is not None:
        mock_resp.json = AsyncMock(side_effect=json_side_effect)
    else:
        mock_resp.json = AsyncMock(return_value=data)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def _ok_response(access_token="access-tok", expires_in=3600):
    return _response(
        200,
        {"access_token": access_token, "expires_in": expires_in, "token_type": "Bearer"},
    )


def _provider_with(response, **overrides):
    provider = FederatedProvider(_make_config(**overrides))
    provider._session = _mock_session_with_response(response)
    return provider


def _write_cache(path, token, expires_at):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"token": token, "expiresAt": expires_at.isoformat()}),
        encoding="utf-8",
    )


# ---------------------------------------------------------------------------
# __init__
# ---------------------------------------------------------------------------


class TestFederatedProviderInit:
    def test_type(self):
        assert FederatedProvider(_make_config()).type is AuthType.FEDERATED

    def test_session_starts_none(self):
        assert FederatedProvider(_make_config())._session is None

    def test_empty_cache_needs_refresh(self):
        assert FederatedProvider(_make_config()).needs_refresh() is True

    def test_loads_valid_cache_file(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        expires = datetime.now(UTC) + timedelta(hours=1)
        _write_cache(cache_file, "cached-tok", expires)

        provider = FederatedProvider(_make_config(cache_file=str(cache_file)))

        snap = provider.cache.snapshot()
        assert snap.token == "cached-tok"
        assert snap.expires_at == expires
        assert provider.needs_refresh() is False

    def test_ignores_missing_cache_file(self, tmp_path):
        provider = FederatedProvider(_make_config(cache_file=str(tmp_path / "nope.json")))
        assert provider.cache.snapshot().token == ""

    def test_ignores_malformed_cache_file(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        cache_file.write_text("not json", encoding="utf-8")

        provider = FederatedProvider(_make_config(cache_file=str(cache_file)))

        assert provider.cache.snapshot().token == ""
        assert provider.needs_refresh() is True

    def test_ignores_undecodable_cache_file(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        cache_file.write_bytes(b'{"token": "\xff\xfe", "expiresAt": "2099-01-01T00:00:00Z"}')

        provider = FederatedProvider(_make_config(cache_file=str(cache_file)))

        assert provider.cache.snapshot().token == ""
        assert provider.needs_refresh() is True

    def test_expired_cache_file_needs_refresh(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        _write_cache(cache_file, "old-tok", datetime.now(UTC) - timedelta(minutes=1))

        provider = FederatedProvider(_make_config(cache_file=str(cache_file)))

        assert provider.needs_refresh() is True


# ---------------------------------------------------------------------------
# _ensure_session
# ---------------------------------------------------------------------------


class TestEnsureSession:
    async def test_creates_session_when_none(self):
        provider = FederatedProvider(_make_config())
        session = await provider._ensure_session()
        assert isinstance(session, aiohttp.ClientSession)
        await provider.close()

    async def test_reuses_existing_session(self):
        provider = FederatedProvider(_make_config())
        session1 = await provider._ensure_session()
        session2 = await provider._ensure_session()
        assert session1 is session2
        await provider.close()

    async def test_close_closes_session(self):
        provider = FederatedProvider(_make_config())
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()
        provider._session = session

        await provider.close()

        session.close.assert_awaited_once()


# ---------------------------------------------------------------------------
# get_credentials / refresh
# ---------------------------------------------------------------------------


class TestGetCredentials:
    async def test_refreshes_when_cache_empty(self):
        provider = _provider_with(_ok_response("access-tok", 3600))
        before = datetime.now(UTC)

        creds = await provider.get_credentials()

        assert creds.token == "access-tok"
        assert creds.metadata == {}
        assert before + timedelta(seconds=3590) <= creds.expires_at
        assert creds.expires_at <= datetime.now(UTC) + timedelta(seconds=3600)
        assert provider.needs_refresh() is False

    async def test_sends_refresh_token_grant(self):
        provider = _provider_with(_ok_response())

        await provider.get_credentials()

        call = provider._session.post.call_args
        assert call.args[0] == TOKEN_ENDPOINT
        assert call.kwargs["json"] == {
            "grant_type": "refresh_token",
            "refresh_token": "test-rt",
            "client_id": "kodama",
        }
        assert call.kwargs["headers"]["Content-Type"] == "application/json"
        assert call.kwargs["timeout"].total == REFRESH_TIMEOUT_SECONDS

    async def test_includes_client_secret_when_set(self):
        provider = _provider_with(_ok_response(), client_secret="test-cs")

        await provider.get_credentials()

        body = provider._session.post.call_args.kwargs["json"]
        assert body["client_secret"] == "test-cs"

    async def test_valid_cache_skips_http(self):
        provider = _provider_with(_ok_response())
        provider.cache.set("cached-tok", datetime.now(UTC) + timedelta(hours=1))

        creds = await provider.get_credentials()

        assert creds.token == "cached-tok"
        provider._session.post.assert_not_called()

    async def test_token_inside_buffer_still_returned(self):
        provider = _provider_with(_ok_response())
        provider.cache.set("cached-tok", datetime.now(UTC) + timedelta(minutes=2))

        creds = await provider.get_credentials()

        assert creds.token == "cached-tok"
        assert provider.needs_refresh() is True
        provider._session.post.assert_not_called()

    async def test_concurrent_callers_share_one_exchange(self):
        async def slow_json(**kwargs):
            await asyncio.sleep(0.01)
            return {"access_token": "shared-tok", "expires_in": 3600}

        provider = _provider_with(_response(200, json_side_effect=slow_json))

        results = await asyncio.gather(*(provider.get_credentials() for _ in range(10)))

        assert {c.token for c in results} == {"shared-tok"}
        assert provider._session.post.call_count == 1

    async def test_refresh_forces_exchange(self):
        provider = _provider_with(_ok_response("new-tok"))
        provider.cache.set("old-tok", datetime.now(UTC) + timedelta(hours=1))

        await provider.refresh()

        assert provider.cache.snapshot().token == "new-tok"
        provider._session.post.assert_called_once()


class TestRefreshErrors:
    async def test_non_200_status(self):
        provider = _provider_with(_response(401, reason="Unauthorized"))

        with pytest.raises(TokenRefreshError, match="failed to refresh token") as exc_info:
            await provider.get_credentials()

        cause = exc_info.value.cause
        assert isinstance(cause, TokenRefreshError)
        assert cause.message == "token refresh failed with status: 401 Unauthorized"
        assert cause.status == 401
        assert exc_info.value.category == ErrorCategory.PERMANENT
        assert provider.cache.snapshot().token == ""

    async def test_server_error_is_transient(self):
        provider = _provider_with(_response(503, reason=None))

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.refresh()

        assert exc_info.value.message == "token refresh failed with status: 503"
        assert exc_info.value.is_retryable

    async def test_malformed_json(self):
        provider = _provider_with(
            _response(200, json_side_effect=json.JSONDecodeError("bad", "doc", 0))
        )

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.refresh()

        assert exc_info.value.message == "failed to parse response"

    async def test_wrong_payload_shape(self):
        provider = _provider_with(_response(200, {"access_token": "tok", "expires_in": "soon"}))

        with pytest.raises(TokenRefreshError, match="failed to parse response"):
            await provider.refresh()

    async def test_non_utf8_body(self):
        provider = _provider_with(
            _response(
                200,
                json_side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
            )
        )

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.refresh()

        assert exc_info.value.message == "failed to parse response"
        assert isinstance(exc_info.value.cause, UnicodeDecodeError)

    @pytest.mark.parametrize("expires_in", [0, -5])
    async def test_non_positive_expires_in_rejected(self, expires_in):
        provider = _provider_with(_ok_response("tok", expires_in=expires_in))

        with pytest.raises(TokenRefreshError, match="invalid expires_in in response"):
            await provider.refresh()

        assert provider.cache.snapshot().token == ""

    async def test_overflowing_expires_in_rejected(self):
        provider = _provider_with(_ok_response("tok", expires_in=10**12))

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.refresh()

        assert "invalid expires_in in response" in exc_info.value.message
        assert isinstance(exc_info.value.cause, OverflowError)
        assert provider.cache.snapshot().token == ""

    async def test_missing_access_token(self):
        provider = _provider_with(_response(200, {"expires_in": 3600}))

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.refresh()

        assert exc_info.value.message == "no access token in response"

    async def test_transport_error(self):
        provider = FederatedProvider(_make_config())
        session = MagicMock()
        session.closed = False
        session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        provider._session = session

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.refresh()

        assert exc_info.value.message == "failed to execute request"
        assert isinstance(exc_info.value.cause, aiohttp.ClientConnectionError)

    async def test_missing_endpoint(self):
        provider = _provider_with(_ok_response(), token_endpoint="")

        with pytest.raises(ConfigurationError, match="token endpoint not configured"):
            await provider.refresh()

        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.get_credentials()
        assert isinstance(exc_info.value.cause, ConfigurationError)
        assert exc_info.value.category == ErrorCategory.PERMANENT
        provider._session.post.assert_not_called()

    async def test_missing_refresh_token(self):
        provider = _provider_with(_ok_response(), refresh_token="")

        with pytest.raises(ConfigurationError, match="refresh token not configured"):
            await provider.refresh()


# ---------------------------------------------------------------------------
# Cache file persistence
# ---------------------------------------------------------------------------


class TestCacheFile:
    async def test_written_after_refresh(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        provider = _provider_with(_ok_response("persisted-tok"), cache_file=str(cache_file))

        creds = await provider.get_credentials()

        document = json.loads(cache_file.read_text(encoding="utf-8"))
        assert document["token"] == "persisted-tok"
        assert datetime.fromisoformat(document["expiresAt"]) == creds.expires_at

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    async def test_owner_only_permissions(self, isolated_home):
        provider = _provider_with(
            _ok_response(), cache_file="~/.kodama/cache/token-cache.json"
        )

        await provider.refresh()

        cache_file = isolated_home / ".kodama" / "cache" / "token-cache.json"
        assert cache_file.stat().st_mode & 0o777 == 0o600
        assert cache_file.parent.stat().st_mode & 0o777 == 0o700

    async def test_new_provider_starts_from_cache(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        first = _provider_with(_ok_response("persisted-tok"), cache_file=str(cache_file))
        await first.get_credentials()

        second = _provider_with(_ok_response("other-tok"), cache_file=str(cache_file))
        creds = await second.get_credentials()

        assert creds.token == "persisted-tok"
        second._session.post.assert_not_called()

    async def test_write_failure_is_logged_not_raised(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        cache_file = blocker / "cache.json"
        provider = _provider_with(_ok_response("tok"), cache_file=str(cache_file))

        with caplog.at_level(logging.WARNING, logger="kodama_auth.auth.federated"):
            creds = await provider.get_credentials()

        assert creds.token == "tok"
        assert "Failed to write token cache file" in caplog.text

    async def test_no_temp_files_left_behind(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_file = cache_dir / "cache.json"
        provider = _provider_with(_ok_response(), cache_file=str(cache_file))

        await provider.refresh()
        await provider.refresh()

        assert [p.name for p in cache_dir.iterdir()] == ["cache.json"]
