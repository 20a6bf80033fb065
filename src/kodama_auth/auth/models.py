"""
Credential data models and per-strategy configuration.

Dataclasses hold caller-supplied configuration and resolved credentials.
Pydantic models describe the JSON documents read from disk or received from
the token endpoint, so malformed input fails at the boundary.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kodama_auth.types import AuthType

# Default environment variable holding a bearer token
DEFAULT_TOKEN_ENV_VAR = "CLAUDE_CODE_AUTH_TOKEN"

# Profile used when neither config nor file names one
DEFAULT_PROFILE_NAME = "default"


def to_utc(value: datetime) -> datetime:
    """
    Normalise to UTC; naive values are taken as UTC.

    Instants that cannot be shifted into UTC without leaving the datetime
    range (e.g. 9999-12-31T23:00:00-05:00) keep their own offset. Aware
    comparison and subtraction work across offsets, so callers need not care.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    try:
        return value.astimezone(UTC)
    except OverflowError:
        return value


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp into an aware datetime, normalised to UTC
    where representable.

    A timezone designator is required ("Z" or an offset); naive timestamps
    are rejected the same way a malformed string is.

    Raises:
        ValueError: If the value is not a valid RFC3339 timestamp
    """
    if "T" not in value and "t" not in value:
        raise ValueError(f"not an RFC3339 timestamp: {value!r}")

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"RFC3339 timestamp is missing a timezone: {value!r}")
    return to_utc(parsed)


@dataclass
class Credentials:
    """
    Resolved authentication credentials.

    Attributes:
        token: Bearer token or API key
        expires_at: Optional UTC expiration time
        metadata: Additional auth metadata (profile name, refresh URL, ...)
    """

    token: str
    expires_at: datetime | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        # Never render the token itself
        return (
            f"Credentials(token='***', expires_at={self.expires_at!r}, "
            f"metadata={self.metadata!r})"
        )


@dataclass
class TokenConfig:
    """
    Configuration for static token authentication.

    Attributes:
        env_var: Environment variable holding the token
        k8s_secret_name: Kubernetes secret name (used for pod injection)
        k8s_secret_key: Key within the Kubernetes secret
        token: Direct token value (for testing only)
    """

    env_var: str = ""
    k8s_secret_name: str = ""
    k8s_secret_key: str = ""
    token: str = field(default="", repr=False)


@dataclass
class FileConfig:
    """
    Configuration for file-based authentication.

    Attributes:
        path: Path to auth file (e.g., ~/.kodama/claude-auth.json)
        profile: Profile name for multi-profile auth files
    """

    path: str = ""
    profile: str = ""


@dataclass
class FederatedConfig:
    """
    Configuration for OAuth refresh-token authentication.

    Attributes:
        token_endpoint: OAuth token endpoint URL
        refresh_token: Long-lived refresh token
        client_id: OAuth client ID
        client_secret: OAuth client secret (optional)
        cache_file: Optional on-disk token cache path (may start with ~)
    """

    token_endpoint: str = ""
    refresh_token: str = field(default="", repr=False)
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    cache_file: str = ""


@dataclass
class AuthConfig:
    """
    Authentication strategy selection.

    Only the embedded config matching ``type`` is used.
    """

    type: AuthType | str
    token_source: TokenConfig = field(default_factory=TokenConfig)
    file_source: FileConfig = field(default_factory=FileConfig)
    federated_source: FederatedConfig = field(default_factory=FederatedConfig)


class Profile(BaseModel):
    """A single authentication profile in the auth file."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = ""
    expires_at: str = Field(default="", alias="expiresAt")
    refresh_url: str = Field(default="", alias="refreshUrl")


class AuthFile(BaseModel):
    """On-disk multi-profile credential store."""

    model_config = ConfigDict(populate_by_name=True)

    default_profile: str = Field(default="", alias="defaultProfile")
    profiles: dict[str, Profile] = Field(default_factory=dict)

    @field_validator("profiles", mode="before")
    @classmethod
    def _null_profiles(cls, value):
        return value if value is not None else {}


class OAuth2TokenResponse(BaseModel):
    """Token endpoint response for the refresh-token grant."""

    access_token: str = ""
    expires_in: int = 0
    token_type: str = ""


class TokenCacheFile(BaseModel):
    """Federated provider's on-disk cache document."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    expires_at: datetime = Field(alias="expiresAt")

    @field_validator("expires_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


__all__ = [
    "DEFAULT_TOKEN_ENV_VAR",
    "DEFAULT_PROFILE_NAME",
    "to_utc",
    "parse_rfc3339",
    "Credentials",
    "TokenConfig",
    "FileConfig",
    "FederatedConfig",
    "AuthConfig",
    "Profile",
    "AuthFile",
    "OAuth2TokenResponse",
    "TokenCacheFile",
]
