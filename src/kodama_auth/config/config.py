"""Authentication configuration from YAML file.

Loads the ``claudeAuth:`` section of ~/.kodama/config.yaml:

    claudeAuth:
      type: federated            # token | file | federated
      token:
        envVar: MY_TOKEN
      file:
        path: ~/.kodama/claude-auth.json
        profile: work
      federated:
        tokenEndpoint: https://auth.example.com/token
        refreshToken: ${KODAMA_REFRESH_TOKEN}
        clientId: kodama
        clientSecret: ${KODAMA_CLIENT_SECRET:-}
        cacheFile: ~/.kodama/token-cache.json

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.

Priority (highest to lowest):
    1. KODAMA_AUTH_TYPE / KODAMA_AUTH_PROFILE environment variables
    2. YAML configuration file
    3. Dataclass defaults
"""

import logging
import os
import re
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from kodama_auth.auth.base import AuthProvider
from kodama_auth.auth.models import AuthConfig, FederatedConfig, FileConfig, TokenConfig
from kodama_auth.auth.paths import DEFAULT_AUTH_DIR, home_dir
from kodama_auth.auth.provider import get_default_auth_provider, new_auth_provider
from kodama_auth.errors import ConfigurationError
from kodama_auth.types import AuthType

logger = logging.getLogger(__name__)

CONFIG_SECTION = "claudeAuth"
DEFAULT_CONFIG_FILENAME = "config.yaml"

ENV_AUTH_TYPE = "KODAMA_AUTH_TYPE"
ENV_AUTH_PROFILE = "KODAMA_AUTH_PROFILE"

# YAML key -> dataclass field, per embedded config
_TOKEN_KEYS = {
    "envVar": "env_var",
    "k8sSecretName": "k8s_secret_name",
    "k8sSecretKey": "k8s_secret_key",
    "token": "token",
}
_FILE_KEYS = {"path": "path", "profile": "profile"}
_FEDERATED_KEYS = {
    "tokenEndpoint": "token_endpoint",
    "refreshToken": "refresh_token",
    "clientId": "client_id",
    "clientSecret": "client_secret",
    "cacheFile": "cache_file",
}


def default_config_path() -> Path | None:
    """Default config file: ``<home>/.kodama/config.yaml``."""
    home = home_dir()
    if home is None:
        return None
    return home / DEFAULT_AUTH_DIR / DEFAULT_CONFIG_FILENAME


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _build_section(cls, data: Any, key_map: dict[str, str], section: str):
    """Build one embedded config dataclass from its YAML mapping."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid {CONFIG_SECTION}.{section}: expected a mapping, got {type(data).__name__}"
        )

    unknown = set(data) - set(key_map)
    if unknown:
        raise ConfigurationError(
            f"Invalid {CONFIG_SECTION}.{section}: unknown keys {sorted(unknown)}",
            context={"allowed": sorted(key_map)},
        )

    valid_fields = {f.name for f in fields(cls)}
    kwargs = {}
    for yaml_key, value in data.items():
        field_name = key_map[yaml_key]
        if field_name in valid_fields and value is not None:
            kwargs[field_name] = str(value)
    return cls(**kwargs)


def parse_auth_config(section: dict[str, Any]) -> AuthConfig:
    """
    Build an AuthConfig from an already-loaded ``claudeAuth`` mapping.

    Raises:
        ConfigurationError: If the type is missing/unknown or a sub-section is malformed
    """
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"Invalid config file: '{CONFIG_SECTION}:' must be a mapping"
        )

    raw_type = os.getenv(ENV_AUTH_TYPE) or section.get("type")
    if not raw_type:
        raise ConfigurationError(f"Invalid config file: missing '{CONFIG_SECTION}.type'")
    try:
        auth_type = AuthType(str(raw_type).strip().lower())
    except ValueError:
        raise ConfigurationError(f"unsupported auth type: {raw_type}") from None

    config = AuthConfig(
        type=auth_type,
        token_source=_build_section(TokenConfig, section.get("token"), _TOKEN_KEYS, "token"),
        file_source=_build_section(FileConfig, section.get("file"), _FILE_KEYS, "file"),
        federated_source=_build_section(
            FederatedConfig, section.get("federated"), _FEDERATED_KEYS, "federated"
        ),
    )

    env_profile = os.getenv(ENV_AUTH_PROFILE)
    if env_profile:
        config.file_source.profile = env_profile

    return config


def load_auth_config(config_path: Path | None = None) -> AuthConfig | None:
    """
    Load authentication configuration from a YAML file.

    Args:
        config_path: Config file (default: ~/.kodama/config.yaml)

    Returns:
        AuthConfig, or None when the file is absent or has no claudeAuth section

    Raises:
        ConfigurationError: If the file cannot be parsed or the section is invalid
    """
    if config_path is None:
        config_path = default_config_path()
        if config_path is None:
            return None

    if not config_path.exists():
        logger.debug("Config file not found", extra={"path": str(config_path)})
        return None

    try:
        yaml_data = load_yaml(config_path)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"failed to load config file {config_path}", cause=e
        ) from e

    if not isinstance(yaml_data, dict):
        raise ConfigurationError(f"Invalid config file: {config_path} is not a mapping")

    if CONFIG_SECTION not in yaml_data:
        return None

    config = parse_auth_config(_expand_env_vars(yaml_data[CONFIG_SECTION]))
    logger.info(
        "Loaded auth configuration",
        extra={"path": str(config_path), "auth_type": str(config.type)},
    )
    return config


def apply_auth_override(
    config: AuthConfig,
    auth_type: str | None = None,
    profile: str | None = None,
) -> AuthConfig:
    """
    Apply a per-session override on top of the global configuration.

    Args:
        config: Global configuration (not modified)
        auth_type: Strategy to use for this session
        profile: File-auth profile to use for this session

    Returns:
        A new AuthConfig with the override applied
    """
    resolved_type = config.type
    if auth_type:
        try:
            resolved_type = AuthType(auth_type.strip().lower())
        except ValueError:
            raise ConfigurationError(f"unsupported auth type: {auth_type}") from None

    file_source = FileConfig(
        path=config.file_source.path,
        profile=profile or config.file_source.profile,
    )

    return AuthConfig(
        type=resolved_type,
        token_source=config.token_source,
        file_source=file_source,
        federated_source=config.federated_source,
    )


def resolve_auth_provider(config_path: Path | None = None) -> AuthProvider:
    """
    Build the provider for this process.

    Uses the config file when it has a claudeAuth section, otherwise falls
    back to get_default_auth_provider().
    """
    config = load_auth_config(config_path)
    if config is None:
        return get_default_auth_provider()
    return new_auth_provider(config)
