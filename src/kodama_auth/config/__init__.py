"""
Configuration loading.

Reads the ``claudeAuth`` section of ~/.kodama/config.yaml into an AuthConfig.
"""

from kodama_auth.config.config import (
    CONFIG_SECTION,
    ENV_AUTH_PROFILE,
    ENV_AUTH_TYPE,
    apply_auth_override,
    default_config_path,
    load_auth_config,
    load_yaml,
    parse_auth_config,
    resolve_auth_provider,
)

__all__ = [
    "CONFIG_SECTION",
    "ENV_AUTH_TYPE",
    "ENV_AUTH_PROFILE",
    "default_config_path",
    "load_yaml",
    "parse_auth_config",
    "load_auth_config",
    "apply_auth_override",
    "resolve_auth_provider",
]
