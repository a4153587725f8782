"""Configuration package for fileguard."""

from .manager import (
    ConfigurationError,
    get_config_path,
    load_config,
    load_settings,
    merge_with_env,
    save_config,
)
from .schema import (
    BlacklistPolicy,
    ExactName,
    ExactSubstring,
    FileGuardSettings,
    PrefixWithExceptions,
    SandboxConfig,
    default_blacklist,
)

__all__ = [
    # Schema
    "BlacklistPolicy",
    "ExactName",
    "ExactSubstring",
    "PrefixWithExceptions",
    "SandboxConfig",
    "FileGuardSettings",
    "default_blacklist",
    # Manager
    "ConfigurationError",
    "get_config_path",
    "load_config",
    "load_settings",
    "save_config",
    "merge_with_env",
]
