"""Configuration file manager for loading, saving, and merging fileguard settings."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .constants import DEFAULT_CONFIG_PATH
from .schema import FileGuardSettings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration operations fail."""

    pass


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Honors FILEGUARD_CONFIG when set.

    Returns:
        Path to ~/.fileguard/settings.json (or the override)
    """
    if override := os.getenv("FILEGUARD_CONFIG"):
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> FileGuardSettings:
    """Load configuration from JSON file.

    Args:
        config_path: Optional path to config file. Defaults to ~/.fileguard/settings.json

    Returns:
        FileGuardSettings loaded from file, or default settings if file doesn't exist

    Raises:
        ConfigurationError: If file exists but is invalid JSON or fails validation

    Example:
        >>> settings = load_config()
        >>> settings.sandbox.max_file_size
        10485760
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        logger.debug(f"No configuration file at {config_path}, using defaults")
        return FileGuardSettings()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)

        return FileGuardSettings(**data)

    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed for {config_path}:\n{e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e


def save_config(settings: FileGuardSettings, config_path: Path | None = None) -> None:
    """Save configuration to JSON file.

    Args:
        settings: FileGuardSettings instance to save
        config_path: Optional path to config file. Defaults to ~/.fileguard/settings.json

    Raises:
        ConfigurationError: If save operation fails
    """
    if config_path is None:
        config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(settings.model_dump_json_pretty())
    except OSError as e:
        raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}") from e


def _int_from_env(name: str) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
        return None


def merge_with_env() -> dict[str, Any]:
    """Collect environment variable overrides for the settings file.

    Environment variables take precedence over file settings. MCP_WORKSPACE_DIR
    is honored as a fallback for the sandbox root.

    Returns:
        Dictionary of overrides shaped like FileGuardSettings

    Example:
        >>> overrides = merge_with_env()
        >>> overrides.get("sandbox", {}).get("root_directory")
    """
    env_overrides: dict[str, Any] = {}

    root = os.getenv("FILEGUARD_ROOT") or os.getenv("MCP_WORKSPACE_DIR")
    if root:
        env_overrides.setdefault("sandbox", {})["root_directory"] = root

    max_file_size = _int_from_env("FILEGUARD_MAX_FILE_SIZE")
    if max_file_size is not None:
        env_overrides.setdefault("sandbox", {})["max_file_size"] = max_file_size

    max_concurrent = _int_from_env("FILEGUARD_MAX_CONCURRENT_OPERATIONS")
    if max_concurrent is not None:
        env_overrides.setdefault("sandbox", {})["max_concurrent_operations"] = max_concurrent

    if os.getenv("FILEGUARD_LOG_LEVEL"):
        env_overrides["log_level"] = os.getenv("FILEGUARD_LOG_LEVEL")

    if os.getenv("FILEGUARD_LOG_FILE"):
        env_overrides["log_file"] = os.getenv("FILEGUARD_LOG_FILE")

    return env_overrides


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(
    config_path: Path | None = None, overrides: dict[str, Any] | None = None
) -> FileGuardSettings:
    """Load settings from file, .env and environment, then apply explicit overrides.

    Precedence (highest first): overrides, environment (including .env), file.

    Args:
        config_path: Optional path to config file
        overrides: Explicit overrides (e.g. from CLI flags)

    Returns:
        Validated FileGuardSettings

    Raises:
        ConfigurationError: If the merged settings fail validation
    """
    from dotenv import find_dotenv, load_dotenv

    load_dotenv(find_dotenv(usecwd=True))

    settings = load_config(config_path)
    data = settings.model_dump(mode="json")
    data = deep_merge(data, merge_with_env())
    if overrides:
        data = deep_merge(data, overrides)

    try:
        return FileGuardSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
