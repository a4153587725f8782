"""Pydantic models for fileguard configuration schema."""

import json
import posixpath
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fileguard.config.constants import (
    BACKUP_DIR_NAME,
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_BLACKLISTED_SUBSTRINGS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_CONCURRENT_OPERATIONS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MAX_SEARCH_DIRECTORIES,
    DEFAULT_WORKSPACE_DIR,
    ENV_FILE_ALLOWED_SUFFIXES,
    ENV_FILE_NAME,
    ENV_FILE_PREFIX,
)

VALID_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


class ExactSubstring(BaseModel):
    """Deny any path whose root-relative form contains ``pattern``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["substring"] = "substring"
    pattern: str = Field(min_length=1)

    def matches(self, relative_path: str) -> bool:
        return self.pattern in relative_path


class ExactName(BaseModel):
    """Deny any path whose final segment equals ``name``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["name"] = "name"
    name: str = Field(min_length=1)

    def matches(self, relative_path: str) -> bool:
        return posixpath.basename(relative_path) == self.name


class PrefixWithExceptions(BaseModel):
    """Deny files whose name starts with ``prefix`` unless it ends with an allowed suffix.

    Example:
        >>> policy = PrefixWithExceptions(prefix=".env.", allowed_suffixes=(".example",))
        >>> policy.matches("config/.env.local")
        True
        >>> policy.matches(".env.example")
        False
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["prefix_with_exceptions"] = "prefix_with_exceptions"
    prefix: str = Field(min_length=1)
    allowed_suffixes: tuple[str, ...] = ()

    def matches(self, relative_path: str) -> bool:
        name = posixpath.basename(relative_path)
        if not name.startswith(self.prefix):
            return False
        return not any(name.endswith(suffix) for suffix in self.allowed_suffixes)


BlacklistPolicy = Annotated[
    Union[ExactSubstring, ExactName, PrefixWithExceptions], Field(discriminator="kind")
]


def default_blacklist() -> tuple[ExactSubstring | ExactName | PrefixWithExceptions, ...]:
    """Build the default blacklist, evaluated in declaration order."""
    policies: list[ExactSubstring | ExactName | PrefixWithExceptions] = [
        ExactSubstring(pattern=pattern) for pattern in DEFAULT_BLACKLISTED_SUBSTRINGS
    ]
    policies.append(ExactName(name=ENV_FILE_NAME))
    policies.append(
        PrefixWithExceptions(
            prefix=ENV_FILE_PREFIX, allowed_suffixes=tuple(ENV_FILE_ALLOWED_SUFFIXES)
        )
    )
    return tuple(policies)


class SandboxConfig(BaseModel):
    """Immutable sandbox configuration, set once at construction."""

    model_config = ConfigDict(frozen=True)

    root_directory: Path = Field(
        default=Path(DEFAULT_WORKSPACE_DIR),
        validate_default=True,
        description="Sandbox root. Every operation is confined to this directory.",
    )
    max_file_size: int = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        gt=0,
        description="Maximum file/content size in bytes",
    )
    max_concurrent_operations: int = Field(
        default=DEFAULT_MAX_CONCURRENT_OPERATIONS,
        gt=0,
        description="Maximum number of gated operations in flight at once",
    )
    allowed_extensions: frozenset[str] = Field(
        default=frozenset(DEFAULT_ALLOWED_EXTENSIONS),
        description="Allowed file extensions. '' allows extensionless files; empty set allows all.",
    )
    blacklist: tuple[BlacklistPolicy, ...] = Field(
        default_factory=default_blacklist,
        description="Ordered blacklist policies; first match denies",
    )
    max_search_directories: int = Field(
        default=DEFAULT_MAX_SEARCH_DIRECTORIES,
        gt=0,
        description="Ceiling on directories visited by a single search",
    )
    backup_dir_name: str = Field(
        default=BACKUP_DIR_NAME, description="Backup directory name under the root"
    )

    @field_validator("root_directory")
    @classmethod
    def expand_root_directory(cls, v: Path) -> Path:
        """Expand user home directory and resolve to an absolute, normalized path."""
        return Path(v).expanduser().resolve()

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, v: frozenset[str]) -> frozenset[str]:
        """Lower-case extensions and enforce a leading dot ('' stays as-is)."""
        normalized = set()
        for ext in v:
            ext = ext.strip().lower()
            if ext and not ext.startswith("."):
                ext = f".{ext}"
            normalized.add(ext)
        return frozenset(normalized)

    @field_validator("backup_dir_name")
    @classmethod
    def validate_backup_dir_name(cls, v: str) -> str:
        """Backup directory must be a single path segment."""
        if not v or "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"Invalid backup directory name: '{v}'")
        return v

    @property
    def backup_directory(self) -> Path:
        """Get backup directory as Path object (root/.backups by default)."""
        return self.root_directory / self.backup_dir_name


class FileGuardSettings(BaseModel):
    """Root configuration model for fileguard settings."""

    version: str = "1.0"
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = None
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {sorted(VALID_LOG_LEVELS)}")
        return level

    @field_validator("log_file")
    @classmethod
    def expand_log_file(cls, v: str | None) -> str | None:
        """Expand user home directory in log_file."""
        if v:
            return str(Path(v).expanduser())
        return v

    def model_dump_json_pretty(self, **kwargs: Any) -> str:
        """Dump model to pretty-printed JSON string."""
        data = self.model_dump(mode="json", **kwargs)
        # frozenset has no stable order; keep settings files diff-friendly
        data["sandbox"]["allowed_extensions"] = sorted(data["sandbox"]["allowed_extensions"])
        return json.dumps(data, indent=2)
