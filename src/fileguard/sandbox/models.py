"""Result models produced by sandbox operations.

These are transient values returned to the caller; nothing here is persisted.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FileDescriptor(BaseModel):
    """Name, size and modification time of a listed file."""

    model_config = ConfigDict(frozen=True)

    name: str
    size: int
    modified: datetime


class MatchContext(BaseModel):
    """Lines surrounding a match, clipped to file boundaries."""

    model_config = ConfigDict(frozen=True)

    before: list[str] = Field(default_factory=list)
    after: list[str] = Field(default_factory=list)


class LineMatch(BaseModel):
    """A single matching line (1-based line number)."""

    model_config = ConfigDict(frozen=True)

    line_number: int
    line: str
    context: MatchContext | None = None


class SearchMatch(BaseModel):
    """All matches found in one file, path relative to the sandbox root."""

    model_config = ConfigDict(frozen=True)

    file: str
    matches: list[LineMatch]


class SearchReport(BaseModel):
    """Outcome of a search.

    ``truncated`` is True when the directory ceiling stopped traversal while a
    directory that was never scanned was still queued, so results are incomplete.
    """

    model_config = ConfigDict(frozen=True)

    pattern: str
    results: list[SearchMatch] = Field(default_factory=list)
    truncated: bool = False
    directories_scanned: int = 0


class PartialWriteResult(BaseModel):
    """Outcome of an anchor-based partial write."""

    model_config = ConfigDict(frozen=True)

    path: str
    original_size: int
    new_size: int
    backup_path: str

    @property
    def size_change(self) -> int:
        return self.new_size - self.original_size


class SandboxStats(BaseModel):
    """Point-in-time statistics for the sandbox."""

    model_config = ConfigDict(frozen=True)

    active_operations: int
    root_directory: str
    max_file_size: int
    max_concurrent_operations: int
