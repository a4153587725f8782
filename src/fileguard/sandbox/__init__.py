"""Sandboxed file access: validation, admission, backups, mutation, traversal."""

from .backup import BackupManager
from .gate import AdmissionGate, AdmissionSlot
from .manager import SecureFileManager
from .models import (
    FileDescriptor,
    LineMatch,
    MatchContext,
    PartialWriteResult,
    SandboxStats,
    SearchMatch,
    SearchReport,
)
from .mutator import ContentMutator
from .paths import PathValidator
from .walker import DirectoryWalker

__all__ = [
    # Components
    "PathValidator",
    "AdmissionGate",
    "AdmissionSlot",
    "BackupManager",
    "ContentMutator",
    "DirectoryWalker",
    "SecureFileManager",
    # Models
    "FileDescriptor",
    "MatchContext",
    "LineMatch",
    "SearchMatch",
    "SearchReport",
    "PartialWriteResult",
    "SandboxStats",
]
