"""SecureFileManager: one sandbox root, one shared admission gate."""

import logging
from collections.abc import Iterable
from pathlib import Path

from fileguard.config.schema import SandboxConfig
from fileguard.sandbox.backup import BackupManager
from fileguard.sandbox.gate import AdmissionGate
from fileguard.sandbox.models import (
    FileDescriptor,
    PartialWriteResult,
    SandboxStats,
    SearchReport,
)
from fileguard.sandbox.mutator import ContentMutator
from fileguard.sandbox.paths import PathValidator
from fileguard.sandbox.walker import DirectoryWalker

logger = logging.getLogger(__name__)


class SecureFileManager:
    """Facade over path validation, admission, backups, mutation and traversal.

    Example:
        >>> manager = SecureFileManager(SandboxConfig(root_directory="./workspace"))
        >>> manager.write("notes.md", "# Notes\\n")
        8
        >>> manager.read("notes.md")
        '# Notes\\n'
    """

    def __init__(self, config: SandboxConfig, gate: AdmissionGate | None = None):
        """Initialize SecureFileManager.

        Args:
            config: Sandbox configuration
            gate: Admission gate to share with other managers (created from
                ``config.max_concurrent_operations`` when omitted)
        """
        self.config = config
        self.gate = gate or AdmissionGate(config.max_concurrent_operations)
        self.validator = PathValidator(config)
        self.backups = BackupManager(config)
        self.mutator = ContentMutator(config, self.validator, self.gate, self.backups)
        self.walker = DirectoryWalker(config, self.validator)
        logger.debug(
            f"SecureFileManager ready (root: {self.validator.root}, "
            f"limit: {self.gate.limit} concurrent ops)"
        )

    def read(self, path: str) -> str:
        return self.mutator.read(path)

    def write(self, path: str, content: str, backup: bool = False) -> int:
        return self.mutator.write(path, content, backup=backup)

    def stream_write(self, path: str, chunks: Iterable[str | bytes]) -> int:
        return self.mutator.stream_write(path, chunks)

    def delete(self, path: str, backup: bool = True) -> None:
        self.mutator.delete(path, backup=backup)

    def rename(self, old_path: str, new_path: str, backup: bool = True) -> None:
        self.mutator.rename(old_path, new_path, backup=backup)

    def partial_write(self, path: str, old_fragment: str, new_fragment: str) -> PartialWriteResult:
        return self.mutator.partial_write(path, old_fragment, new_fragment)

    def list_files(self, directory: str = "") -> list[FileDescriptor]:
        return self.walker.list_files(directory)

    def search(
        self,
        pattern: str,
        directory: str = "",
        recursive: bool = False,
        ignore_case: bool = False,
        context_lines: int = 0,
    ) -> SearchReport:
        return self.walker.search(
            pattern,
            directory=directory,
            recursive=recursive,
            ignore_case=ignore_case,
            context_lines=context_lines,
        )

    def list_backups(self, basename: str | None = None) -> list[Path]:
        return self.backups.list_backups(basename)

    def stats(self) -> SandboxStats:
        """Snapshot of gate occupancy and configured limits."""
        return SandboxStats(
            active_operations=self.gate.active,
            root_directory=self.validator.root,
            max_file_size=self.config.max_file_size,
            max_concurrent_operations=self.gate.limit,
        )
