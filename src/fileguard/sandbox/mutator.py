"""Read and mutate file contents inside the sandbox.

Every public operation follows the same sequence:
1. Acquire an admission slot (fail fast when the gate is full)
2. Resolve path(s) through PathValidator
3. Check preconditions (existence, size) before any side effect
4. Snapshot through BackupManager when requested (mandatory for partial writes)
5. Perform the filesystem action, wrapping unexpected I/O errors
6. Release the admission slot on every exit path

There is no per-path locking. Two concurrent partial writes to one file can
both read the same original content and the second write then discards the
first. Callers that need per-file serialization must add it themselves.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable

from fileguard.config.schema import SandboxConfig
from fileguard.exceptions import (
    AlreadyExistsError,
    AmbiguousMatchError,
    FileGuardError,
    FileNotFoundInSandboxError,
    NoMatchError,
    OperationFailedError,
    SizeExceededError,
)
from fileguard.sandbox.backup import BackupManager
from fileguard.sandbox.gate import AdmissionGate
from fileguard.sandbox.models import PartialWriteResult
from fileguard.sandbox.paths import PathValidator

logger = logging.getLogger(__name__)


def _read_text(resolved: str) -> str:
    # newline="" keeps the stored bytes intact (no \r\n translation)
    with open(resolved, encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def _read_bytes(resolved: str) -> bytes:
    with open(resolved, "rb") as f:
        return f.read()


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


_UMASK = _current_umask()


def _open_temp_sibling(target: str) -> tuple[int, str]:
    return tempfile.mkstemp(
        dir=os.path.dirname(target), prefix=f".{os.path.basename(target)}.", suffix=".tmp"
    )


def _commit_temp(temp_path: str, target: str) -> None:
    """Give the temp file the target's mode (or the umask default) and move it in place."""
    if os.path.exists(target):
        shutil.copymode(target, temp_path)
    else:
        os.chmod(temp_path, 0o666 & ~_UMASK)
    os.replace(temp_path, target)


def _discard_temp(temp_path: str) -> None:
    try:
        os.unlink(temp_path)
    except OSError:
        pass


def _write_atomic(target: str, data: bytes) -> None:
    """Write to a sibling temp file, then atomically replace the target.

    ``target`` must already be a real path, so a symlink keeps pointing at
    the updated file instead of being replaced by it.
    """
    temp_fd, temp_path = _open_temp_sibling(target)
    try:
        with os.fdopen(temp_fd, "wb") as f:
            f.write(data)
        _commit_temp(temp_path, target)
    except BaseException:
        _discard_temp(temp_path)
        raise


class ContentMutator:
    """Gated read/write/stream-write/delete/rename/partial-write operations."""

    def __init__(
        self,
        config: SandboxConfig,
        validator: PathValidator,
        gate: AdmissionGate,
        backups: BackupManager,
    ):
        """Initialize ContentMutator.

        Args:
            config: Sandbox configuration (size limit)
            validator: Path validator bound to the same root
            gate: Shared admission gate
            backups: Backup manager bound to the same root
        """
        self.config = config
        self.validator = validator
        self.gate = gate
        self.backups = backups

    def _check_size(self, size: int, what: str) -> None:
        limit = self.config.max_file_size
        if size > limit:
            raise SizeExceededError(
                f"{what} ({size} bytes) exceeds maximum allowed size ({limit} bytes)",
                size=size,
                limit=limit,
            )

    def read(self, path: str) -> str:
        """Return the full text content of a file.

        Raises:
            AccessDeniedError: Path fails validation
            FileNotFoundInSandboxError: Missing, not a regular file, or unreadable
            SizeExceededError: File is larger than the configured maximum
            OperationFailedError: Unexpected I/O failure
        """
        with self.gate.acquire():
            resolved = self.validator.validate(path, is_file_operation=True)

            if not os.path.isfile(resolved) or not os.access(resolved, os.R_OK):
                raise FileNotFoundInSandboxError(f"File '{path}' does not exist")

            try:
                size = os.stat(resolved).st_size
            except OSError as e:
                raise OperationFailedError("read file", path, e) from e
            self._check_size(size, "File size")

            try:
                return _read_text(resolved)
            except OSError as e:
                raise OperationFailedError("read file", path, e) from e

    def write(self, path: str, content: str, backup: bool = False) -> int:
        """Replace a file's content, creating parent directories as needed.

        Args:
            path: File path relative to the sandbox root
            content: New content (whole-file replace)
            backup: Snapshot the existing file first

        Returns:
            Number of bytes written

        Raises:
            SizeExceededError: Content is larger than the maximum; target untouched
        """
        with self.gate.acquire():
            resolved = self.validator.validate(path, is_file_operation=True)

            data = content.encode("utf-8")
            self._check_size(len(data), "Content size")

            if backup:
                self.backups.snapshot(resolved)

            try:
                os.makedirs(os.path.dirname(resolved), exist_ok=True)
                with open(resolved, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise OperationFailedError("write file", path, e) from e

            logger.info(f"Wrote {len(data)} bytes to {path}")
            return len(data)

    def stream_write(self, path: str, chunks: Iterable[str | bytes]) -> int:
        """Write a file from a sequence of chunks.

        Chunks go to a temporary sibling file that replaces the target only
        after the whole stream was consumed within the size limit. On overflow
        or any other failure the temporary file is removed and the target keeps
        its previous content (or stays absent). An existing target keeps its
        permission bits and a symlink keeps pointing at the written file.

        Args:
            path: File path relative to the sandbox root
            chunks: Iterable producing str (UTF-8 encoded) or bytes chunks

        Returns:
            Total number of bytes written

        Raises:
            SizeExceededError: Running total exceeded the maximum
            OperationFailedError: I/O failure or the chunk producer raised
        """
        with self.gate.acquire():
            resolved = self.validator.validate(path, is_file_operation=True)
            limit = self.config.max_file_size

            try:
                os.makedirs(os.path.dirname(resolved), exist_ok=True)
                target = os.path.realpath(resolved)
                temp_fd, temp_path = _open_temp_sibling(target)
            except OSError as e:
                raise OperationFailedError("stream write file", path, e) from e

            total = 0
            try:
                with os.fdopen(temp_fd, "wb") as f:
                    for chunk in chunks:
                        data = chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
                        total += len(data)
                        if total > limit:
                            raise SizeExceededError(
                                f"Stream size exceeds maximum allowed size ({limit} bytes)",
                                size=total,
                                limit=limit,
                            )
                        f.write(data)
                _commit_temp(temp_path, target)
            except BaseException as e:
                _discard_temp(temp_path)
                if isinstance(e, FileGuardError) or not isinstance(e, Exception):
                    raise
                raise OperationFailedError("stream write file", path, e) from e

            logger.info(f"Stream wrote {total} bytes to {path}")
            return total

    def delete(self, path: str, backup: bool = True) -> None:
        """Delete a file, snapshotting it first by default.

        Raises:
            FileNotFoundInSandboxError: File does not exist
        """
        with self.gate.acquire():
            resolved = self.validator.validate(path, is_file_operation=True)

            if not os.path.lexists(resolved):
                raise FileNotFoundInSandboxError(f"File '{path}' does not exist")

            if backup:
                self.backups.snapshot(resolved)

            try:
                os.unlink(resolved)
            except OSError as e:
                raise OperationFailedError("delete file", path, e) from e

            logger.info(f"Deleted {path}" + (" (backup created)" if backup else ""))

    def rename(self, old_path: str, new_path: str, backup: bool = True) -> None:
        """Rename or move a file. Never overwrites an existing destination.

        Raises:
            FileNotFoundInSandboxError: Source does not exist
            AlreadyExistsError: Destination already exists
        """
        with self.gate.acquire():
            resolved_old = self.validator.validate(old_path, is_file_operation=True)
            resolved_new = self.validator.validate(new_path, is_file_operation=True)

            if not os.path.lexists(resolved_old):
                raise FileNotFoundInSandboxError(f"Source file '{old_path}' does not exist")

            if os.path.lexists(resolved_new):
                raise AlreadyExistsError(f"Destination '{new_path}' already exists")

            if backup:
                self.backups.snapshot(resolved_old)

            try:
                os.makedirs(os.path.dirname(resolved_new), exist_ok=True)
                shutil.move(resolved_old, resolved_new)
            except OSError as e:
                raise OperationFailedError("rename/move file", old_path, e) from e

            logger.info(f"Renamed {old_path} -> {new_path}")

    def partial_write(self, path: str, old_fragment: str, new_fragment: str) -> PartialWriteResult:
        """Replace the single occurrence of ``old_fragment`` with ``new_fragment``.

        The fragment acts as an unanchored positional patch, so it must occur
        exactly once. Matching and splicing work on the raw bytes, so content
        outside the replaced span is kept byte for byte even when it is not
        valid UTF-8. A backup of the pre-mutation content is always taken.
        The file keeps its permission bits; a symlink keeps pointing at the
        updated file.

        Args:
            path: File path relative to the sandbox root
            old_fragment: Exact text to replace (non-empty, unique in the file)
            new_fragment: Replacement text (may be empty)

        Returns:
            PartialWriteResult with sizes and the backup location

        Raises:
            FileNotFoundInSandboxError: File does not exist
            NoMatchError: Fragment is not present
            AmbiguousMatchError: Fragment is empty or occurs more than once
            SizeExceededError: Result would exceed the maximum
        """
        with self.gate.acquire():
            resolved = self.validator.validate(path, is_file_operation=True)

            if not os.path.isfile(resolved):
                raise FileNotFoundInSandboxError(f"File '{path}' does not exist")

            if not old_fragment:
                # the empty string occurs at every position
                raise AmbiguousMatchError(
                    "Multiple occurrences of the target content found. "
                    "Please use specific content for replacement."
                )

            target = os.path.realpath(resolved)
            try:
                current = _read_bytes(target)
            except OSError as e:
                raise OperationFailedError("partial write file", path, e) from e

            needle = old_fragment.encode("utf-8")
            index = current.find(needle)
            if index == -1:
                raise NoMatchError(
                    "Original content not found in file. The content might have been modified."
                )
            if current.find(needle, index + 1) != -1:
                raise AmbiguousMatchError(
                    "Multiple occurrences of the target content found. "
                    "Please use specific content for replacement."
                )

            data = current[:index] + new_fragment.encode("utf-8") + current[index + len(needle) :]
            self._check_size(len(data), "Updated content size")

            backup_path = self.backups.snapshot(resolved)
            if backup_path is None:
                raise FileNotFoundInSandboxError(f"File '{path}' does not exist")

            try:
                _write_atomic(target, data)
            except OSError as e:
                raise OperationFailedError("partial write file", path, e) from e

            original_size = len(current)
            logger.info(f"Partially updated {path} ({original_size} -> {len(data)} bytes)")
            return PartialWriteResult(
                path=path,
                original_size=original_size,
                new_size=len(data),
                backup_path=str(backup_path),
            )
