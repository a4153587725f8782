"""Backup-before-mutate snapshots.

Snapshots are verbatim byte copies stored flatly under ``<root>/.backups/`` as
``<basename>.<timestamp>.backup``. Subdirectory structure is not mirrored, so
same-named files from different directories share one namespace and are told
apart only by timestamp. Retention and cleanup are left to the operator.
"""

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

from fileguard.config.schema import SandboxConfig
from fileguard.exceptions import OperationFailedError

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


def backup_timestamp(now: datetime | None = None) -> str:
    """Format an instant as a filesystem-safe ISO-8601 UTC timestamp.

    Example:
        >>> backup_timestamp(datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
        '2025-01-02T03-04-05-678Z'
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


class BackupManager:
    """Copy a file's current bytes aside before it is mutated."""

    def __init__(self, config: SandboxConfig):
        """Initialize BackupManager.

        Args:
            config: Sandbox configuration (root and backup directory name)
        """
        self.config = config
        self.backup_dir = config.backup_directory

    def snapshot(self, resolved_path: str) -> Path | None:
        """Snapshot ``resolved_path`` if it exists.

        Blocking: the caller must not mutate the file until this returns.

        Args:
            resolved_path: Absolute path already authorized by PathValidator

        Returns:
            Path of the new backup file, or None when the target does not exist

        Raises:
            OperationFailedError: If the backup cannot be written; the caller
                must abort its mutation
        """
        if not os.path.isfile(resolved_path):
            return None

        basename = os.path.basename(resolved_path)
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self._reserve_backup_path(basename)
            shutil.copyfile(resolved_path, backup_path)
        except OSError as e:
            logger.error(f"Backup of {resolved_path} failed: {e}")
            raise OperationFailedError("back up", basename, e) from e

        logger.info(f"Backed up {resolved_path} -> {backup_path}")
        return backup_path

    def _reserve_backup_path(self, basename: str) -> Path:
        """Create an empty, uniquely named backup file and return its path.

        Exclusive creation guarantees an earlier snapshot taken within the same
        millisecond is never overwritten; a ``-N`` discriminator is appended instead.
        """
        stem = f"{basename}.{backup_timestamp()}"
        candidate = self.backup_dir / f"{stem}{BACKUP_SUFFIX}"
        counter = 0
        while True:
            try:
                with open(candidate, "xb"):
                    return candidate
            except FileExistsError:
                counter += 1
                candidate = self.backup_dir / f"{stem}-{counter}{BACKUP_SUFFIX}"

    def list_backups(self, basename: str | None = None) -> list[Path]:
        """List existing backups, optionally only those of one basename.

        Args:
            basename: Original file name to filter on (e.g. "main.py")

        Returns:
            Backup paths sorted by name (oldest first for one basename)
        """
        if not self.backup_dir.is_dir():
            return []
        backups = [
            entry
            for entry in self.backup_dir.iterdir()
            if entry.is_file() and entry.name.endswith(BACKUP_SUFFIX)
        ]
        if basename is not None:
            backups = [entry for entry in backups if entry.name.startswith(f"{basename}.")]
        return sorted(backups)
