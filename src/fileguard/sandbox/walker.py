"""Directory listing and literal text search inside the sandbox."""

import logging
import os
import re
from collections import deque
from datetime import datetime, timezone

from fileguard.config.schema import SandboxConfig
from fileguard.exceptions import FileNotFoundInSandboxError, OperationFailedError
from fileguard.sandbox.models import (
    FileDescriptor,
    LineMatch,
    MatchContext,
    SearchMatch,
    SearchReport,
)
from fileguard.sandbox.paths import PathValidator

logger = logging.getLogger(__name__)


def _split_lines(text: str) -> list[str]:
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


class DirectoryWalker:
    """List directory contents and search file contents under the root.

    Neither operation goes through the admission gate.
    """

    def __init__(self, config: SandboxConfig, validator: PathValidator):
        """Initialize DirectoryWalker.

        Args:
            config: Sandbox configuration (size limit, directory ceiling)
            validator: Path validator bound to the same root
        """
        self.config = config
        self.validator = validator

    def _file_visible(self, absolute_path: str) -> bool:
        name = os.path.basename(absolute_path)
        relative = self.validator.relative_to_root(absolute_path)
        return self.validator.is_extension_allowed(name) and not self.validator.is_blacklisted(
            relative
        )

    def list_files(self, directory: str = "") -> list[FileDescriptor]:
        """List the regular files directly inside ``directory``.

        Args:
            directory: Directory relative to the root ("" for the root itself)

        Returns:
            FileDescriptor per visible file, sorted by name

        Raises:
            AccessDeniedError: Directory fails validation
            FileNotFoundInSandboxError: Directory does not exist
        """
        resolved = self.validator.validate(directory, is_file_operation=False)
        if not os.path.isdir(resolved):
            raise FileNotFoundInSandboxError(f"Directory '{directory}' does not exist")

        try:
            with os.scandir(resolved) as it:
                entries = list(it)
        except OSError as e:
            raise OperationFailedError("list directory", directory or ".", e) from e

        files = []
        for entry in entries:
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                if not self._file_visible(entry.path):
                    continue
                stat = entry.stat(follow_symlinks=False)
            except OSError as e:
                logger.debug(f"Skipping {entry.path}: {e}")
                continue
            files.append(
                FileDescriptor(
                    name=entry.name,
                    size=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )

        files.sort(key=lambda f: f.name)
        logger.debug(f"Listed {len(files)} files in {directory or '.'}")
        return files

    def search(
        self,
        pattern: str,
        directory: str = "",
        recursive: bool = False,
        ignore_case: bool = False,
        context_lines: int = 0,
    ) -> SearchReport:
        """Find lines containing ``pattern`` as a literal substring.

        Traversal is breadth-first. Every directory is visited at most once
        by real path, so symlink cycles terminate. At most
        ``max_search_directories`` directories are enumerated; if the ceiling
        stops traversal while a directory that was never scanned is still
        queued, ``truncated`` is set.

        Args:
            pattern: Literal text to search for (regex metacharacters are escaped)
            directory: Starting directory relative to the root
            recursive: Descend into subdirectories
            ignore_case: Case-insensitive matching
            context_lines: Lines of context to include before and after each match

        Returns:
            SearchReport with per-file matches in traversal order

        Raises:
            AccessDeniedError: Starting directory fails validation
            FileNotFoundInSandboxError: Starting directory does not exist
        """
        start = self.validator.validate(directory, is_file_operation=False)
        if not os.path.isdir(start):
            raise FileNotFoundInSandboxError(f"Directory '{directory}' does not exist")

        regex = re.compile(re.escape(pattern), re.IGNORECASE if ignore_case else 0)
        context_lines = max(0, context_lines)
        ceiling = self.config.max_search_directories

        results: list[SearchMatch] = []
        frontier = deque([start])
        visited: set[str] = set()
        scanned = 0

        while frontier and scanned < ceiling:
            current = frontier.popleft()
            real = os.path.realpath(current)
            if real in visited:
                logger.debug(f"Already visited {current} ({real}), skipping")
                continue
            visited.add(real)

            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug(f"Cannot enumerate {current}: {e}")
                continue
            scanned += 1

            for entry in entries:
                try:
                    if entry.is_dir():
                        if recursive and self._should_descend(entry):
                            frontier.append(entry.path)
                    elif entry.is_file():
                        match = self._search_file(entry.path, regex, context_lines)
                        if match is not None:
                            results.append(match)
                except OSError as e:
                    logger.debug(f"Skipping {entry.path}: {e}")

        # queued aliases of directories already scanned do not count as unscanned
        unscanned = {os.path.realpath(path) for path in frontier} - visited
        truncated = bool(unscanned)
        if truncated:
            logger.warning(
                f"Search for {pattern!r} stopped after {scanned} directories "
                f"({len(unscanned)} still unscanned); results are incomplete"
            )

        return SearchReport(
            pattern=pattern,
            results=results,
            truncated=truncated,
            directories_scanned=scanned,
        )

    def _should_descend(self, entry: os.DirEntry) -> bool:
        if entry.name.startswith("."):
            return False
        relative = self.validator.relative_to_root(entry.path)
        if self.validator.is_blacklisted(relative + "/"):
            logger.debug(f"Blacklisted directory skipped: {relative}")
            return False
        if entry.is_symlink() and not self.validator.is_within_real_root(
            os.path.realpath(entry.path)
        ):
            logger.debug(f"Symlinked directory leaves sandbox, skipped: {relative}")
            return False
        return True

    def _search_file(
        self, path: str, regex: re.Pattern, context_lines: int
    ) -> SearchMatch | None:
        if not self._file_visible(path):
            return None
        if not self.validator.is_within_real_root(os.path.realpath(path)):
            return None
        if os.stat(path).st_size > self.config.max_file_size:
            logger.debug(f"Skipping oversized file {path}")
            return None

        with open(path, encoding="utf-8", errors="replace", newline="") as f:
            lines = _split_lines(f.read())

        matches = []
        for index, line in enumerate(lines):
            if not regex.search(line):
                continue
            context = None
            if context_lines > 0:
                context = MatchContext(
                    before=lines[max(0, index - context_lines) : index],
                    after=lines[index + 1 : index + 1 + context_lines],
                )
            matches.append(LineMatch(line_number=index + 1, line=line, context=context))

        if not matches:
            return None
        return SearchMatch(file=self.validator.relative_to_root(path), matches=matches)
