"""Source file tools for sandboxed file operations.

This module exposes the SecureFileManager operations as async tools with
structured responses, suitable for registration with an agent or a tool
server.

Key Features:
- Read, write, stream-write, delete, rename and anchor-based partial writes
- Directory listing and literal text search
- Backups before destructive operations
- Fail-fast admission control shared across concurrent tool calls

Blocking filesystem work runs in worker threads, so concurrent tool calls
really do compete for admission slots.
"""

import asyncio
from collections.abc import Iterator
from typing import Annotated

from pydantic import Field

from fileguard import __version__
from fileguard.config.constants import DEFAULT_STREAM_CHUNK_SIZE
from fileguard.exceptions import FileGuardError
from fileguard.sandbox.manager import SecureFileManager
from fileguard.tools.toolset import FileGuardToolset


def _iter_chunks(content: str, chunk_size: int) -> Iterator[str]:
    for start in range(0, len(content), chunk_size):
        yield content[start : start + chunk_size]


class SourceFileTools(FileGuardToolset):
    """Sandboxed source file tools.

    Every tool returns ``{"success": True, "result": ..., "message": ...}`` or
    ``{"success": False, "error": <code>, "message": ...}``. Error codes are
    the ``code`` attributes of the exceptions in ``fileguard.exceptions`` plus
    ``invalid_argument`` for missing required arguments. Access denials also
    carry ``reason`` (outside_root, blacklisted, extension_not_allowed).

    Example:
        >>> manager = SecureFileManager(SandboxConfig(root_directory="./workspace"))
        >>> tools = SourceFileTools(manager)
        >>> result = await tools.write_source_file("src/app.py", "print('hi')\\n")
        >>> result["message"]
        'Successfully wrote 12 bytes to src/app.py'
    """

    def __init__(self, manager: SecureFileManager, chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE):
        """Initialize SourceFileTools.

        Args:
            manager: Sandboxed file manager
            chunk_size: Chunk size used to feed stream_write_source_file content
        """
        super().__init__(manager)
        self.chunk_size = chunk_size

    def get_tools(self) -> list:
        """Get list of source file tools.

        Returns:
            List of source file tool functions
        """
        return [
            self.read_source_file,
            self.write_source_file,
            self.partial_write_source_file,
            self.delete_source_file,
            self.rename_source_file,
            self.stream_write_source_file,
            self.list_source_files,
            self.get_server_stats,
            self.search_files,
        ]

    def _missing_argument(self, *names: str) -> dict:
        joined = " and ".join(names)
        noun = "parameter is" if len(names) == 1 else "parameters are"
        return self._create_error_response(
            error="invalid_argument", message=f"{joined} {noun} required"
        )

    async def read_source_file(
        self,
        file_path: Annotated[
            str, Field(description="Path to the source file to read (relative to workspace)")
        ],
    ) -> dict:
        """Read content from a source code file."""
        if not file_path:
            return self._missing_argument("file_path")

        try:
            content = await asyncio.to_thread(self.manager.read, file_path)
        except FileGuardError as e:
            return self._error_from_exception(e)

        return self._create_success_response(
            result={"path": file_path, "content": content},
            message=f"File: {file_path}",
        )

    async def write_source_file(
        self,
        file_path: Annotated[
            str, Field(description="Path to the source file to write (relative to workspace)")
        ],
        content: Annotated[str, Field(description="Content to write to the file")],
        create_backup: Annotated[
            bool, Field(description="Whether to create a backup of existing file")
        ] = False,
    ) -> dict:
        """Write content to a source code file."""
        if not file_path or content is None:
            return self._missing_argument("file_path", "content")

        try:
            written = await asyncio.to_thread(
                self.manager.write, file_path, content, create_backup
            )
        except FileGuardError as e:
            return self._error_from_exception(e)

        return self._create_success_response(
            result={"path": file_path, "bytes_written": written},
            message=f"Successfully wrote {written} bytes to {file_path}",
        )

    async def partial_write_source_file(
        self,
        file_path: Annotated[
            str, Field(description="Path to the source file to update (relative to workspace)")
        ],
        old_content: Annotated[
            str, Field(description="Exact content to be replaced (must be unique in the file)")
        ],
        new_content: Annotated[
            str, Field(description="New content to replace the old content with")
        ],
    ) -> dict:
        """Efficiently update part of a file by replacing specific content.

        The old content must occur exactly once. A backup is always created.
        """
        if not file_path or old_content is None or new_content is None:
            return self._missing_argument("file_path", "old_content", "new_content")

        try:
            outcome = await asyncio.to_thread(
                self.manager.partial_write, file_path, old_content, new_content
            )
        except FileGuardError as e:
            return self._error_from_exception(e)

        result = outcome.model_dump()
        result["size_change"] = outcome.size_change
        return self._create_success_response(
            result=result,
            message=(
                f"Successfully updated {file_path} "
                f"(content replaced, size change: {outcome.size_change} bytes)"
            ),
        )

    async def delete_source_file(
        self,
        file_path: Annotated[
            str, Field(description="Path to the source file to delete (relative to workspace)")
        ],
        create_backup: Annotated[
            bool, Field(description="Whether to create a backup before deletion")
        ] = True,
    ) -> dict:
        """Delete a source code file."""
        if not file_path:
            return self._missing_argument("file_path")

        try:
            await asyncio.to_thread(self.manager.delete, file_path, create_backup)
        except FileGuardError as e:
            return self._error_from_exception(e)

        suffix = " (backup created)" if create_backup else ""
        return self._create_success_response(
            result={"path": file_path, "backup_created": create_backup},
            message=f"Successfully deleted {file_path}{suffix}",
        )

    async def rename_source_file(
        self,
        old_path: Annotated[
            str, Field(description="Current path of the source file (relative to workspace)")
        ],
        new_path: Annotated[
            str, Field(description="New path for the source file (relative to workspace)")
        ],
        create_backup: Annotated[
            bool, Field(description="Whether to create a backup before renaming/moving")
        ] = True,
    ) -> dict:
        """Rename or move a source code file to a new location."""
        if not old_path or not new_path:
            return self._missing_argument("old_path", "new_path")

        try:
            await asyncio.to_thread(self.manager.rename, old_path, new_path, create_backup)
        except FileGuardError as e:
            return self._error_from_exception(e)

        suffix = " (backup created)" if create_backup else ""
        return self._create_success_response(
            result={"old_path": old_path, "new_path": new_path, "backup_created": create_backup},
            message=f"Successfully renamed/moved {old_path} to {new_path}{suffix}",
        )

    async def stream_write_source_file(
        self,
        file_path: Annotated[
            str, Field(description="Path to the source file to write (relative to workspace)")
        ],
        content: Annotated[str, Field(description="Content to stream write to the file")],
    ) -> dict:
        """Write content to a source code file using streaming.

        The target is replaced atomically once all content has been written.
        """
        if not file_path or content is None:
            return self._missing_argument("file_path", "content")

        chunks = _iter_chunks(content, self.chunk_size)
        try:
            written = await asyncio.to_thread(self.manager.stream_write, file_path, chunks)
        except FileGuardError as e:
            return self._error_from_exception(e)

        return self._create_success_response(
            result={"path": file_path, "bytes_written": written},
            message=f"Successfully stream wrote {written} bytes to {file_path}",
        )

    async def list_source_files(
        self,
        dir_path: Annotated[
            str,
            Field(description="Directory path to list files from (relative to workspace, optional)"),
        ] = "",
    ) -> dict:
        """List source code files in a directory with metadata."""
        dir_path = dir_path or ""
        location = dir_path or "workspace"

        try:
            files = await asyncio.to_thread(self.manager.list_files, dir_path)
        except FileGuardError as e:
            return self._error_from_exception(e)

        result = {
            "directory": dir_path,
            "files": [f.model_dump(mode="json") for f in files],
        }
        if not files:
            return self._create_success_response(
                result=result, message=f"No source files found in {location}"
            )
        return self._create_success_response(
            result=result, message=f"Found {len(files)} file(s) in {location}"
        )

    async def get_server_stats(self) -> dict:
        """Get server statistics and status information."""
        stats = self.manager.stats()
        result = stats.model_dump()
        result["version"] = __version__
        megabytes = stats.max_file_size / 1024 / 1024
        return self._create_success_response(
            result=result,
            message=(
                f"Active Operations: {stats.active_operations}, "
                f"Workspace Directory: {stats.root_directory}, "
                f"Max File Size: {stats.max_file_size} bytes ({megabytes:.1f} MB)"
            ),
        )

    async def search_files(
        self,
        pattern: Annotated[str, Field(description="Text pattern to search for")],
        search_dir: Annotated[
            str,
            Field(description="Directory to search in (relative to workspace, default is root)"),
        ] = "",
        recursive: Annotated[
            bool, Field(description="Whether to search subdirectories recursively")
        ] = False,
        ignore_case: Annotated[
            bool, Field(description="Whether to ignore case when searching")
        ] = False,
        context_lines: Annotated[
            int,
            Field(description="Number of context lines to include before and after matches"),
        ] = 0,
    ) -> dict:
        """Search for text patterns in files (grep-like functionality)."""
        if not pattern:
            return self._missing_argument("pattern")

        search_dir = search_dir or ""
        where = f"{search_dir or 'workspace'}{' (recursive)' if recursive else ''}"

        try:
            report = await asyncio.to_thread(
                self.manager.search,
                pattern,
                search_dir,
                recursive,
                ignore_case,
                context_lines,
            )
        except FileGuardError as e:
            return self._error_from_exception(e)

        if not report.results:
            message = f'No matches found for pattern "{pattern}" in {where}'
        else:
            message = (
                f'Found {len(report.results)} file(s) with matches for pattern "{pattern}" '
                f"in {where}"
            )
        if report.truncated:
            message += (
                f" (search stopped after {report.directories_scanned} directories; "
                "results may be incomplete)"
            )

        return self._create_success_response(result=report.model_dump(), message=message)
