"""Path validation for the sandbox root.

This is the core security function that enforces sandboxing. Every operation
MUST resolve caller-supplied paths through PathValidator before touching the
filesystem.

Security checks, in order:
1. Lexical containment: the normalized path must be the root or lie under it
2. Symlink containment: the symlink-resolved path must stay under the real root
3. Blacklist policies (skipped for the root itself)
4. Extension whitelist (file operations only, skipped for the root itself)
"""

import logging
import os

from fileguard.config.schema import ExactName, ExactSubstring, PrefixWithExceptions, SandboxConfig
from fileguard.exceptions import AccessDeniedError, AccessDeniedReason

logger = logging.getLogger(__name__)


def _with_trailing_sep(path: str) -> str:
    return path if path.endswith(os.sep) else path + os.sep


class PathValidator:
    """Resolve and authorize caller-supplied paths against the sandbox root.

    Stateless apart from the immutable config, so a single instance is safe to
    share between concurrent operations.

    Example:
        >>> validator = PathValidator(SandboxConfig(root_directory="/srv/workspace"))
        >>> validator.validate("src/main.py")
        '/srv/workspace/src/main.py'
        >>> validator.validate("../etc/passwd")
        Traceback (most recent call last):
        ...
        AccessDeniedError: Access denied: Path '../etc/passwd' is outside allowed directory
    """

    def __init__(self, config: SandboxConfig):
        """Initialize PathValidator.

        Args:
            config: Sandbox configuration with root directory and policies
        """
        self.config = config
        self._root = os.path.normpath(str(config.root_directory))
        self._root_prefix = _with_trailing_sep(self._root)
        self._real_root = os.path.realpath(self._root)
        self._real_root_prefix = _with_trailing_sep(self._real_root)

    @property
    def root(self) -> str:
        """Absolute, normalized sandbox root."""
        return self._root

    @property
    def real_root(self) -> str:
        """Sandbox root with symlinks resolved."""
        return self._real_root

    def validate(self, path: str, is_file_operation: bool = True) -> str:
        """Resolve ``path`` against the root and authorize it.

        Args:
            path: Path relative to the sandbox root ("" or "." for the root)
            is_file_operation: Enforce the extension whitelist when True

        Returns:
            Absolute resolved path confined to the root

        Raises:
            AccessDeniedError: With reason outside_root, blacklisted or
                extension_not_allowed
        """
        normalized = os.path.normpath(path) if path else os.curdir
        resolved = os.path.normpath(os.path.join(self._root, normalized))

        if not self.is_inside_root(resolved):
            logger.warning(f"Path outside sandbox: {path} -> {resolved} (root: {self._root})")
            raise AccessDeniedError(
                path,
                AccessDeniedReason.OUTSIDE_ROOT,
                f"Access denied: Path '{path}' is outside allowed directory",
            )

        real = os.path.realpath(resolved)
        if not self.is_within_real_root(real):
            logger.warning(f"Symlink escapes sandbox: {path} -> {real}")
            raise AccessDeniedError(
                path,
                AccessDeniedReason.OUTSIDE_ROOT,
                f"Access denied: Path '{path}' resolves outside allowed directory",
            )

        if resolved == self._root:
            logger.debug(f"Path resolved to sandbox root: {path!r}")
            return resolved

        relative = self.relative_to_root(resolved)
        policy = self.find_blacklist_match(relative)
        if policy is not None:
            logger.warning(f"Blacklisted path rejected: {relative} (policy: {policy!r})")
            raise AccessDeniedError(
                path,
                AccessDeniedReason.BLACKLISTED,
                "Access denied: Path contains blacklisted pattern",
            )

        if is_file_operation:
            name = os.path.basename(resolved)
            if not self.is_extension_allowed(name):
                ext = self.extension_of(name)
                raise AccessDeniedError(
                    path,
                    AccessDeniedReason.EXTENSION_NOT_ALLOWED,
                    f"Access denied: File extension '{ext or 'no extension'}' is not allowed",
                )

        logger.debug(f"Path resolved: {path} -> {resolved}")
        return resolved

    def is_inside_root(self, absolute_path: str) -> bool:
        """Lexical containment check on a normalized absolute path."""
        return absolute_path == self._root or absolute_path.startswith(self._root_prefix)

    def is_within_real_root(self, real_path: str) -> bool:
        """Containment check on a symlink-resolved path."""
        return real_path == self._real_root or real_path.startswith(self._real_root_prefix)

    def relative_to_root(self, absolute_path: str) -> str:
        """Root-relative path with forward slashes, as blacklist patterns expect."""
        relative = os.path.relpath(absolute_path, self._root)
        return relative.replace(os.sep, "/")

    def find_blacklist_match(
        self, relative_path: str
    ) -> ExactSubstring | ExactName | PrefixWithExceptions | None:
        """Return the first policy (in declaration order) that denies the path."""
        for policy in self.config.blacklist:
            if policy.matches(relative_path):
                return policy
        return None

    def is_blacklisted(self, relative_path: str) -> bool:
        return self.find_blacklist_match(relative_path) is not None

    @staticmethod
    def extension_of(name: str) -> str:
        return os.path.splitext(name)[1].lower()

    def is_extension_allowed(self, name: str) -> bool:
        """Check a file name against the whitelist. An empty whitelist allows everything."""
        if not self.config.allowed_extensions:
            return True
        return self.extension_of(name) in self.config.allowed_extensions
