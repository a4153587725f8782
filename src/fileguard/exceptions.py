"""Custom exceptions for sandboxed file access.

This module provides a hierarchy of exception classes so callers can tell
failure kinds apart without parsing messages. Every exception carries a
machine-readable ``code`` that the tool layer forwards as the ``error`` field
of its structured responses.

Exception Hierarchy:
    FileGuardError (base)
    ├── AccessDeniedError (reason: outside_root | blacklisted | extension_not_allowed)
    ├── FileNotFoundInSandboxError
    ├── AlreadyExistsError
    ├── SizeExceededError
    ├── ResourceExhaustedError
    ├── NoMatchError
    ├── AmbiguousMatchError
    └── OperationFailedError
"""

from enum import Enum


class FileGuardError(Exception):
    """Base exception for all sandbox errors.

    All custom exceptions raised by the file access layer inherit from this
    class, allowing catch-all handling at the caller's boundary.
    """

    code = "unknown"


class AccessDeniedReason(str, Enum):
    """Why a path was refused by the validator."""

    OUTSIDE_ROOT = "outside_root"
    BLACKLISTED = "blacklisted"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"


class AccessDeniedError(FileGuardError):
    """Path rejected by sandbox validation.

    Raised before any filesystem side effect takes place.

    Attributes:
        path: Caller-supplied path that was rejected
        reason: Which validation rule denied access

    Example:
        >>> raise AccessDeniedError("../etc/passwd", AccessDeniedReason.OUTSIDE_ROOT,
        ...     "Access denied: Path '../etc/passwd' is outside allowed directory")
    """

    code = "access_denied"

    def __init__(self, path: str, reason: AccessDeniedReason, message: str):
        """Initialize AccessDeniedError.

        Args:
            path: Caller-supplied path that was rejected
            reason: Which validation rule denied access
            message: Human-friendly error message
        """
        self.path = path
        self.reason = reason
        super().__init__(message)


class FileNotFoundInSandboxError(FileGuardError):
    """Target file is absent, not a regular file, or not readable."""

    code = "not_found"


class AlreadyExistsError(FileGuardError):
    """Destination already exists and would be overwritten."""

    code = "already_exists"


class SizeExceededError(FileGuardError):
    """File or content is larger than the configured maximum.

    Attributes:
        size: Observed size in bytes (running total for streamed writes)
        limit: Configured maximum in bytes
    """

    code = "size_exceeded"

    def __init__(self, message: str, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(message)


class ResourceExhaustedError(FileGuardError):
    """Admission gate is full. Raised immediately, never queued."""

    code = "resource_exhausted"


class NoMatchError(FileGuardError):
    """Fragment to replace was not found in the file."""

    code = "no_match"


class AmbiguousMatchError(FileGuardError):
    """Fragment to replace occurs more than once in the file."""

    code = "ambiguous_match"


class OperationFailedError(FileGuardError):
    """Unexpected I/O failure during the actual filesystem call.

    Wraps the original OSError with the action and path that failed.

    Attributes:
        action: Operation being performed (read, write, delete, ...)
        path: Caller-supplied path the action targeted
        original_error: Underlying exception
    """

    code = "unknown"

    def __init__(self, action: str, path: str, original_error: BaseException):
        """Initialize OperationFailedError.

        Args:
            action: Operation being performed (read, write, delete, ...)
            path: Caller-supplied path the action targeted
            original_error: Underlying exception
        """
        self.action = action
        self.path = path
        self.original_error = original_error
        super().__init__(f"Failed to {action} '{path}': {original_error}")
