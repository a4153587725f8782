"""Base class for fileguard toolsets.

Toolsets encapsulate related tools with a shared SecureFileManager, avoiding
global state and enabling dependency injection for testing.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from fileguard.exceptions import AccessDeniedError, FileGuardError
from fileguard.sandbox.manager import SecureFileManager
from fileguard.utils.responses import create_error_response, create_success_response

logger = logging.getLogger(__name__)


class FileGuardToolset(ABC):
    """Base class for fileguard toolsets.

    Each toolset receives a SecureFileManager, so several toolsets (or several
    tool calls in flight) share one sandbox root and one admission gate.

    Example:
        >>> class MyTools(FileGuardToolset):
        ...     def get_tools(self):
        ...         return [self.count_files]
        ...
        ...     async def count_files(self) -> dict:
        ...         files = self.manager.list_files()
        ...         return self._create_success_response(
        ...             result=len(files), message=f"{len(files)} files"
        ...         )
    """

    def __init__(self, manager: SecureFileManager):
        """Initialize toolset with a file manager.

        Args:
            manager: Sandboxed file manager shared by all tools
        """
        self.manager = manager

    @abstractmethod
    def get_tools(self) -> list[Callable]:
        """Get list of tool functions.

        Tools should be async callables with ``Annotated`` parameters and
        docstrings suitable for exposing to a model.

        Returns:
            List of callable tool functions
        """
        pass

    def _create_success_response(self, result: Any, message: str = "") -> dict:
        """Create standardized success response."""
        return create_success_response(result, message)

    def _create_error_response(self, error: str, message: str, **details: Any) -> dict:
        """Create standardized error response.

        Tools use this instead of raising so callers can handle failures
        uniformly.
        """
        return create_error_response(error, message, **details)

    def _error_from_exception(self, error: FileGuardError) -> dict:
        """Convert a sandbox exception into an error response.

        Access denials carry their ``reason`` as an extra field.
        """
        logger.debug(f"Tool call failed ({error.code}): {error}")
        if isinstance(error, AccessDeniedError):
            return self._create_error_response(
                error=error.code, message=str(error), reason=error.reason.value
            )
        return self._create_error_response(error=error.code, message=str(error))
