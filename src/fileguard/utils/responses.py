"""Shared response helper functions for the tool surface.

Tools never raise to their caller. They report every outcome in one of two
dict shapes so a consumer can branch on ``success`` alone.
"""

from typing import Any


def create_success_response(result: Any, message: str = "") -> dict:
    """Create standardized success response.

    Args:
        result: Operation result (can be any type)
        message: Optional human-readable summary

    Returns:
        Structured response dict with success=True

    Example:
        >>> create_success_response(result=12, message="Successfully wrote 12 bytes to a.py")
        {'success': True, 'result': 12, 'message': 'Successfully wrote 12 bytes to a.py'}
    """
    return {
        "success": True,
        "result": result,
        "message": message,
    }


def create_error_response(error: str, message: str, **details: Any) -> dict:
    """Create standardized error response.

    Args:
        error: Machine-readable error code (e.g., "not_found")
        message: Human-friendly error message
        **details: Extra machine-readable fields (e.g., reason="blacklisted")

    Returns:
        Structured response dict with success=False

    Example:
        >>> create_error_response(
        ...     error="access_denied",
        ...     message="Access denied: Path contains blacklisted pattern",
        ...     reason="blacklisted",
        ... )
        {'success': False, 'error': 'access_denied', 'message': '...', 'reason': 'blacklisted'}
    """
    response = {
        "success": False,
        "error": error,
        "message": message,
    }
    response.update(details)
    return response
