"""Utility modules for fileguard."""

from fileguard.utils.responses import create_error_response, create_success_response

__all__ = [
    "create_success_response",
    "create_error_response",
]
