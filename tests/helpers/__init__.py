"""Test helpers and utilities.

This module provides shared utilities for testing:
- assertions: Custom assertions for tool responses and sandbox state
"""

from tests.helpers.assertions import (
    assert_error_response,
    assert_no_temp_files,
    assert_success_response,
    backups_of,
)

__all__ = [
    "assert_success_response",
    "assert_error_response",
    "assert_no_temp_files",
    "backups_of",
]
