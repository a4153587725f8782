"""Shared test fixtures for all tests.

This file imports and re-exports fixtures from the fixtures/ module so they
are automatically discovered by pytest.
"""

# Import all fixtures from organized modules
from tests.fixtures.sandbox import (  # noqa: F401
    file_manager,
    isolated_environment,
    sample_tree,
    sandbox_config,
    workspace,
)
