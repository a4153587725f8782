"""Sandbox fixtures for testing."""

import os

import pytest

from fileguard.config.schema import SandboxConfig
from fileguard.sandbox import SecureFileManager

FILEGUARD_ENV_VARS = [
    "FILEGUARD_ROOT",
    "FILEGUARD_MAX_FILE_SIZE",
    "FILEGUARD_MAX_CONCURRENT_OPERATIONS",
    "FILEGUARD_LOG_LEVEL",
    "FILEGUARD_LOG_FILE",
    "MCP_WORKSPACE_DIR",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment and settings file.

    Each variable is set before being deleted so monkeypatch also removes
    values that load_dotenv() injects during the test.
    """
    for name in FILEGUARD_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("FILEGUARD_CONFIG", str(tmp_path / "no-settings.json"))


@pytest.fixture
def workspace(tmp_path):
    """Create an empty sandbox root."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def sandbox_config(workspace):
    """Default sandbox configuration rooted at the temporary workspace."""
    return SandboxConfig(root_directory=workspace)


@pytest.fixture
def file_manager(sandbox_config):
    """SecureFileManager over the temporary workspace."""
    return SecureFileManager(sandbox_config)


@pytest.fixture
def sample_tree(workspace):
    """Create a small source tree.

    Structure:
        workspace/
            README.md
            main.py
            image.png
            .env
            .env.example
            src/
                app.py
                util/
                    helpers.py
            .hidden/
                notes.md
            node_modules/
                lib.js
            secrets/
                key.txt
    """
    (workspace / "README.md").write_text("# Project\nTODO: write docs\n")
    (workspace / "main.py").write_text("import app\n\n# TODO: main\nprint('hello')\n")
    (workspace / "image.png").write_bytes(b"\x89PNG TODO")
    (workspace / ".env").write_text("TOKEN=TODO\n")
    (workspace / ".env.example").write_text("TOKEN=\n")

    src = workspace / "src"
    (src / "util").mkdir(parents=True)
    (src / "app.py").write_text("def run():\n    pass  # todo: implement\n")
    (src / "util" / "helpers.py").write_text("# TODO: helpers\n")

    for hidden in (".hidden", "node_modules", "secrets"):
        (workspace / hidden).mkdir()
    (workspace / ".hidden" / "notes.md").write_text("TODO hidden\n")
    (workspace / "node_modules" / "lib.js").write_text("// TODO vendored\n")
    (workspace / "secrets" / "key.txt").write_text("TODO secret\n")

    return workspace


def make_symlink(link, target, target_is_directory=False):
    """Create a symlink or skip the test where the platform forbids it."""
    try:
        os.symlink(target, link, target_is_directory=target_is_directory)
    except (OSError, NotImplementedError) as e:
        pytest.skip(f"Symlinks not supported: {e}")
