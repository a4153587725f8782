"""Unit tests for fileguard.sandbox.paths module."""

import os

import pytest

from fileguard.config.schema import ExactSubstring, SandboxConfig
from fileguard.exceptions import AccessDeniedError, AccessDeniedReason
from fileguard.sandbox.paths import PathValidator
from tests.fixtures.sandbox import make_symlink


@pytest.fixture
def validator(sandbox_config):
    return PathValidator(sandbox_config)


@pytest.mark.unit
@pytest.mark.sandbox
class TestContainment:
    """Paths must stay inside the sandbox root."""

    def test_relative_path_resolves_under_root(self, validator, workspace):
        assert validator.validate("src/main.py") == os.path.join(str(workspace), "src", "main.py")

    @pytest.mark.parametrize("path", ["", "."])
    def test_root_itself_is_allowed(self, validator, workspace, path):
        assert validator.validate(path) == str(workspace)

    def test_root_skips_extension_check(self, validator, workspace):
        # The root has no extension in the whitelist sense; it is still accepted
        assert validator.validate("src/..", is_file_operation=True) == str(workspace)

    @pytest.mark.parametrize(
        "path",
        ["../outside.py", "../../etc/passwd", "src/../../x.py", "/etc/passwd"],
    )
    def test_escaping_paths_are_denied(self, validator, path):
        with pytest.raises(AccessDeniedError) as exc_info:
            validator.validate(path)

        assert exc_info.value.reason == AccessDeniedReason.OUTSIDE_ROOT
        assert exc_info.value.path == path
        assert "outside allowed directory" in str(exc_info.value)

    def test_sibling_with_common_prefix_is_denied(self, tmp_path, workspace):
        sibling = tmp_path / "workspace-other"
        sibling.mkdir()
        validator = PathValidator(SandboxConfig(root_directory=workspace))

        with pytest.raises(AccessDeniedError) as exc_info:
            validator.validate(str(sibling / "file.py"))

        assert exc_info.value.reason == AccessDeniedReason.OUTSIDE_ROOT

    def test_internal_dotdot_is_normalized(self, validator, workspace):
        assert validator.validate("src/../main.py") == os.path.join(str(workspace), "main.py")

    def test_symlink_escaping_root_is_denied(self, validator, workspace, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "data.py").write_text("x = 1\n")
        make_symlink(workspace / "link", outside, target_is_directory=True)

        with pytest.raises(AccessDeniedError) as exc_info:
            validator.validate("link/data.py")

        assert exc_info.value.reason == AccessDeniedReason.OUTSIDE_ROOT
        assert "resolves outside" in str(exc_info.value)

    def test_symlink_inside_root_is_allowed(self, validator, workspace):
        (workspace / "real").mkdir()
        make_symlink(workspace / "alias", workspace / "real", target_is_directory=True)

        assert validator.validate("alias/file.py") == os.path.join(
            str(workspace), "alias", "file.py"
        )


@pytest.mark.unit
@pytest.mark.sandbox
class TestBlacklist:
    """Blacklist policies are evaluated on the root-relative path."""

    @pytest.mark.parametrize(
        "path",
        [
            ".git/config",
            "node_modules/react/index.js",
            "secrets/key.txt",
            "app/secrets/token.json",
            ".DS_Store",
            "docs/Thumbs.db",
            ".env",
            ".env.local",
            "config/.env.production",
            "weird..name.py",
        ],
    )
    def test_blacklisted_paths_are_denied(self, validator, path):
        with pytest.raises(AccessDeniedError) as exc_info:
            validator.validate(path)

        assert exc_info.value.reason == AccessDeniedReason.BLACKLISTED
        assert str(exc_info.value) == "Access denied: Path contains blacklisted pattern"

    @pytest.mark.parametrize("path", [".env.example", ".env.template", "config/.env.sample"])
    def test_env_templates_are_allowed(self, validator, path):
        validator.validate(path)

    @pytest.mark.parametrize("path", [".envrc", ".environment.md", "deploy/.envrc"])
    def test_env_lookalikes_are_allowed(self, validator, path):
        validator.validate(path)

    def test_blacklist_applies_to_directory_operations(self, validator):
        with pytest.raises(AccessDeniedError):
            validator.validate("node_modules/pkg", is_file_operation=False)

    def test_custom_blacklist_replaces_defaults(self, workspace):
        config = SandboxConfig(
            root_directory=workspace, blacklist=(ExactSubstring(pattern="private/"),)
        )
        validator = PathValidator(config)

        validator.validate(".env.txt")
        with pytest.raises(AccessDeniedError):
            validator.validate("private/plan.md")

    def test_first_matching_policy_is_reported(self, validator):
        policy = validator.find_blacklist_match("node_modules/.git/x")
        assert policy is not None
        assert policy.pattern == ".git/"


@pytest.mark.unit
@pytest.mark.sandbox
class TestExtensionWhitelist:
    """File operations require a whitelisted extension."""

    def test_disallowed_extension_is_denied(self, validator):
        with pytest.raises(AccessDeniedError) as exc_info:
            validator.validate("image.png")

        assert exc_info.value.reason == AccessDeniedReason.EXTENSION_NOT_ALLOWED
        assert "'.png'" in str(exc_info.value)

    def test_extension_match_is_case_insensitive(self, validator):
        validator.validate("SCRIPT.PY")

    def test_extensionless_files_are_allowed(self, validator):
        validator.validate("Makefile")
        validator.validate("docker/Dockerfile")

    def test_directory_operations_skip_extension_check(self, validator, workspace):
        assert validator.validate("assets.png", is_file_operation=False) == os.path.join(
            str(workspace), "assets.png"
        )

    def test_empty_whitelist_allows_everything(self, workspace):
        validator = PathValidator(
            SandboxConfig(root_directory=workspace, allowed_extensions=frozenset())
        )
        validator.validate("archive.tar.gz")

    def test_extension_of_uses_last_suffix(self):
        assert PathValidator.extension_of("archive.tar.GZ") == ".gz"
        assert PathValidator.extension_of("Makefile") == ""


@pytest.mark.unit
@pytest.mark.sandbox
class TestRelativeToRoot:
    def test_uses_forward_slashes(self, validator, workspace):
        absolute = os.path.join(str(workspace), "src", "util", "helpers.py")
        assert validator.relative_to_root(absolute) == "src/util/helpers.py"
