"""Unit tests for external tool preflight checks."""

import subprocess
from unittest.mock import MagicMock, patch

from reposcore.utils.preflight import OPTIONAL_TOOLS, PreflightChecker, PreflightResult, ToolCheck


def which_only(*names: str):
    """Build a shutil.which replacement that finds only the given commands."""

    def fake_which(command: str) -> str | None:
        return f"/usr/bin/{command}" if command in names else None

    return fake_which


class TestPreflightResult:
    """Tests for PreflightResult bookkeeping."""

    def test_missing_required_tool_fails(self) -> None:
        """Test a missing required tool flips success and records an error."""
        result = PreflightResult()

        result.add_check(ToolCheck(name="git", available=False, required=True))

        assert result.success is False
        assert result.errors == ["Required tool not found: git"]

    def test_missing_optional_tool_warns(self) -> None:
        """Test a missing optional tool only records a warning."""
        result = PreflightResult()

        result.add_check(ToolCheck(name="ruff", available=False, required=False))

        assert result.success is True
        assert result.warnings == ["Optional tool not found: ruff"]

    def test_to_dict(self) -> None:
        result = PreflightResult()
        result.add_check(ToolCheck(name="git", available=True, version="git version 2.43.0", path="/usr/bin/git"))

        data = result.to_dict()

        assert data["success"] is True
        assert data["checks"][0]["version"] == "git version 2.43.0"


class TestCommandVersion:
    """Tests for get_command_version."""

    def test_first_line_returned(self) -> None:
        """Test only the first output line is kept."""
        completed = MagicMock(returncode=0, stdout="ruff 0.4.1\nextra\n", stderr="")

        with patch("subprocess.run", return_value=completed):
            version = PreflightChecker().get_command_version("ruff")

        assert version == "ruff 0.4.1"

    def test_failure_returns_none(self) -> None:
        """Test a non-zero exit means no version."""
        completed = MagicMock(returncode=1, stdout="", stderr="error: no such command: audit")

        with patch("subprocess.run", return_value=completed):
            assert PreflightChecker().get_command_version("cargo", ["audit", "--version"]) is None

    def test_timeout_returns_none(self) -> None:
        """Test a hanging version check is treated as unavailable."""
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="npx", timeout=10)):
            assert PreflightChecker(timeout=10).get_command_version("npx") is None


class TestPreflightChecker:
    """Tests for check_git, check_tool and check_all."""

    def test_git_missing(self) -> None:
        """Test a missing git fails the whole preflight."""
        checker = PreflightChecker()

        with patch("shutil.which", side_effect=which_only()):
            result = checker.check_all()

        assert result.success is False
        assert "Required tool not found: git" in result.errors
        assert len(result.warnings) == len(OPTIONAL_TOOLS)

    def test_git_available(self) -> None:
        """Test git with a version string."""
        checker = PreflightChecker()

        with (
            patch("shutil.which", side_effect=which_only("git")),
            patch.object(checker, "get_command_version", return_value="git version 2.43.0"),
        ):
            check = checker.check_git()

        assert check.available is True
        assert check.path == "/usr/bin/git"
        assert check.version == "git version 2.43.0"

    def test_failed_version_check_marks_unavailable(self) -> None:
        """Test cargo without the audit subcommand is unavailable."""
        checker = PreflightChecker()

        with (
            patch("shutil.which", side_effect=which_only("cargo")),
            patch.object(checker, "get_command_version", return_value=None),
        ):
            check = checker.check_tool("cargo-audit")

        assert check.available is False
        assert check.required is False
        assert "cargo install cargo-audit" in check.message

    def test_skip_tools(self) -> None:
        """Test disabled tools are left out of the report."""
        checker = PreflightChecker()

        with (
            patch("shutil.which", side_effect=which_only("git", "ruff")),
            patch.object(checker, "get_command_version", return_value="1.0"),
        ):
            result = checker.check_all(skip_tools=["spotbugs", "eslint"])

        names = [check.name for check in result.checks]
        assert names[0] == "git"
        assert "spotbugs" not in names
        assert "eslint" not in names
        assert result.success is True
        assert "Optional tool not found: ruff" not in result.warnings
        assert "Optional tool not found: bandit" in result.warnings
