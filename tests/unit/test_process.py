"""Unit tests for the subprocess contract."""

from pathlib import Path

import pytest

from reposcore.utils.process import CancellationToken, OperationCancelled, ProcessResult, run_tool


class TestRunTool:
    """Tests for run_tool."""

    def test_missing_executable_is_reported_not_raised(self, tmp_path: Path) -> None:
        """A missing binary yields not_found instead of an exception."""
        result = run_tool(["reposcore-no-such-tool-xyz"], cwd=tmp_path, timeout=5)

        assert result.not_found is True
        assert result.ran is False
        assert "not installed" in result.describe_failure()

    def test_captures_output(self, tmp_path: Path) -> None:
        """Test stdout and exit code are captured."""
        result = run_tool(["echo", "hello"], cwd=tmp_path, timeout=5)

        assert result.ran is True
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"

    def test_timeout_kills_process(self, tmp_path: Path) -> None:
        """A process exceeding its timeout is killed and flagged."""
        result = run_tool(["sleep", "5"], cwd=tmp_path, timeout=0.2)

        assert result.timed_out is True
        assert result.ran is False

    def test_cancelled_token_skips_run(self, tmp_path: Path) -> None:
        """Nothing is started once the job is cancelled."""
        token = CancellationToken()
        token.cancel()

        result = run_tool(["echo", "hello"], cwd=tmp_path, timeout=5, cancel_token=token)

        assert result.cancelled is True
        assert result.stdout == ""


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_raise_if_cancelled(self) -> None:
        """Test raise_if_cancelled only raises after cancel()."""
        token = CancellationToken()
        token.raise_if_cancelled()

        token.cancel()

        assert token.cancelled is True
        with pytest.raises(OperationCancelled):
            token.raise_if_cancelled()


class TestProcessResult:
    """Tests for ProcessResult helpers."""

    def test_describe_failure_uses_last_stderr_line(self) -> None:
        """Test failure description for a non-zero exit."""
        result = ProcessResult(args=["npm"], exit_code=2, stderr="warn\nboom")

        assert result.describe_failure() == "npm exited with 2: boom"

    def test_has_output_ignores_whitespace(self) -> None:
        """Test whitespace-only stdout is not output."""
        assert ProcessResult(args=["x"], exit_code=0, stdout="  \n").has_output is False
