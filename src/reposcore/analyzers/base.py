"""Abstract base class for external tool adapters.

All linter and audit adapters implement this interface. Each adapter:
1. Invokes the external tool through ``run_tool`` with a bounded timeout
2. Parses tool-specific output (JSON, SARIF, text)
3. Transforms it to the shared records (LintIssue, Vulnerability)
4. Raises ToolNotAvailableError / ToolExecutionError for the caller to record
"""

import json
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Generic, TypeVar

from reposcore.utils.process import CancellationToken, ProcessResult, run_tool

# Generic type for the normalized output format
T = TypeVar("T")


class ToolAdapter(ABC, Generic[T]):
    """Abstract interface for pluggable analysis tools.

    Adding a new tool MUST NOT require changes outside the adapter module
    and its registration in ``setup_default_adapters``.

    Type Parameters:
        T: The normalized output type (list[LintIssue], list[Vulnerability])

    Attributes:
        name: Tool identifier (e.g., "eslint", "pip-audit")
        capability: Capability type ("lint" or "audit")
        executable: Binary looked up on PATH
        timeout: Seconds before the tool process is killed
    """

    executable: str = ""
    version_args: tuple[str, ...] = ("--version",)

    def __init__(self, name: str, capability: str, timeout: float = 30.0) -> None:
        """Initialize the adapter.

        Args:
            name: Tool identifier
            capability: Capability type
            timeout: Per-invocation timeout in seconds
        """
        self.name = name
        self.capability = capability
        self.timeout = timeout
        self._version: str | None = None

    @property
    def version(self) -> str | None:
        """Get the tool version (cached after first check)."""
        if self._version is None:
            self._version = self.get_version()
        return self._version

    def check_available(self) -> bool:
        """Verify tool is installed and accessible.

        Returns:
            True if the executable is on PATH, False otherwise
        """
        return shutil.which(self.executable or self.name) is not None

    def get_version(self) -> str | None:
        """Return tool version string.

        Returns:
            First line of the version output if available, None otherwise
        """
        result = run_tool(
            [self.executable or self.name, *self.version_args],
            cwd=Path.cwd(),
            timeout=10,
        )
        if not result.ran or result.exit_code != 0:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0] if output else None

    def run(
        self,
        args: list[str],
        cwd: Path,
        cancel_token: CancellationToken | None = None,
    ) -> ProcessResult:
        """Run the tool with this adapter's timeout.

        Missing binaries and timeouts are converted to adapter errors; a
        non-zero exit is returned as-is because most tools use it to
        signal findings.

        Raises:
            ToolNotAvailableError: If the executable is missing
            ToolExecutionError: If the tool timed out or was cancelled
        """
        result = run_tool(args, cwd=cwd, timeout=self.timeout, cancel_token=cancel_token)
        if result.not_found:
            raise ToolNotAvailableError(self.name)
        if result.timed_out or result.cancelled:
            raise ToolExecutionError(
                self.name,
                result.describe_failure(),
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result

    @abstractmethod
    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> T:
        """Run tool and return normalized output.

        Args:
            input_path: Repository root to analyze
            cancel_token: Optional job cancellation token

        Returns:
            Normalized output records

        Raises:
            ToolNotAvailableError: If tool is not installed
            ToolExecutionError: If tool execution fails or its output is unparsable
        """
        pass

    def get_metadata(self) -> dict[str, Any]:
        """Get adapter metadata for logging and debugging.

        Returns:
            Dictionary with adapter info
        """
        return {
            "name": self.name,
            "capability": self.capability,
            "version": self.version,
            "available": self.check_available(),
        }


class ToolNotAvailableError(Exception):
    """Raised when a required tool is not installed or accessible."""

    def __init__(self, tool_name: str, message: str | None = None) -> None:
        self.tool_name = tool_name
        self.message = message or f"Tool not available: {tool_name}"
        super().__init__(self.message)


class ToolExecutionError(Exception):
    """Raised when a tool execution fails."""

    def __init__(
        self,
        tool_name: str,
        message: str,
        exit_code: int | None = None,
        stderr: str | None = None,
    ) -> None:
        self.tool_name = tool_name
        self.exit_code = exit_code
        self.stderr = stderr
        full_message = f"Tool execution failed: {tool_name} - {message}"
        if exit_code is not None:
            full_message += f" (exit code: {exit_code})"
        super().__init__(full_message)


def parse_json_output(tool_name: str, result: ProcessResult) -> Any:
    """Parse a tool's JSON stdout.

    A non-zero exit with parseable stdout means "ran with findings". Empty
    stdout after a clean exit means "no findings" and returns None.

    Raises:
        ToolExecutionError: If stdout is empty after a failure or is not JSON
    """
    if not result.has_output:
        if result.exit_code == 0:
            return None
        raise ToolExecutionError(
            tool_name,
            result.describe_failure(),
            exit_code=result.exit_code,
            stderr=result.stderr,
        )
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ToolExecutionError(
            tool_name,
            f"Unparsable output: {e}",
            exit_code=result.exit_code,
            stderr=result.stderr,
        ) from e


def relative_path(path: str, root: Path) -> str:
    """Express a tool-reported path relative to the repository root."""
    candidate = Path(path)
    if candidate.is_absolute():
        try:
            candidate = candidate.resolve().relative_to(root.resolve())
        except ValueError:
            return candidate.as_posix()
    return candidate.as_posix().removeprefix("./")
