"""Preflight checks for external analysis tools.

Only git is required: ownership analysis cannot run without it. Every
linter and auditor is optional because a missing tool degrades its stage
to an empty result plus a recorded warning instead of failing the run.
"""

import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolCheck:
    """Result of checking a single tool.

    Attributes:
        name: Tool name
        available: Whether tool is available
        version: Tool version if available
        required: Whether tool is required for this run
        path: Path to executable if available
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required tools are available
        checks: Individual tool check results
        errors: Error messages for missing required tools
        warnings: Warning messages for missing optional tools
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a tool check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"Required tool not found: {check.name}")
            else:
                self.warnings.append(f"Optional tool not found: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


# name -> (executable, version args, purpose, install hint)
OPTIONAL_TOOLS: dict[str, tuple[str, list[str], str, str]] = {
    "eslint": (
        "npx",
        ["--no-install", "eslint", "--version"],
        "JavaScript/TypeScript linter",
        "Install via: npm install -D eslint",
    ),
    "ruff": ("ruff", ["--version"], "Python linter", "Install with: pip install ruff"),
    "bandit": ("bandit", ["--version"], "Python security linter", "Install with: pip install bandit"),
    "golangci-lint": (
        "golangci-lint",
        ["--version"],
        "Go linter (SARIF output)",
        "Install from: https://golangci-lint.run",
    ),
    "spotbugs": ("spotbugs", ["-version"], "Java bug finder", "Install from: https://spotbugs.github.io"),
    "npm": ("npm", ["--version"], "npm dependency audit", "Install Node.js from: https://nodejs.org"),
    "pip-audit": (
        "pip-audit",
        ["--version"],
        "Python dependency audit",
        "Install with: pip install pip-audit",
    ),
    "cargo-audit": (
        "cargo",
        ["audit", "--version"],
        "Rust dependency audit",
        "Install with: cargo install cargo-audit",
    ),
}


class PreflightChecker:
    """Reports external tool availability before analysis.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all()
        if not result.success:
            sys.exit(1)
    """

    def __init__(self, timeout: int = 10) -> None:
        """Initialize preflight checker.

        Args:
            timeout: Timeout in seconds for version checks
        """
        self.timeout = timeout

    def check_command_available(self, command: str) -> tuple[bool, str | None]:
        """Check if a command is available in PATH.

        Args:
            command: Command name to check

        Returns:
            Tuple of (available, path)
        """
        path = shutil.which(command)
        return path is not None, path

    def get_command_version(
        self,
        command: str,
        version_args: list[str] | None = None,
    ) -> str | None:
        """Get version string for a command.

        Args:
            command: Command to get version for
            version_args: Arguments to get version (default: ["--version"])

        Returns:
            Version string if available, None otherwise
        """
        if version_args is None:
            version_args = ["--version"]

        try:
            result = subprocess.run(
                [command, *version_args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
            if result.returncode == 0:
                # First line usually carries the version
                output = result.stdout.strip() or result.stderr.strip()
                return output.split("\n")[0] if output else None
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            pass
        return None

    def check_git(self, required: bool = True) -> ToolCheck:
        """Check if Git is available.

        Args:
            required: Whether Git is required

        Returns:
            ToolCheck result
        """
        available, path = self.check_command_available("git")

        if available:
            version = self.get_command_version("git")
            return ToolCheck(
                name="git",
                available=True,
                version=version,
                required=required,
                path=path,
                message="Version control (ownership analysis)",
            )
        return ToolCheck(
            name="git",
            available=False,
            required=required,
            message="Install from: https://git-scm.com",
        )

    def check_tool(self, name: str) -> ToolCheck:
        """Check one optional linter or auditor.

        A tool whose executable exists but whose version check fails (for
        example ``cargo`` without the ``audit`` subcommand) is unavailable.

        Args:
            name: Key of OPTIONAL_TOOLS

        Returns:
            ToolCheck result
        """
        executable, version_args, purpose, hint = OPTIONAL_TOOLS[name]
        available, path = self.check_command_available(executable)
        version = self.get_command_version(executable, version_args) if available else None

        if available and version is not None:
            return ToolCheck(
                name=name,
                available=True,
                version=version,
                required=False,
                path=path,
                message=purpose,
            )
        return ToolCheck(name=name, available=False, required=False, message=hint)

    def check_all(self, skip_tools: list[str] | None = None) -> PreflightResult:
        """Run all preflight checks.

        Args:
            skip_tools: Optional tools disabled in configuration

        Returns:
            PreflightResult with all check results
        """
        skipped = set(skip_tools or [])
        result = PreflightResult()

        result.add_check(self.check_git(required=True))

        for name in OPTIONAL_TOOLS:
            if name in skipped:
                continue
            result.add_check(self.check_tool(name))

        return result
