"""golangci-lint adapter for Go, read through the SARIF normalizer."""

from pathlib import Path

from reposcore.analyzers.base import ToolAdapter, parse_json_output
from reposcore.analyzers.sarif import parse_sarif_content, to_lint_issues
from reposcore.models import LintIssue
from reposcore.utils.process import CancellationToken


class GolangciLintAdapter(ToolAdapter[list[LintIssue]]):
    """Lint adapter using ``golangci-lint run --out-format sarif``."""

    executable = "golangci-lint"
    languages = ("go",)

    def __init__(self, name: str = "golangci-lint", timeout: float = 60.0) -> None:
        super().__init__(name=name, capability="lint", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[LintIssue]:
        """Run golangci-lint over all packages."""
        result = self.run(
            ["golangci-lint", "run", "--out-format", "sarif", "./..."],
            cwd=input_path,
            cancel_token=cancel_token,
        )
        # Raises ToolExecutionError on non-JSON output
        if parse_json_output(self.name, result) is None:
            return []
        return to_lint_issues(parse_sarif_content(result.stdout))
