"""Bandit adapter for Python security lint."""

from pathlib import Path
from typing import Any

from reposcore.analyzers.base import ToolAdapter, parse_json_output, relative_path
from reposcore.models import LintIssue
from reposcore.utils.process import CancellationToken

BANDIT_SEVERITY = {"high": "error", "medium": "warning", "low": "info"}


class BanditAdapter(ToolAdapter[list[LintIssue]]):
    """Lint adapter using ``bandit -r . -f json``.

    Bandit exits 1 whenever it reports issues; the JSON on stdout is still
    the result.
    """

    executable = "bandit"
    languages = ("python",)

    def __init__(self, name: str = "bandit", timeout: float = 30.0) -> None:
        super().__init__(name=name, capability="lint", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[LintIssue]:
        """Run Bandit over the repository."""
        result = self.run(
            ["bandit", "-r", ".", "-f", "json", "-q"],
            cwd=input_path,
            cancel_token=cancel_token,
        )
        return self.parse(parse_json_output(self.name, result) or {}, input_path)

    def parse(self, data: dict[str, Any], repo_path: Path) -> list[LintIssue]:
        """Convert Bandit JSON results to LintIssues."""
        issues = []
        for item in data.get("results", []):
            issues.append(
                LintIssue(
                    file=relative_path(item.get("filename", ""), repo_path),
                    line=item.get("line_number") or 0,
                    column=item.get("col_offset") or 0,
                    severity=BANDIT_SEVERITY.get(str(item.get("issue_severity", "")).lower(), "info"),
                    message=item.get("issue_text", ""),
                    rule=item.get("test_id") or "unknown",
                    source=self.name,
                )
            )
        return issues
