"""Ruff adapter for Python.

Ruff has no severity field; the rule code prefix decides it: ``E`` codes
are errors, ``W`` codes are warnings and every other family is info.
"""

from pathlib import Path
from typing import Any

from reposcore.analyzers.base import ToolAdapter, parse_json_output, relative_path
from reposcore.models import LintIssue
from reposcore.utils.process import CancellationToken


def ruff_severity(code: str) -> str:
    if code.startswith("E"):
        return "error"
    if code.startswith("W"):
        return "warning"
    return "info"


class RuffAdapter(ToolAdapter[list[LintIssue]]):
    """Lint adapter using ``ruff check``."""

    executable = "ruff"
    languages = ("python",)

    def __init__(self, name: str = "ruff", timeout: float = 30.0) -> None:
        super().__init__(name=name, capability="lint", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[LintIssue]:
        """Run Ruff over the repository."""
        result = self.run(
            ["ruff", "check", "--output-format", "json", "--exit-zero", "."],
            cwd=input_path,
            cancel_token=cancel_token,
        )
        return self.parse(parse_json_output(self.name, result) or [], input_path)

    def parse(self, data: list[dict[str, Any]], repo_path: Path) -> list[LintIssue]:
        """Convert Ruff JSON diagnostics to LintIssues."""
        issues = []
        for item in data:
            code = item.get("code") or "unknown"
            location = item.get("location") or {}
            issues.append(
                LintIssue(
                    file=relative_path(item.get("filename", ""), repo_path),
                    line=location.get("row") or 0,
                    column=location.get("column") or 0,
                    severity=ruff_severity(code),
                    message=item.get("message", ""),
                    rule=code,
                    source=self.name,
                )
            )
        return issues
