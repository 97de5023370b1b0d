"""ESLint adapter for JavaScript and TypeScript.

Runs ``npx --no-install eslint . --format json`` and maps ESLint's numeric
severities (2 error, 1 warning) onto the shared scale. When the project has
no ESLint configuration, a minimal ``.eslintrc.json`` is written into the
working copy first so the run does not fail on a missing config.
"""

import json
import logging
from pathlib import Path
from typing import Any

from reposcore.analyzers.base import ToolAdapter, ToolExecutionError, parse_json_output, relative_path
from reposcore.models import LintIssue
from reposcore.utils.process import CancellationToken

logger = logging.getLogger(__name__)

ESLINT_CONFIG_FILES = (
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".eslintrc.yaml",
    ".eslintrc",
)

DEFAULT_ESLINT_CONFIG: dict[str, Any] = {
    "extends": ["eslint:recommended"],
    "parserOptions": {"ecmaVersion": 2022, "sourceType": "module"},
    "env": {"browser": True, "node": True, "es2022": True},
    "rules": {
        "no-unused-vars": "warn",
        "no-console": "warn",
        "no-debugger": "error",
        "complexity": ["warn", 10],
    },
}

ESLINT_SEVERITY = {2: "error", 1: "warning"}


class EslintAdapter(ToolAdapter[list[LintIssue]]):
    """Lint adapter using ESLint via npx."""

    executable = "npx"
    version_args = ("--no-install", "eslint", "--version")
    languages = ("javascript", "typescript")

    def __init__(self, name: str = "eslint", timeout: float = 30.0) -> None:
        super().__init__(name=name, capability="lint", timeout=timeout)

    def ensure_config(self, repo_path: Path) -> bool:
        """Write a default config when none exists.

        Returns:
            True if a config was synthesized

        Raises:
            ToolExecutionError: If the working copy is not writable
        """
        if any((repo_path / name).exists() for name in ESLINT_CONFIG_FILES):
            return False
        try:
            (repo_path / ".eslintrc.json").write_text(
                json.dumps(DEFAULT_ESLINT_CONFIG, indent=2), encoding="utf-8"
            )
        except OSError as e:
            raise ToolExecutionError(self.name, f"cannot write default config: {e}") from e
        logger.debug("Synthesized default ESLint config in %s", repo_path)
        return True

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[LintIssue]:
        """Run ESLint over the repository."""
        self.ensure_config(input_path)
        result = self.run(
            [
                "npx",
                "--no-install",
                "eslint",
                ".",
                "--format",
                "json",
                "--ext",
                ".js,.jsx,.ts,.tsx",
            ],
            cwd=input_path,
            cancel_token=cancel_token,
        )
        return self.parse(parse_json_output(self.name, result) or [], input_path)

    def parse(self, data: list[dict[str, Any]], repo_path: Path) -> list[LintIssue]:
        """Convert ESLint JSON results to LintIssues."""
        issues: list[LintIssue] = []
        for file_result in data:
            file_path = relative_path(file_result.get("filePath", ""), repo_path)
            for message in file_result.get("messages", []):
                issues.append(
                    LintIssue(
                        file=file_path,
                        line=message.get("line") or 0,
                        column=message.get("column") or 0,
                        severity=ESLINT_SEVERITY.get(message.get("severity"), "info"),
                        message=message.get("message", ""),
                        rule=message.get("ruleId") or "unknown",
                        source=self.name,
                    )
                )
        return issues
