"""Static analysis stage.

Dispatches to every registered linter whose languages were detected by
the inventory, concatenates their LintIssues, and derives a complexity
summary from complexity-flagged issues. A linter that cannot run yields no
issues and a recorded warning; other linters are unaffected.

SARIF reports already present in the working copy (``*.sarif``, e.g. from a
CI code-scanning step) are normalized into the same LintIssue list.
"""

import logging
import re
from pathlib import Path

from reposcore.analyzers.base import ToolAdapter, ToolExecutionError, ToolNotAvailableError
from reposcore.analyzers.sarif import parse_sarif_file, to_lint_issues
from reposcore.models import ComplexitySummary, LintIssue, StaticAnalysisResult
from reposcore.utils.process import CancellationToken

logger = logging.getLogger(__name__)

FIRST_INTEGER = re.compile(r"\d+")
SARIF_SUFFIXES = (".sarif", ".sarif.json")


def find_sarif_reports(paths: list[str]) -> list[str]:
    return [path for path in paths if path.lower().endswith(SARIF_SUFFIXES)]


def is_complexity_issue(issue: LintIssue) -> bool:
    return "complexity" in issue.rule.lower() or "complex" in issue.message.lower()


def complexity_value(issue: LintIssue) -> int:
    """First integer embedded in the message, 1 if there is none."""
    match = FIRST_INTEGER.search(issue.message)
    return int(match.group(0)) if match else 1


def summarize_complexity(issues: list[LintIssue]) -> ComplexitySummary:
    """Average, max and low/medium/high histogram (<=5, 6-10, >10)."""
    values = [complexity_value(issue) for issue in issues if is_complexity_issue(issue)]
    if not values:
        return ComplexitySummary()

    return ComplexitySummary(
        average=sum(values) / len(values),
        max=max(values),
        distribution={
            "low": sum(1 for v in values if v <= 5),
            "medium": sum(1 for v in values if 5 < v <= 10),
            "high": sum(1 for v in values if v > 10),
        },
    )


class StaticAnalyzer:
    """Runs language-appropriate linters over a working copy."""

    def __init__(self, repo_path: Path, linters: list[ToolAdapter[list[LintIssue]]]) -> None:
        """Initialize the analyzer.

        Args:
            repo_path: Path to repository root
            linters: Linter adapters; each declares the languages it covers
        """
        self.repo_path = repo_path
        self.linters = linters

    def select_linters(self, languages: list[str]) -> list[ToolAdapter[list[LintIssue]]]:
        """Linters covering at least one detected language."""
        detected = set(languages)
        return [
            linter
            for linter in self.linters
            if detected.intersection(getattr(linter, "languages", ()))
        ]

    def analyze(
        self,
        languages: list[str],
        cancel_token: CancellationToken | None = None,
        sarif_reports: list[str] | None = None,
    ) -> StaticAnalysisResult:
        """Run linters for the detected languages.

        Args:
            languages: Language names from the inventory
            cancel_token: Optional job cancellation token
            sarif_reports: Repository-relative SARIF files to normalize

        Returns:
            StaticAnalysisResult with issues, complexity and warnings
        """
        result = StaticAnalysisResult()

        for report in sarif_reports or []:
            issues = to_lint_issues(parse_sarif_file(self.repo_path / report))
            logger.debug("%s contributed %d SARIF issues", report, len(issues))
            result.lint_issues.extend(issues)

        for linter in self.select_linters(languages):
            try:
                issues = linter.execute(self.repo_path, cancel_token)
            except (ToolNotAvailableError, ToolExecutionError) as e:
                result.warnings.append(str(e))
                logger.warning("%s", e)
                continue
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                message = f"{linter.name} output could not be parsed: {e}"
                result.warnings.append(message)
                logger.warning(message)
                continue

            logger.debug("%s reported %d issues", linter.name, len(issues))
            result.lint_issues.extend(issues)

        result.complexity = summarize_complexity(result.lint_issues)
        logger.info(
            "Static analysis: %d issues, average complexity %.1f",
            len(result.lint_issues),
            result.complexity.average,
        )
        return result
