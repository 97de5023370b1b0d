"""SARIF normalizer.

Converts SARIF 2.1 logs from any compliant producer into LintIssue records,
the same shape the linter adapters emit. Invalid input never raises: it
logs a warning and yields an empty result set.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reposcore.models import LintIssue

logger = logging.getLogger(__name__)

# SARIF level -> (risk severity, lint bucket)
LEVEL_MAP: dict[str, tuple[str, str]] = {
    "error": ("high", "error"),
    "warning": ("medium", "warning"),
    "note": ("low", "info"),
    "none": ("low", "info"),
}
DEFAULT_LEVEL = ("medium", "warning")


@dataclass
class ParsedSarifResult:
    """One SARIF result at one location.

    Attributes:
        tool: Driver name of the producing tool
        rule_id: Rule identifier
        level: Raw SARIF level
        message: Result message text
        file: Normalized file path
        line: Start line (0 if absent)
        column: Start column (0 if absent)
        severity: Risk severity (high, medium, low)
        bucket: Lint severity (error, warning, info)
        tags: Union of result and rule tags
        precision: Result or rule precision, "unknown" if neither sets it
    """

    tool: str
    rule_id: str
    level: str
    message: str
    file: str
    line: int = 0
    column: int = 0
    end_line: int | None = None
    end_column: int | None = None
    severity: str = "medium"
    bucket: str = "warning"
    tags: list[str] = field(default_factory=list)
    precision: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "tool": self.tool,
            "rule_id": self.rule_id,
            "level": self.level,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
            "bucket": self.bucket,
            "tags": self.tags,
            "precision": self.precision,
        }


def map_level(level: str | None) -> tuple[str, str]:
    """Map a SARIF level to (risk severity, lint bucket)."""
    return LEVEL_MAP.get(level or "", DEFAULT_LEVEL)


def normalize_uri(uri: str) -> str:
    """Strip a file:// scheme and normalize separators."""
    if uri.startswith("file://"):
        uri = uri[len("file://"):]
    return uri.replace("\\", "/")


def parse_sarif_file(path: Path) -> list[ParsedSarifResult]:
    """Parse a SARIF log file.

    Args:
        path: Path to the .sarif file

    Returns:
        Parsed results, empty if the file is unreadable or invalid
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read SARIF file %s: %s", path, e)
        return []
    return parse_sarif_content(content)


def parse_sarif_content(content: str) -> list[ParsedSarifResult]:
    """Parse SARIF log content.

    Args:
        content: SARIF JSON text

    Returns:
        Parsed results, empty if the content is invalid
    """
    try:
        log = json.loads(content)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Failed to parse SARIF content: %s", e)
        return []

    if not isinstance(log, dict) or not isinstance(log.get("runs"), list):
        logger.warning("SARIF content has no runs array")
        return []

    results: list[ParsedSarifResult] = []
    for run in log["runs"]:
        if isinstance(run, dict):
            results.extend(_parse_run(run))
    return results


def _parse_run(run: dict[str, Any]) -> list[ParsedSarifResult]:
    try:
        driver = (run.get("tool") or {}).get("driver") or {}
        tool_name = str(driver.get("name") or "unknown")
        rules = {
            rule["id"]: rule
            for rule in driver.get("rules") or []
            if isinstance(rule, dict) and "id" in rule
        }
        results = list(run.get("results") or [])
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning("Skipping malformed SARIF run: %s", e)
        return []

    parsed: list[ParsedSarifResult] = []
    for result in results:
        if not isinstance(result, dict):
            continue
        try:
            parsed.extend(_parse_result(result, tool_name, rules))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed SARIF result from %s: %s", tool_name, e)
    return parsed


def _parse_result(
    result: dict[str, Any],
    tool_name: str,
    rules: dict[str, dict[str, Any]],
) -> list[ParsedSarifResult]:
    rule_id = str(result.get("ruleId") or "unknown")
    rule = rules.get(rule_id, {})
    level = result.get("level") or (rule.get("defaultConfiguration") or {}).get("level")
    severity, bucket = map_level(level)
    message = str((result.get("message") or {}).get("text", ""))
    tags = _merge_tags(result, rule)
    precision = str(
        (result.get("properties") or {}).get("precision")
        or (rule.get("properties") or {}).get("precision")
        or "unknown"
    )

    parsed: list[ParsedSarifResult] = []
    # A result without locations is still a finding
    for location in result.get("locations") or [{}]:
        physical = (location or {}).get("physicalLocation") or {}
        uri = (physical.get("artifactLocation") or {}).get("uri", "")
        region = physical.get("region") or {}
        parsed.append(
            ParsedSarifResult(
                tool=tool_name,
                rule_id=rule_id,
                level=level or "",
                message=message,
                file=normalize_uri(str(uri)),
                line=int(region.get("startLine") or 0),
                column=int(region.get("startColumn") or 0),
                end_line=region.get("endLine"),
                end_column=region.get("endColumn"),
                severity=severity,
                bucket=bucket,
                tags=tags,
                precision=precision,
            )
        )
    return parsed


def _merge_tags(result: dict[str, Any], rule: dict[str, Any]) -> list[str]:
    tags: list[str] = []
    for source in (result, rule):
        for tag in (source.get("properties") or {}).get("tags") or []:
            if tag not in tags:
                tags.append(tag)
    return tags


def to_lint_issues(results: list[ParsedSarifResult]) -> list[LintIssue]:
    """Convert parsed SARIF results to LintIssue records."""
    return [
        LintIssue(
            file=r.file,
            line=r.line,
            column=r.column,
            severity=r.bucket,
            message=r.message,
            rule=r.rule_id,
            source=r.tool,
        )
        for r in results
    ]


def summarize(results: list[ParsedSarifResult]) -> dict[str, Any]:
    """Count results by tool, severity and rule."""
    summary: dict[str, Any] = {
        "total": len(results),
        "by_tool": {},
        "by_severity": {},
        "by_rule": {},
    }
    for r in results:
        summary["by_tool"][r.tool] = summary["by_tool"].get(r.tool, 0) + 1
        summary["by_severity"][r.severity] = summary["by_severity"].get(r.severity, 0) + 1
        summary["by_rule"][r.rule_id] = summary["by_rule"].get(r.rule_id, 0) + 1
    return summary


def filter_results(
    results: list[ParsedSarifResult],
    tool: str | None = None,
    severity: str | None = None,
    rule_id: str | None = None,
    file: str | None = None,
    min_line: int | None = None,
    max_line: int | None = None,
) -> list[ParsedSarifResult]:
    """Filter results by criteria; ``file`` matches as a substring."""
    filtered = []
    for r in results:
        if tool is not None and r.tool != tool:
            continue
        if severity is not None and r.severity != severity:
            continue
        if rule_id is not None and r.rule_id != rule_id:
            continue
        if file is not None and file not in r.file:
            continue
        if min_line is not None and r.line < min_line:
            continue
        if max_line is not None and r.line > max_line:
            continue
        filtered.append(r)
    return filtered
