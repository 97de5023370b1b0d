"""Unit tests for the SARIF normalizer."""

import json
from pathlib import Path
from typing import Any

import pytest

from reposcore.analyzers.sarif import (
    filter_results,
    map_level,
    parse_sarif_content,
    parse_sarif_file,
    summarize,
    to_lint_issues,
)


def sarif_log(results: list[dict[str, Any]], rules: list[dict[str, Any]] | None = None) -> str:
    return json.dumps(
        {
            "version": "2.1.0",
            "runs": [
                {
                    "tool": {"driver": {"name": "codeql", "rules": rules or []}},
                    "results": results,
                }
            ],
        }
    )


def location(uri: str, line: int, column: int = 1) -> dict[str, Any]:
    return {
        "physicalLocation": {
            "artifactLocation": {"uri": uri},
            "region": {"startLine": line, "startColumn": column},
        }
    }


class TestLevelMapping:
    """Tests for SARIF level mapping."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("error", ("high", "error")),
            ("warning", ("medium", "warning")),
            ("note", ("low", "info")),
            ("none", ("low", "info")),
            (None, ("medium", "warning")),
            ("bogus", ("medium", "warning")),
        ],
    )
    def test_map_level(self, level: str | None, expected: tuple[str, str]) -> None:
        """Each SARIF level maps to a fixed severity and bucket."""
        assert map_level(level) == expected


class TestParseSarifContent:
    """Tests for parse_sarif_content."""

    def test_one_result_per_location(self) -> None:
        """A result with two locations yields two parsed results."""
        content = sarif_log(
            [
                {
                    "ruleId": "js/sql-injection",
                    "level": "error",
                    "message": {"text": "Query built from user input"},
                    "locations": [location("file:///src/db.js", 10), location("src/api.js", 3)],
                }
            ]
        )

        results = parse_sarif_content(content)

        assert [(r.file, r.line) for r in results] == [("/src/db.js", 10), ("src/api.js", 3)]
        assert all(r.severity == "high" and r.bucket == "error" for r in results)
        assert results[0].tool == "codeql"

    def test_level_falls_back_to_rule_default(self) -> None:
        """A result without level uses the rule's default configuration."""
        content = sarif_log(
            [{"ruleId": "R1", "message": {"text": "m"}, "locations": [location("a.py", 1)]}],
            rules=[{"id": "R1", "defaultConfiguration": {"level": "note"},
                    "properties": {"tags": ["security"], "precision": "high"}}],
        )

        result = parse_sarif_content(content)[0]

        assert result.level == "note"
        assert result.severity == "low"
        assert result.tags == ["security"]
        assert result.precision == "high"

    def test_result_without_location_is_kept(self) -> None:
        """Location-less results are still findings."""
        content = sarif_log([{"ruleId": "R2", "level": "warning", "message": {"text": "m"}}])

        results = parse_sarif_content(content)

        assert len(results) == 1
        assert results[0].file == ""
        assert results[0].line == 0

    @pytest.mark.parametrize("content", ["not json", "[]", '{"runs": "nope"}', "{}"])
    def test_invalid_content_yields_empty(self, content: str) -> None:
        """Invalid input never raises."""
        assert parse_sarif_content(content) == []

    def test_unreadable_file_yields_empty(self, tmp_path: Path) -> None:
        """A missing file never raises."""
        assert parse_sarif_file(tmp_path / "missing.sarif") == []

    @pytest.mark.parametrize(
        "run",
        [
            {"tool": "golangci", "results": [{"ruleId": "R1"}]},
            {"tool": {"driver": "golangci"}},
            {"tool": {"driver": {"name": "x"}}, "results": 42},
        ],
    )
    def test_malformed_run_is_skipped(self, run: dict[str, Any]) -> None:
        """A run with the wrong shape contributes nothing and never raises."""
        assert parse_sarif_content(json.dumps({"runs": [run]})) == []

    def test_malformed_result_skipped_others_kept(self) -> None:
        """One broken result does not discard its well-formed siblings."""
        bad_line = {"ruleId": "R1", "locations": [{"physicalLocation": {"region": {"startLine": "abc"}}}]}
        plain_message = {"ruleId": "R2", "message": "plain"}
        good = {"ruleId": "R3", "level": "error", "message": {"text": "ok"}, "locations": [location("a.go", 7)]}

        results = parse_sarif_content(sarif_log([bad_line, plain_message, good]))

        assert [(r.rule_id, r.line) for r in results] == [("R3", 7)]

    def test_malformed_run_does_not_hide_next_run(self) -> None:
        """A later well-formed run is still parsed."""
        content = json.dumps(
            {
                "runs": [
                    {"tool": "broken"},
                    {"tool": {"driver": {"name": "semgrep"}}, "results": [{"ruleId": "R1"}]},
                ]
            }
        )

        assert [r.tool for r in parse_sarif_content(content)] == ["semgrep"]


class TestHelpers:
    """Tests for conversion, summary and filtering."""

    @pytest.fixture
    def results(self) -> list:
        content = sarif_log(
            [
                {"ruleId": "A", "level": "error", "message": {"text": "x"},
                 "locations": [location("src/a.py", 5)]},
                {"ruleId": "B", "level": "note", "message": {"text": "y"},
                 "locations": [location("src/b.py", 50)]},
            ]
        )
        return parse_sarif_content(content)

    def test_to_lint_issues(self, results: list) -> None:
        """SARIF results become LintIssues with lint buckets."""
        issues = to_lint_issues(results)

        assert [(i.severity, i.rule, i.source) for i in issues] == [
            ("error", "A", "codeql"),
            ("info", "B", "codeql"),
        ]

    def test_summarize(self, results: list) -> None:
        """Test counts by tool, severity and rule."""
        summary = summarize(results)

        assert summary["total"] == 2
        assert summary["by_severity"] == {"high": 1, "low": 1}
        assert summary["by_tool"] == {"codeql": 2}

    def test_filter_results(self, results: list) -> None:
        """Test filtering by severity, file substring and line range."""
        assert [r.rule_id for r in filter_results(results, severity="low")] == ["B"]
        assert [r.rule_id for r in filter_results(results, file="a.py")] == ["A"]
        assert [r.rule_id for r in filter_results(results, min_line=10)] == ["B"]
