"""Coverage report discovery and parsing.

Existing coverage artifacts are read, never produced: the analyzer does not
run test suites. Formats are tried in a fixed priority order and the first
parser that returns a report wins:

1. JSON summary (istanbul ``coverage-summary.json``)
2. Cobertura XML (``coverage.xml``, ``cobertura-coverage.xml``)
3. LCOV (``lcov.info``)
4. README badge (``NN%`` next to "coverage" in a README)

Every parser is a pure function of the file text returning
``CoverageReport | None``; the winning format is logged.
"""

import json
import logging
import os
import re
import xml.etree.ElementTree as ET
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any

from reposcore.models import CoverageMetric, CoverageReport

logger = logging.getLogger(__name__)

# Never searched for coverage artifacts
SKIP_DIRS = frozenset({".git", "node_modules", "vendor", ".venv", "venv", "__pycache__", ".tox"})

BADGE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # HTML badge markup: <... coverage ...>87%
    re.compile(r"coverage[^>]*>(\d+(?:\.\d+)?)%", re.IGNORECASE),
    # shields.io URL: coverage-87%25-green
    re.compile(r"coverage-(\d+(?:\.\d+)?)%25", re.IGNORECASE),
    # Plain text: "87% coverage", "87% test coverage"
    re.compile(r"(\d+(?:\.\d+)?)%\s+(?:test\s+|code\s+)?coverage", re.IGNORECASE),
    # Plain text: "coverage: 87%"
    re.compile(r"coverage\s*[:=]?\s*(\d+(?:\.\d+)?)%", re.IGNORECASE),
)

# Percentage -> quality score bands
QUALITY_BANDS: tuple[tuple[float, int], ...] = (
    (90, 100),
    (80, 90),
    (70, 80),
    (60, 70),
    (50, 60),
    (40, 50),
    (30, 40),
    (20, 30),
    (10, 20),
)


def coverage_quality_score(report: CoverageReport) -> int:
    """Band a coverage percentage into a 10-100 quality score."""
    for threshold, score in QUALITY_BANDS:
        if report.percentage >= threshold:
            return score
    return 10


# =============================================================================
# Parsers
# =============================================================================


def _metric_from_istanbul(entry: dict[str, Any] | None) -> CoverageMetric | None:
    if not isinstance(entry, dict) or "total" not in entry or "covered" not in entry:
        return None
    total = int(entry["total"])
    covered = int(entry["covered"])
    pct = entry.get("pct")
    # istanbul writes "Unknown" when total is 0
    if isinstance(pct, (int, float)):
        return CoverageMetric(total=total, covered=covered, percentage=float(pct))
    return CoverageMetric.from_counts(total, covered)


def parse_json_summary(text: str) -> CoverageReport | None:
    """Parse an istanbul JSON summary keyed by file path plus ``total``."""
    try:
        data = json.loads(text)
        total = data["total"]
        lines = _metric_from_istanbul(total.get("lines"))
        branches = _metric_from_istanbul(total.get("branches"))
        functions = _metric_from_istanbul(total.get("functions"))
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError, ValueError):
        return None
    if lines is None:
        return None

    by_file: dict[str, CoverageMetric] = {}
    for path, entry in data.items():
        if path == "total" or not isinstance(entry, dict):
            continue
        try:
            metric = _metric_from_istanbul(entry.get("lines"))
        except (TypeError, ValueError):
            continue
        if metric is not None:
            by_file[path] = metric

    return CoverageReport(
        total=lines.total,
        covered=lines.covered,
        percentage=lines.percentage,
        branches=branches,
        functions=functions,
        lines=lines,
        by_file=by_file,
        source_format="json-summary",
    )


def parse_cobertura(text: str) -> CoverageReport | None:
    """Parse Cobertura XML; rates are fractions converted to percentages."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return None
    if root.tag != "coverage" or "line-rate" not in root.attrib:
        return None

    try:
        percentage = float(root.attrib["line-rate"]) * 100
        lines_valid = int(root.attrib.get("lines-valid", 0))
        lines_covered = int(root.attrib.get("lines-covered", 0))
        branches = None
        if "branch-rate" in root.attrib:
            branches = CoverageMetric(
                total=int(root.attrib.get("branches-valid", 0)),
                covered=int(root.attrib.get("branches-covered", 0)),
                percentage=float(root.attrib["branch-rate"]) * 100,
            )

        file_counts: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for cls in root.iter("class"):
            filename = cls.get("filename")
            if not filename:
                continue
            for line in cls.iter("line"):
                counts = file_counts[filename]
                counts[0] += 1
                if float(line.get("hits", "0") or 0) > 0:
                    counts[1] += 1
    except ValueError:
        return None

    return CoverageReport(
        total=lines_valid,
        covered=lines_covered,
        percentage=percentage,
        branches=branches,
        lines=CoverageMetric(total=lines_valid, covered=lines_covered, percentage=percentage),
        by_file={
            path: CoverageMetric.from_counts(total, covered)
            for path, (total, covered) in file_counts.items()
        },
        source_format="cobertura",
    )


def parse_lcov(text: str) -> CoverageReport | None:
    """Parse LCOV, summing LF/LH, BRF/BRH and FNF/FNH over all SF blocks."""
    totals = {key: 0 for key in ("LF", "LH", "BRF", "BRH", "FNF", "FNH")}
    by_file: dict[str, CoverageMetric] = {}
    current_file: str | None = None
    file_lf = file_lh = 0
    seen_lines = False

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("SF:"):
            current_file = line[3:]
            file_lf = file_lh = 0
            continue
        if line == "end_of_record":
            if current_file is not None:
                by_file[current_file] = CoverageMetric.from_counts(file_lf, file_lh)
            current_file = None
            continue

        key, _, value = line.partition(":")
        if key not in totals:
            continue
        try:
            count = int(value)
        except ValueError:
            return None
        totals[key] += count
        if key == "LF":
            file_lf = count
            seen_lines = True
        elif key == "LH":
            file_lh = count

    if not seen_lines:
        return None

    lines = CoverageMetric.from_counts(totals["LF"], totals["LH"])
    return CoverageReport(
        total=lines.total,
        covered=lines.covered,
        percentage=lines.percentage,
        branches=CoverageMetric.from_counts(totals["BRF"], totals["BRH"]),
        functions=CoverageMetric.from_counts(totals["FNF"], totals["FNH"]),
        lines=lines,
        by_file=by_file,
        source_format="lcov",
    )


def parse_badge(text: str) -> CoverageReport | None:
    """Extract a percentage from README badge markup or text."""
    for pattern in BADGE_PATTERNS:
        match = pattern.search(text)
        if match:
            percentage = float(match.group(1))
            if not 0 <= percentage <= 100:
                continue
            return CoverageReport(
                total=100,
                covered=round(percentage),
                percentage=percentage,
                source_format="badge",
            )
    return None


# (format name, candidate file names, parser), in priority order
PARSER_CHAIN: tuple[tuple[str, tuple[str, ...], Callable[[str], CoverageReport | None]], ...] = (
    ("json-summary", ("coverage-summary.json",), parse_json_summary),
    ("cobertura", ("coverage.xml", "cobertura-coverage.xml", "cobertura.xml"), parse_cobertura),
    ("lcov", ("lcov.info",), parse_lcov),
    ("badge", ("README.md", "README.rst", "README.txt", "README"), parse_badge),
)


class CoverageAnalyzer:
    """Finds and parses the highest-priority coverage artifact."""

    def __init__(self, repo_path: Path) -> None:
        """Initialize the analyzer.

        Args:
            repo_path: Path to repository root
        """
        self.repo_path = repo_path

    def analyze(self) -> CoverageReport | None:
        """Run the parser chain.

        Returns:
            First successfully parsed report, or None when no coverage data exists
        """
        for format_name, filenames, parser in PARSER_CHAIN:
            for candidate in self.find_candidates(format_name, filenames):
                try:
                    text = candidate.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug("Could not read %s: %s", candidate, e)
                    continue
                try:
                    report = parser(text)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("%s parser failed on %s: %s", format_name, candidate, e)
                    continue
                if report is not None:
                    logger.info(
                        "Coverage %.1f%% from %s parser (%s)",
                        report.percentage,
                        format_name,
                        candidate.relative_to(self.repo_path).as_posix(),
                    )
                    return report
                logger.debug("%s parser rejected %s", format_name, candidate)

        logger.info("No coverage data found")
        return None

    def find_candidates(self, format_name: str, filenames: tuple[str, ...]) -> list[Path]:
        """Candidate files for one format, shallowest first.

        Badges are only read from the root README and READMEs inside a
        ``coverage`` directory; report files are searched at any depth.
        """
        if format_name == "badge":
            roots = [self.repo_path, self.repo_path / "coverage"]
            return [root / name for root in roots for name in filenames if (root / name).is_file()]

        wanted = set(filenames)
        found: list[Path] = []
        for dirpath, dirnames, files in os.walk(self.repo_path):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
            found.extend(Path(dirpath) / name for name in sorted(files) if name in wanted)
        found.sort(key=lambda p: (len(p.relative_to(self.repo_path).parts), filenames.index(p.name)))
        return found
