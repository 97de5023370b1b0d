"""Scoring engine.

Turns one AnalysisResult into a six-dimension ScoreResult. The engine is
pure and deterministic: no I/O, no clock, no randomness. Every sub-score is
clamped to [0, 100] and carries the factors that produced it.

Sub-scores:
- craft = 100 - min(issues_per_kloc / 50, 1) x 50 - min(avg_complexity / 10, 1) x 20
  (+10 with zero lint issues)
- reliability = 40 + 30 x has_tests + 30 x has_ci + coverage% / 100 x 20
  (coverage term is 0 when no coverage report exists)
- documentation = readme score (+10 with API docs) + min(examples x 2, 10)
- security = 100 - min(vulns / 5, 1) x 60 - min(secrets, 3) x 10 + min(deps / 10, 1) x 10
- impact = min(lines / 10000, 1) x 40 + min(languages / 5, 1) x 30 + min(files / 100, 1) x 30
- collaboration = gini x 50 + min(authors / 5, 1) x 50
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass

from reposcore.models import SCORE_DIMENSIONS, AnalysisResult, ScoreResult, SubScore

WEIGHT_TOLERANCE = 1e-6

CRAFT_THRESHOLD = 70
DOCUMENTATION_THRESHOLD = 70
IMPACT_THRESHOLD = 50
COLLABORATION_THRESHOLD = 50


@dataclass(frozen=True)
class ScoringWeights:
    """Weights for the overall score; must be non-negative and sum to 1."""

    craft: float = 0.25
    reliability: float = 0.15
    documentation: float = 0.15
    security: float = 0.15
    impact: float = 0.20
    collaboration: float = 0.10

    def __post_init__(self) -> None:
        values = self.to_dict()
        negative = [name for name, value in values.items() if value < 0]
        if negative:
            raise ValueError(f"Weights must be non-negative: {', '.join(negative)}")
        total = sum(values.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"Weights must sum to 1.0 (got {total:.4f})")

    @classmethod
    def from_dict(cls, data: Mapping[str, float]) -> "ScoringWeights":
        """Build weights from a mapping; missing dimensions keep their defaults.

        Raises:
            ValueError: On unknown dimensions or invalid totals
        """
        unknown = set(data) - set(SCORE_DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown score dimensions: {', '.join(sorted(unknown))}")
        return cls(**{name: float(value) for name, value in data.items()})

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_WEIGHTS = ScoringWeights()


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def gini_coefficient(values: Iterable[float]) -> float:
    """Gini coefficient: 0 for perfect equality, (n-1)/n for one holder of everything.

    Returns 0 for an empty input or an all-zero input.
    """
    ordered = sorted(values)
    n = len(ordered)
    total = sum(ordered)
    if n == 0 or total == 0:
        return 0.0
    weighted = sum((2 * (i + 1) - n - 1) * value for i, value in enumerate(ordered))
    return weighted / (n * total)


def author_contributions(result: AnalysisResult) -> dict[str, float]:
    """Each author's contribution percentage summed across all directories."""
    totals: dict[str, float] = {}
    for record in result.ownership:
        for share in record.authors:
            totals[share.author] = totals.get(share.author, 0.0) + share.percentage
    return totals


def lint_issues_per_kloc(result: AnalysisResult) -> float:
    total_lines = result.inventory.total_lines
    if total_lines == 0:
        return 0.0
    return len(result.static_analysis.lint_issues) / total_lines * 1000


def code_quality(result: AnalysisResult) -> float:
    """Severity-weighted quality indicator reported alongside craft."""
    counts = result.static_analysis.count_by_severity()
    quality = 100 - counts["error"] * 5 - counts["warning"] * 2
    if not result.static_analysis.lint_issues:
        quality += 20
    return clamp(quality)


class ScoringEngine:
    """Computes sub-scores, the weighted overall score and recommendations."""

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or DEFAULT_WEIGHTS

    def score(self, result: AnalysisResult) -> ScoreResult:
        """Score one repository's analysis result.

        Args:
            result: Aggregated stage outputs (degraded sections use their defaults)

        Returns:
            Immutable ScoreResult
        """
        sub_scores = {
            "craft": self.craft(result),
            "reliability": self.reliability(result),
            "documentation": self.documentation(result),
            "security": self.security(result),
            "impact": self.impact(result),
            "collaboration": self.collaboration(result),
        }
        return ScoreResult(
            overall=self.overall({name: sub.value for name, sub in sub_scores.items()}),
            recommendations=tuple(self.recommendations(result, sub_scores)),
            weights=self.weights.to_dict(),
            **sub_scores,
        )

    def overall(self, values: Mapping[str, float]) -> int:
        weights = self.weights.to_dict()
        total = sum(values[name] * weights[name] for name in SCORE_DIMENSIONS)
        return round_half_up(clamp(total))

    # =========================================================================
    # Sub-scores
    # =========================================================================

    def craft(self, result: AnalysisResult) -> SubScore:
        per_kloc = lint_issues_per_kloc(result)
        avg_complexity = result.static_analysis.complexity.average
        issue_count = len(result.static_analysis.lint_issues)

        value = 100 - min(per_kloc / 50, 1) * 50 - min(avg_complexity / 10, 1) * 20
        if issue_count == 0:
            value += 10

        return self._sub_score(
            "craft",
            value,
            lint_issue_count=issue_count,
            lint_issues_per_kloc=round(per_kloc, 2),
            avg_complexity=round(avg_complexity, 2),
            code_quality=code_quality(result),
        )

    def reliability(self, result: AnalysisResult) -> SubScore:
        coverage = result.coverage
        value = 40.0
        if result.tests.has_tests:
            value += 30
        if result.ci.has_ci:
            value += 30
        if coverage is not None:
            value += coverage.percentage / 100 * 20

        return self._sub_score(
            "reliability",
            value,
            has_tests=result.tests.has_tests,
            has_ci=result.ci.has_ci,
            test_coverage=round(coverage.percentage, 2) if coverage is not None else None,
        )

    def documentation(self, result: AnalysisResult) -> SubScore:
        docs = result.documentation
        value = float(docs.readme.score)
        if docs.api_docs.exists:
            value += 10
        if docs.examples.exists:
            value += min(docs.examples.count * 2, 10)

        return self._sub_score(
            "documentation",
            value,
            readme_score=docs.readme.score,
            has_api_docs=docs.api_docs.exists,
            examples_count=docs.examples.count,
        )

    def security(self, result: AnalysisResult) -> SubScore:
        vuln_count = len(result.security.vulnerabilities)
        secret_count = len(result.security.secrets)
        dependency_count = result.security.dependency_count

        value = 100 - min(vuln_count / 5, 1) * 60 - min(secret_count, 3) * 10
        if dependency_count > 0:
            value += min(dependency_count / 10, 1) * 10

        return self._sub_score(
            "security",
            value,
            vulnerability_count=vuln_count,
            secret_count=secret_count,
            dependency_count=dependency_count,
        )

    def impact(self, result: AnalysisResult) -> SubScore:
        inventory = result.inventory
        value = (
            min(inventory.total_lines / 10000, 1) * 40
            + min(len(inventory.languages) / 5, 1) * 30
            + min(inventory.total_files / 100, 1) * 30
        )
        return self._sub_score(
            "impact",
            value,
            total_lines=inventory.total_lines,
            language_count=len(inventory.languages),
            total_files=inventory.total_files,
        )

    def collaboration(self, result: AnalysisResult) -> SubScore:
        contributions = author_contributions(result)
        gini = gini_coefficient(contributions.values())
        value = gini * 50 + min(len(contributions) / 5, 1) * 50

        return self._sub_score(
            "collaboration",
            value,
            ownership_gini=round(gini, 4),
            contributor_count=len(contributions),
        )

    # =========================================================================
    # Recommendations
    # =========================================================================

    def recommendations(self, result: AnalysisResult, sub_scores: Mapping[str, SubScore]) -> list[str]:
        """Actionable recommendations from fixed thresholds, in a stable order."""
        recommendations = []
        vuln_count = len(result.security.vulnerabilities)

        if sub_scores["craft"].value < CRAFT_THRESHOLD:
            recommendations.append("Improve code quality by fixing lint issues and reducing complexity")
        if not result.tests.has_tests:
            recommendations.append("Add comprehensive test suite")
        if not result.ci.has_ci:
            recommendations.append("Set up continuous integration pipeline")
        if sub_scores["documentation"].value < DOCUMENTATION_THRESHOLD:
            recommendations.append("Improve documentation with better README and API docs")
        if vuln_count > 0:
            recommendations.append(f"Fix {vuln_count} security vulnerabilities")
        if result.security.secrets:
            recommendations.append("Remove hardcoded secrets and use environment variables")
        if sub_scores["impact"].value < IMPACT_THRESHOLD:
            recommendations.append("Increase project scope and add more features")
        if sub_scores["collaboration"].value < COLLABORATION_THRESHOLD:
            recommendations.append("Encourage more contributors and improve code review process")
        if result.licenses is not None and result.licenses.summary.compliance_issues:
            issues = "; ".join(result.licenses.summary.compliance_issues)
            recommendations.append(f"Review dependency licenses: {issues}")

        return recommendations

    @staticmethod
    def _sub_score(name: str, value: float, **factors: object) -> SubScore:
        return SubScore(name=name, value=round(clamp(value), 2), factors=factors)
