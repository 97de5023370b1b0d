"""Score entities produced by the scoring engine."""

from dataclasses import dataclass, field
from typing import Any

SCORE_DIMENSIONS = (
    "craft",
    "reliability",
    "documentation",
    "security",
    "impact",
    "collaboration",
)


@dataclass(frozen=True)
class SubScore:
    """One scored dimension with the factors that produced it.

    Attributes:
        name: Dimension name (craft, reliability, ...)
        value: Score clamped to [0, 100], rounded to 2 decimals
        factors: Inputs used by the formula, for explanation
    """

    name: str
    value: float
    factors: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"name": self.name, "value": self.value, "factors": dict(self.factors)}


@dataclass(frozen=True)
class ScoreResult:
    """Six-dimension weighted score for one repository (or one batch).

    Attributes:
        overall: Weighted overall score, integer in [0, 100]
        craft: Code quality sub-score
        reliability: Tests/CI/coverage sub-score
        documentation: Documentation sub-score
        security: Vulnerability/secret sub-score
        impact: Size and breadth sub-score
        collaboration: Ownership distribution sub-score
        recommendations: Actionable recommendations from fixed thresholds
        weights: Weights used for the overall score
    """

    overall: int
    craft: SubScore
    reliability: SubScore
    documentation: SubScore
    security: SubScore
    impact: SubScore
    collaboration: SubScore
    recommendations: tuple[str, ...] = ()
    weights: dict[str, float] = field(default_factory=dict)

    @property
    def sub_scores(self) -> list[SubScore]:
        return [getattr(self, name) for name in SCORE_DIMENSIONS]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "overall": self.overall,
            **{sub.name: sub.to_dict() for sub in self.sub_scores},
            "recommendations": list(self.recommendations),
            "weights": dict(self.weights),
        }
