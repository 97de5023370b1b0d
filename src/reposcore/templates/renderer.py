"""Scorecard renderer.

Renders scorecards to markdown or plain text using Jinja2 templates, and to
JSON via ``to_dict()``. Output is deterministic: keys are sorted and the
template iterates in a fixed order.
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from reposcore.pipeline import BatchResult, Scorecard

logger = logging.getLogger(__name__)

TEMPLATES = {
    "markdown": "scorecard.md.j2",
    "text": "scorecard.txt.j2",
}


def format_datetime(dt: datetime | str | None) -> str:
    """Format datetime for display in the scorecard.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    # Ensure UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def score_bar(value: float, width: int = 20) -> str:
    filled = int(round(max(0.0, min(100.0, value)) / 100 * width))
    return "#" * filled + "." * (width - filled)


class ScorecardRenderer:
    """Renders scorecards in the supported output formats.

    Usage:
        renderer = ScorecardRenderer()
        markdown = renderer.render(scorecard, "markdown")
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("reposcore", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["score_bar"] = score_bar

    def render(self, scorecard: Scorecard, output_format: str = "text") -> str:
        """Render one scorecard.

        Args:
            scorecard: Pipeline output
            output_format: text, json or markdown

        Returns:
            Rendered string

        Raises:
            ValueError: If the format is unknown or the template fails
        """
        if output_format == "json":
            return json.dumps(scorecard.to_dict(), indent=2, sort_keys=True) + "\n"
        return self._render_template(output_format, self._build_context(scorecard))

    def render_batch(self, batch: BatchResult, output_format: str = "text") -> str:
        """Render every repository of a batch followed by the aggregate score."""
        if output_format == "json":
            return json.dumps(batch.to_dict(), indent=2, sort_keys=True) + "\n"

        parts = []
        for item in batch.items:
            if item.scorecard is not None:
                parts.append(self.render(item.scorecard, output_format))
            elif item.skipped:
                parts.append(f"{item.path}: skipped (batch cancelled)\n")
            else:
                parts.append(f"{item.path}: failed ({item.error})\n")

        if batch.aggregate is not None:
            context = {
                "repository_name": f"Aggregate of {len(batch.items)} repositories",
                "aggregate": True,
                "score": batch.aggregate.to_dict(),
                "sub_scores": [sub.to_dict() for sub in batch.aggregate.sub_scores],
            }
            parts.append(self._render_template(output_format, context))

        return "\n".join(parts)

    def render_to_file(self, content: str, output_path: Path) -> Path:
        """Write rendered content, creating parent directories."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote scorecard to %s", output_path)
        return output_path

    def _render_template(self, output_format: str, context: dict[str, Any]) -> str:
        if output_format not in TEMPLATES:
            raise ValueError(f"Unknown output format: {output_format}")

        template_name = TEMPLATES[output_format]
        try:
            template = self._env.get_template(template_name)
            rendered = template.render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered %s (%d characters)", template_name, len(rendered))
        return rendered

    @staticmethod
    def _build_context(scorecard: Scorecard) -> dict[str, Any]:
        analysis = scorecard.analysis
        inventory = analysis.inventory
        return {
            "aggregate": False,
            "repository_name": analysis.repository_name,
            "repository_path": str(analysis.repository_path),
            "timestamp": analysis.timestamp,
            "status": analysis.status.value,
            "score": scorecard.score.to_dict(),
            "sub_scores": [sub.to_dict() for sub in scorecard.score.sub_scores],
            "languages": [stats.to_dict() for stats in inventory.languages],
            "total_files": inventory.total_files,
            "total_lines": inventory.total_lines,
            "lint_issue_count": len(analysis.static_analysis.lint_issues),
            "vulnerabilities": [v.to_dict() for v in analysis.security.vulnerabilities],
            "secrets": [s.to_dict() for s in analysis.security.secrets],
            "coverage": analysis.coverage.to_dict() if analysis.coverage else None,
            "licenses": analysis.licenses.to_dict() if analysis.licenses else None,
            "errors": [e.to_dict() for e in analysis.errors],
            "tool_versions": dict(sorted(analysis.tool_versions.items())),
        }
