"""Reposcore scorecard rendering.

Jinja2-based rendering with deterministic output: the same scorecard always
renders to the same text.
"""

from reposcore.templates.renderer import ScorecardRenderer

__all__ = ["ScorecardRenderer"]
