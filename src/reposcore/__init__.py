"""Reposcore - Explainable repository quality scoring.

Reposcore inspects a checked-out repository, runs the external analysis tools
that fit it (linters, dependency auditors, git blame), normalizes their output
into one schema and turns the evidence into a six-dimension weighted score.

Core principles:
- Tolerate partial failure: a broken tool degrades its own stage only
- Normalize first: every tool's output maps onto shared record types
- Deterministic scoring: same analysis input always yields the same score
- Explainability: every sub-score carries the factors that produced it
- Secret safety: raw secret values never leave the analyzer
"""

__version__ = "0.1.0"
__author__ = "Reposcore Contributors"
