"""Reposcore analyzers - one per pipeline stage.

Analyzers:
- Inventory: file walk, language and package-manager detection
- Static analysis: language-appropriate linters normalized to LintIssue
- Security: dependency audits plus the secret scanner
- SARIF: normalizer shared by any SARIF-emitting tool
- Coverage: ordered parser chain over existing coverage artifacts
- Documentation: README, API docs and examples
- Ownership: git blame aggregated per directory
- License: project and dependency license classification
"""

from reposcore.analyzers.audit import CargoAuditAdapter, NpmAuditAdapter, PipAuditAdapter
from reposcore.analyzers.base import ToolAdapter, ToolExecutionError, ToolNotAvailableError
from reposcore.analyzers.linters import (
    BanditAdapter,
    EslintAdapter,
    GolangciLintAdapter,
    RuffAdapter,
    SpotBugsAdapter,
)
from reposcore.analyzers.registry import ToolRegistry

__all__ = [
    "BanditAdapter",
    "CargoAuditAdapter",
    "EslintAdapter",
    "GolangciLintAdapter",
    "NpmAuditAdapter",
    "PipAuditAdapter",
    "RuffAdapter",
    "SpotBugsAdapter",
    "ToolAdapter",
    "ToolExecutionError",
    "ToolNotAvailableError",
    "ToolRegistry",
    "setup_default_adapters",
]


def setup_default_adapters(registry: ToolRegistry) -> ToolRegistry:
    """Register all default tool adapters.

    Args:
        registry: Registry to populate

    Returns:
        The populated registry
    """

    # Linters
    registry.register_linter("eslint", EslintAdapter)
    registry.register_linter("ruff", RuffAdapter)
    registry.register_linter("bandit", BanditAdapter)
    registry.register_linter("golangci-lint", GolangciLintAdapter)
    registry.register_linter("spotbugs", SpotBugsAdapter)

    # Dependency auditors
    registry.register_auditor("npm-audit", NpmAuditAdapter)
    registry.register_auditor("pip-audit", PipAuditAdapter)
    registry.register_auditor("cargo-audit", CargoAuditAdapter)

    return registry
