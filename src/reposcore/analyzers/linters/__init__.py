"""Linter adapters, one per external tool.

Each adapter declares the languages it covers; the static analysis stage
runs every registered linter whose languages were detected by inventory.
"""

from reposcore.analyzers.linters.bandit import BanditAdapter
from reposcore.analyzers.linters.eslint import EslintAdapter
from reposcore.analyzers.linters.golangci import GolangciLintAdapter
from reposcore.analyzers.linters.ruff import RuffAdapter
from reposcore.analyzers.linters.spotbugs import SpotBugsAdapter

__all__ = [
    "BanditAdapter",
    "EslintAdapter",
    "GolangciLintAdapter",
    "RuffAdapter",
    "SpotBugsAdapter",
]
