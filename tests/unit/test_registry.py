"""Unit tests for ToolRegistry."""

from pathlib import Path

import pytest

from reposcore.analyzers import setup_default_adapters
from reposcore.analyzers.base import ToolAdapter, ToolNotAvailableError
from reposcore.analyzers.registry import ToolRegistry
from reposcore.config import ToolsConfig
from reposcore.models import LintIssue


class MockLinter(ToolAdapter[list[LintIssue]]):
    """Mock linter for testing."""

    languages = ("python",)

    def __init__(self, name: str = "mock-lint", timeout: float = 30.0) -> None:
        super().__init__(name=name, capability="lint", timeout=timeout)

    def check_available(self) -> bool:
        return True

    def execute(self, input_path: Path, cancel_token=None) -> list[LintIssue]:
        return []


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_get_adapter(self) -> None:
        """Test registering a linter and instantiating it."""
        registry = ToolRegistry()
        registry.register_linter("mock-lint", MockLinter)

        adapter = registry.get_adapter("lint", "mock-lint", timeout=5)

        assert isinstance(adapter, MockLinter)
        assert adapter.name == "mock-lint"
        assert adapter.timeout == 5

    def test_unknown_tool_raises(self) -> None:
        """Test getting an unregistered tool raises ToolNotAvailableError."""
        registry = ToolRegistry()

        with pytest.raises(ToolNotAvailableError, match="not registered"):
            registry.get_adapter("lint", "nonexistent")

    def test_unknown_capability_raises(self) -> None:
        """Test registering under an unknown capability."""
        with pytest.raises(ValueError, match="Unknown capability"):
            ToolRegistry().register("diagram", "x", MockLinter)

    def test_check_tool_availability(self) -> None:
        """Test availability is reported per capability."""
        registry = ToolRegistry()
        registry.register_linter("mock-lint", MockLinter)

        assert registry.check_tool_availability() == {"lint": {"mock-lint": True}, "audit": {}}


class TestDefaultAdapters:
    """Tests for setup_default_adapters and configured creation."""

    def test_default_tools_registered(self) -> None:
        """Test every built-in linter and auditor is registered."""
        registry = setup_default_adapters(ToolRegistry())

        assert registry.list_linters() == ["eslint", "ruff", "bandit", "golangci-lint", "spotbugs"]
        assert registry.list_auditors() == ["npm-audit", "pip-audit", "cargo-audit"]

    def test_disabled_tools_and_timeouts(self) -> None:
        """Disabled tools are skipped; overrides and capability defaults apply."""
        registry = setup_default_adapters(ToolRegistry())
        tools = ToolsConfig(disabled=["spotbugs", "cargo-audit"], timeouts={"ruff": 12}, audit_timeout=45)

        linters = {adapter.name: adapter for adapter in registry.create_linters(tools)}
        auditors = {adapter.name: adapter for adapter in registry.create_auditors(tools)}

        assert "spotbugs" not in linters
        assert linters["ruff"].timeout == 12
        assert linters["eslint"].timeout == 30
        assert set(auditors) == {"npm-audit", "pip-audit"}
        assert auditors["pip-audit"].timeout == 45


class TestRegistryIsolation:
    """Registries are plain instances with no shared state."""

    def test_registries_do_not_share_adapters(self) -> None:
        """Test populating one registry leaves another empty."""
        populated = setup_default_adapters(ToolRegistry())
        empty = ToolRegistry()

        assert populated.list_linters()
        assert empty.list_linters() == []
        assert empty.list_auditors() == []
