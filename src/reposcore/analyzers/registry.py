"""Tool registry for pluggable linters and dependency auditors.

The registry maps tool names to adapter classes for each capability. The
pipeline asks it for configured instances; which tools actually run is
decided later from the detected languages and package managers.
"""

from typing import Any

from reposcore.analyzers.base import ToolAdapter, ToolNotAvailableError
from reposcore.config import ToolsConfig
from reposcore.models import LintIssue, Vulnerability

CAPABILITIES = ("lint", "audit")


class ToolRegistry:
    """Registry of available tool adapters for each capability.

    Adding a new tool:
        1. Implement a ToolAdapter subclass declaring ``languages`` (lint)
           or ``ecosystems`` (audit)
        2. Transform tool output to LintIssue or Vulnerability
        3. Register it in ``setup_default_adapters``
        4. No changes needed to the rest of the codebase
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._adapters: dict[str, dict[str, type[ToolAdapter[Any]]]] = {
            capability: {} for capability in CAPABILITIES
        }

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, capability: str, name: str, adapter_class: type[ToolAdapter[Any]]) -> None:
        """Register an adapter class.

        Args:
            capability: "lint" or "audit"
            name: Tool identifier (e.g., "ruff")
            adapter_class: Adapter class to register
        """
        if capability not in self._adapters:
            raise ValueError(f"Unknown capability: {capability}. Valid: {CAPABILITIES}")
        self._adapters[capability][name] = adapter_class

    def register_linter(self, name: str, adapter_class: type[ToolAdapter[list[LintIssue]]]) -> None:
        self.register("lint", name, adapter_class)

    def register_auditor(
        self, name: str, adapter_class: type[ToolAdapter[list[Vulnerability]]]
    ) -> None:
        self.register("audit", name, adapter_class)

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get_adapter(self, capability: str, name: str, timeout: float | None = None) -> ToolAdapter[Any]:
        """Get an adapter instance.

        Args:
            capability: "lint" or "audit"
            name: Tool name
            timeout: Timeout override (adapter default if None)

        Returns:
            Instantiated adapter

        Raises:
            ToolNotAvailableError: If tool is not registered
        """
        adapters = self._adapters.get(capability, {})
        if name not in adapters:
            raise ToolNotAvailableError(
                name,
                f"{capability} tool '{name}' not registered. Available: {list(adapters)}",
            )
        if timeout is None:
            return adapters[name](name)
        return adapters[name](name, timeout=timeout)

    def create_linters(self, tools: ToolsConfig | None = None) -> list[ToolAdapter[list[LintIssue]]]:
        """Instantiate every enabled linter with its configured timeout."""
        return self._create("lint", tools)

    def create_auditors(
        self, tools: ToolsConfig | None = None
    ) -> list[ToolAdapter[list[Vulnerability]]]:
        """Instantiate every enabled auditor with its configured timeout."""
        return self._create("audit", tools)

    def _create(self, capability: str, tools: ToolsConfig | None) -> list[ToolAdapter[Any]]:
        tools = tools or ToolsConfig()
        return [
            self.get_adapter(capability, name, tools.timeout_for(name, capability))
            for name in self._adapters[capability]
            if tools.is_enabled(name)
        ]

    # =========================================================================
    # Introspection
    # =========================================================================

    def list_linters(self) -> list[str]:
        """Get list of registered linter names."""
        return list(self._adapters["lint"])

    def list_auditors(self) -> list[str]:
        """Get list of registered auditor names."""
        return list(self._adapters["audit"])

    def get_available_tools(self) -> dict[str, list[str]]:
        """Get all registered tools by capability."""
        return {capability: list(adapters) for capability, adapters in self._adapters.items()}

    def check_tool_availability(self) -> dict[str, dict[str, bool]]:
        """Check availability of all registered tools.

        Returns:
            Dictionary mapping capability -> tool -> availability
        """
        return {
            capability: {
                name: adapter_class(name).check_available()
                for name, adapter_class in adapters.items()
            }
            for capability, adapters in self._adapters.items()
        }

    def get_metadata(self) -> dict[str, Any]:
        """Get registry metadata for logging and debugging."""
        return {"linters": self.list_linters(), "auditors": self.list_auditors()}

