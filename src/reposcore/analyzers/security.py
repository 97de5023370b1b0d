"""Security stage: dependency audits plus secret scanning.

Audits run once per ecosystem detected by the inventory. An audit that
cannot run degrades only its own ecosystem to an empty vulnerability list
and records a warning. Secret scanning is independent of the audits.
"""

import logging
from pathlib import Path

from reposcore.analyzers.base import ToolAdapter, ToolExecutionError, ToolNotAvailableError
from reposcore.analyzers.manifests import collect_dependencies
from reposcore.analyzers.secrets import SecretScanner
from reposcore.models import InventoryResult, SecurityResult, Vulnerability
from reposcore.utils.process import CancellationToken

logger = logging.getLogger(__name__)

# Package manager -> manifest ecosystem used for dependency counts
MANAGER_ECOSYSTEMS: dict[str, str] = {
    "npm": "npm",
    "yarn": "npm",
    "pnpm": "npm",
    "pip": "pypi",
    "poetry": "pypi",
    "cargo": "cargo",
}


class SecurityAnalyzer:
    """Runs dependency audits and the secret scanner for one repository."""

    def __init__(self, repo_path: Path, auditors: list[ToolAdapter[list[Vulnerability]]]) -> None:
        """Initialize the analyzer.

        Args:
            repo_path: Path to repository root
            auditors: Audit adapters; each declares the package managers it covers
        """
        self.repo_path = repo_path
        self.auditors = auditors

    def analyze(
        self,
        inventory: InventoryResult,
        cancel_token: CancellationToken | None = None,
        scan_secrets: bool = True,
    ) -> SecurityResult:
        """Audit dependencies and scan for secrets.

        Args:
            inventory: Inventory stage output
            cancel_token: Optional job cancellation token
            scan_secrets: Run the secret scanner

        Returns:
            SecurityResult with vulnerabilities, redacted secrets and dependency count
        """
        result = SecurityResult()
        managers = inventory.package_managers

        for auditor in self.select_auditors(managers):
            result.vulnerabilities.extend(self._run_audit(auditor, result, cancel_token))

        result.dependency_count = self.count_dependencies(managers)

        if scan_secrets:
            scanner = SecretScanner(self.repo_path)
            result.secrets = scanner.scan(inventory.files, cancel_token)
            result.warnings.extend(scanner.warnings)

        logger.info(
            "Security: %d vulnerabilities, %d possible secrets, %d dependencies",
            len(result.vulnerabilities),
            len(result.secrets),
            result.dependency_count,
        )
        return result

    def select_auditors(self, managers: list[str]) -> list[ToolAdapter[list[Vulnerability]]]:
        """Auditors covering at least one detected package manager, each once."""
        return [
            auditor
            for auditor in self.auditors
            if any(manager in getattr(auditor, "ecosystems", ()) for manager in managers)
        ]

    def count_dependencies(self, managers: list[str]) -> int:
        """Count declared dependencies for every detected ecosystem."""
        ecosystems = {MANAGER_ECOSYSTEMS[m] for m in managers if m in MANAGER_ECOSYSTEMS}
        return sum(len(collect_dependencies(self.repo_path, eco)) for eco in sorted(ecosystems))

    def _run_audit(
        self,
        auditor: ToolAdapter[list[Vulnerability]],
        result: SecurityResult,
        cancel_token: CancellationToken | None,
    ) -> list[Vulnerability]:
        try:
            vulnerabilities = auditor.execute(self.repo_path, cancel_token)
        except (ToolNotAvailableError, ToolExecutionError) as e:
            result.warnings.append(str(e))
            logger.warning("%s", e)
            return []
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # JSON parsed but not in the shape the adapter expects
            message = f"{auditor.name} output could not be parsed: {e}"
            result.warnings.append(message)
            logger.warning(message)
            return []
        logger.debug("%s reported %d vulnerabilities", auditor.name, len(vulnerabilities))
        return vulnerabilities
