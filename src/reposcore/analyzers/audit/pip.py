"""pip-audit adapter for Python projects."""

from pathlib import Path
from typing import Any

from reposcore.analyzers.audit.severity import map_severity
from reposcore.analyzers.base import ToolAdapter, parse_json_output
from reposcore.models import Vulnerability
from reposcore.utils.process import CancellationToken

PIP_SEVERITY = {
    "critical": "critical",
    "high": "high",
    "medium": "medium",
    "moderate": "medium",
    "low": "low",
}


class PipAuditAdapter(ToolAdapter[list[Vulnerability]]):
    """Audit adapter using ``pip-audit -f json``.

    Audits requirements.txt when present, otherwise the project directory
    (pyproject.toml). pip-audit exits 1 when it finds vulnerabilities.
    """

    executable = "pip-audit"
    ecosystems = ("pip", "poetry")

    def __init__(self, name: str = "pip-audit", timeout: float = 60.0) -> None:
        super().__init__(name=name, capability="audit", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[Vulnerability]:
        """Run pip-audit against the project's requirements."""
        if (input_path / "requirements.txt").is_file():
            target = ["-r", "requirements.txt"]
        else:
            target = ["."]
        result = self.run(
            ["pip-audit", "-f", "json", "--progress-spinner", "off", *target],
            cwd=input_path,
            cancel_token=cancel_token,
        )
        return self.parse(parse_json_output(self.name, result) or {})

    def parse(self, data: dict[str, Any] | list[dict[str, Any]]) -> list[Vulnerability]:
        """Convert pip-audit JSON to Vulnerabilities.

        Accepts both the current ``{"dependencies": [...]}`` document and
        the bare list older releases emit.
        """
        dependencies = data.get("dependencies", []) if isinstance(data, dict) else data
        vulnerabilities = []
        for dep in dependencies:
            for vuln in dep.get("vulns") or []:
                aliases = vuln.get("aliases") or []
                cve = next((a for a in [vuln.get("id"), *aliases] if str(a).startswith("CVE-")), None)
                fix_versions = vuln.get("fix_versions") or []
                vulnerabilities.append(
                    Vulnerability(
                        id=vuln.get("id") or f"{dep.get('name')}-unknown",
                        severity=map_severity(vuln.get("severity"), PIP_SEVERITY),
                        title=f"{vuln.get('id', 'Advisory')} in {dep.get('name')}",
                        description=vuln.get("description") or "No description available",
                        package=dep.get("name", "unknown"),
                        version=dep.get("version") or "unknown",
                        fixed_in=fix_versions[0] if fix_versions else None,
                        cve=cve,
                        source=self.name,
                    )
                )
        return vulnerabilities
