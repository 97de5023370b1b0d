"""cargo-audit adapter for Rust projects."""

from pathlib import Path
from typing import Any

from reposcore.analyzers.audit.severity import map_severity
from reposcore.analyzers.base import ToolAdapter, parse_json_output
from reposcore.models import Vulnerability
from reposcore.utils.process import CancellationToken

CARGO_SEVERITY = {
    "critical": "critical",
    "high": "high",
    "medium": "medium",
    "low": "low",
    "none": "low",
}


class CargoAuditAdapter(ToolAdapter[list[Vulnerability]]):
    """Audit adapter using ``cargo audit --json``."""

    executable = "cargo"
    version_args = ("audit", "--version")
    ecosystems = ("cargo",)

    def __init__(self, name: str = "cargo-audit", timeout: float = 60.0) -> None:
        super().__init__(name=name, capability="audit", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[Vulnerability]:
        """Run cargo audit in the repository."""
        result = self.run(["cargo", "audit", "--json"], cwd=input_path, cancel_token=cancel_token)
        return self.parse(parse_json_output(self.name, result) or {})

    def parse(self, data: dict[str, Any]) -> list[Vulnerability]:
        """Convert cargo-audit JSON to Vulnerabilities."""
        found = data.get("vulnerabilities") or {}
        vulnerabilities = []
        for item in found.get("list") or []:
            advisory = item.get("advisory") or {}
            package = item.get("package") or {}
            patched = (item.get("versions") or {}).get("patched") or []
            aliases = advisory.get("aliases") or []
            cve = next((a for a in aliases if str(a).startswith("CVE-")), None)
            vulnerabilities.append(
                Vulnerability(
                    id=advisory.get("id") or f"{package.get('name')}-unknown",
                    severity=map_severity(advisory.get("severity"), CARGO_SEVERITY),
                    title=advisory.get("title") or f"Vulnerability in {package.get('name')}",
                    description=advisory.get("description") or "No description available",
                    package=package.get("name") or advisory.get("package", "unknown"),
                    version=package.get("version") or "unknown",
                    fixed_in=patched[0] if patched else None,
                    cve=cve,
                    source=self.name,
                )
            )
        return vulnerabilities
