"""npm audit adapter (npm, yarn and pnpm projects).

``npm audit --json`` (npm 7+) reports one entry per vulnerable package; its
``via`` list holds the advisory objects, or names of other vulnerable
packages for transitive entries. One Vulnerability is produced per
advisory per package.
"""

from pathlib import Path
from typing import Any

from reposcore.analyzers.audit.severity import map_severity
from reposcore.analyzers.base import ToolAdapter, parse_json_output
from reposcore.models import Vulnerability
from reposcore.utils.process import CancellationToken

NPM_SEVERITY = {
    "critical": "critical",
    "high": "high",
    "moderate": "medium",
    "medium": "medium",
    "low": "low",
    "info": "low",
}


class NpmAuditAdapter(ToolAdapter[list[Vulnerability]]):
    """Audit adapter using ``npm audit --json``."""

    executable = "npm"
    ecosystems = ("npm", "yarn", "pnpm")

    def __init__(self, name: str = "npm-audit", timeout: float = 60.0) -> None:
        super().__init__(name=name, capability="audit", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[Vulnerability]:
        """Run npm audit in the repository."""
        result = self.run(["npm", "audit", "--json"], cwd=input_path, cancel_token=cancel_token)
        return self.parse(parse_json_output(self.name, result) or {})

    def parse(self, data: dict[str, Any]) -> list[Vulnerability]:
        """Convert npm audit JSON to Vulnerabilities."""
        vulnerabilities = []
        for package, entry in (data.get("vulnerabilities") or {}).items():
            fix = entry.get("fixAvailable")
            fixed_in = fix.get("version") if isinstance(fix, dict) else None
            advisories = [via for via in entry.get("via") or [] if isinstance(via, dict)]

            if not advisories:
                # Vulnerable only through another package
                vulnerabilities.append(
                    Vulnerability(
                        id=f"{package}-{entry.get('severity', 'low')}",
                        severity=map_severity(entry.get("severity"), NPM_SEVERITY),
                        title=f"Vulnerability in {package}",
                        description="Vulnerable through: "
                        + ", ".join(str(via) for via in entry.get("via") or []),
                        package=package,
                        version=entry.get("range") or "unknown",
                        fixed_in=fixed_in,
                        source=self.name,
                    )
                )
                continue

            for advisory in advisories:
                url = advisory.get("url") or ""
                advisory_id = url.rstrip("/").rsplit("/", 1)[-1] if url else str(advisory.get("source", ""))
                cves = advisory.get("cves") or entry.get("cves") or []
                vulnerabilities.append(
                    Vulnerability(
                        id=advisory_id or f"{package}-{advisory.get('severity', 'low')}",
                        severity=map_severity(
                            advisory.get("severity") or entry.get("severity"), NPM_SEVERITY
                        ),
                        title=advisory.get("title") or f"Vulnerability in {package}",
                        description=advisory.get("overview") or url or "No description available",
                        package=package,
                        version=advisory.get("range") or entry.get("range") or "unknown",
                        fixed_in=fixed_in,
                        cve=cves[0] if cves else None,
                        source=self.name,
                    )
                )
        return vulnerabilities
