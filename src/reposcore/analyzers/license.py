"""License analysis.

Identifies the project's declared license and resolves every declared
dependency's license from its package registry (npm, PyPI, crates.io).
License strings are classified against a fixed table carrying risk tiers
and restriction tags. Unmatched strings and failed lookups both produce an
explicit ``Unknown`` license with high risk.
"""

import json
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from reposcore import __version__
from reposcore.analyzers.manifests import ManifestDependency, collect_dependencies, pinned_version
from reposcore.models import DependencyLicense, LicenseInfo, LicenseReport, LicenseSummary
from reposcore.utils.process import CancellationToken

logger = logging.getLogger(__name__)

LICENSE_FILES = (
    "LICENSE",
    "LICENSE.txt",
    "LICENSE.md",
    "LICENSE-MIT",
    "LICENSE-APACHE",
    "COPYING",
    "COPYING.txt",
)


@dataclass(frozen=True)
class KnownLicense:
    """Row of the known-license table.

    Attributes:
        spdx_id: SPDX identifier
        name: Display name
        is_osi_approved: OSI approval
        is_fsf_approved: FSF approval
        risk_level: low, medium or high
        restrictions: Restriction tags
        aliases: Lowercase substrings that identify the license in a short string
        phrases: Lowercase phrases that identify the license in full license text
    """

    spdx_id: str
    name: str
    is_osi_approved: bool
    is_fsf_approved: bool
    risk_level: str
    restrictions: tuple[str, ...]
    aliases: tuple[str, ...]
    phrases: tuple[str, ...]

    def to_info(self) -> LicenseInfo:
        return LicenseInfo(
            name=self.name,
            spdx_id=self.spdx_id,
            is_osi_approved=self.is_osi_approved,
            is_fsf_approved=self.is_fsf_approved,
            risk_level=self.risk_level,
            restrictions=list(self.restrictions),
        )


# Match order matters: LGPL before GPL, and GPL-2.0 before the GPL-3.0 catch-all
KNOWN_LICENSES: tuple[KnownLicense, ...] = (
    KnownLicense(
        spdx_id="LGPL-3.0",
        name="GNU Lesser General Public License v3.0",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="medium",
        restrictions=("Copyleft for library modifications",),
        aliases=("lgpl", "lesser general public"),
        phrases=("gnu lesser general public license",),
    ),
    KnownLicense(
        spdx_id="GPL-2.0",
        name="GNU General Public License v2.0",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="high",
        restrictions=("Copyleft", "Must distribute source code"),
        aliases=("gpl-2", "gplv2", "gpl 2", "gpl2"),
        phrases=("gnu general public license version 2", "version 2, june 1991"),
    ),
    KnownLicense(
        spdx_id="GPL-3.0",
        name="GNU General Public License v3.0",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="high",
        restrictions=("Copyleft", "Must distribute source code"),
        aliases=("gpl", "general public license"),
        phrases=("gnu general public license",),
    ),
    KnownLicense(
        spdx_id="MIT",
        name="MIT License",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="low",
        restrictions=(),
        aliases=("mit",),
        phrases=("mit license", "permission is hereby granted, free of charge"),
    ),
    KnownLicense(
        spdx_id="Apache-2.0",
        name="Apache License 2.0",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="low",
        restrictions=(),
        aliases=("apache",),
        phrases=("apache license", "apache software foundation"),
    ),
    KnownLicense(
        spdx_id="BSD-3-Clause",
        name="BSD 3-Clause License",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="low",
        restrictions=(),
        aliases=("bsd",),
        phrases=("bsd license", "redistribution and use in source and binary forms"),
    ),
    KnownLicense(
        spdx_id="MPL-2.0",
        name="Mozilla Public License 2.0",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="medium",
        restrictions=("File-level copyleft",),
        aliases=("mpl", "mozilla public"),
        phrases=("mozilla public license",),
    ),
    KnownLicense(
        spdx_id="ISC",
        name="ISC License",
        is_osi_approved=True,
        is_fsf_approved=True,
        risk_level="low",
        restrictions=(),
        aliases=("isc",),
        phrases=("isc license",),
    ),
    KnownLicense(
        spdx_id="Unlicense",
        name="The Unlicense",
        is_osi_approved=True,
        is_fsf_approved=False,
        risk_level="low",
        restrictions=(),
        aliases=("unlicense",),
        phrases=("free and unencumbered software released into the public domain",),
    ),
)

_BY_SPDX = {known.spdx_id.lower(): known for known in KNOWN_LICENSES}


def unknown_license() -> LicenseInfo:
    return LicenseInfo(name="Unknown", risk_level="high", restrictions=["Unknown license"])


def identify_license(value: str | None) -> LicenseInfo:
    """Classify a short license string (SPDX id, manifest field, classifier).

    An exact SPDX id wins; otherwise the first table row whose id, name or
    alias occurs in the string, case-insensitively.
    """
    if not value or not value.strip():
        return unknown_license()
    normalized = value.strip().lower()
    exact = _BY_SPDX.get(normalized)
    if exact is not None:
        return exact.to_info()

    for known in KNOWN_LICENSES:
        candidates = (known.spdx_id.lower(), known.name.lower(), *known.aliases)
        if any(candidate in normalized for candidate in candidates):
            return known.to_info()
    return unknown_license()


def identify_license_text(content: str) -> LicenseInfo:
    """Classify full license text by its characteristic phrasing."""
    lowered = " ".join(content.lower().split())
    for known in KNOWN_LICENSES:
        if any(phrase in lowered for phrase in known.phrases):
            return known.to_info()
    return unknown_license()


def _manifest_license_field(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        # package.json {"type": ...}, pyproject {"text": ...}
        for key in ("type", "text"):
            if isinstance(value.get(key), str):
                return value[key]
    return None


def license_from_package_json(path: Path) -> str | None:
    data = json.loads(path.read_text(encoding="utf-8"))
    return _manifest_license_field(data.get("license"))


def license_from_pyproject(path: Path) -> str | None:
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    project_license = _manifest_license_field(data.get("project", {}).get("license"))
    if project_license:
        return project_license
    return _manifest_license_field(data.get("tool", {}).get("poetry", {}).get("license"))


def license_from_cargo(path: Path) -> str | None:
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    return _manifest_license_field(data.get("package", {}).get("license"))


MANIFEST_LICENSE_READERS = (
    ("package.json", license_from_package_json),
    ("pyproject.toml", license_from_pyproject),
    ("Cargo.toml", license_from_cargo),
)


def summarize_licenses(dependencies: list[DependencyLicense]) -> LicenseSummary:
    """Totals, risk and license distributions, and compliance issues."""
    summary = LicenseSummary(
        total_dependencies=len(dependencies),
        direct_dependencies=sum(1 for d in dependencies if d.is_direct),
    )
    summary.indirect_dependencies = summary.total_dependencies - summary.direct_dependencies

    for dep in dependencies:
        summary.risk_distribution[dep.license.risk_level] += 1
        name = dep.license.name
        summary.license_distribution[name] = summary.license_distribution.get(name, 0) + 1

    high_risk = summary.risk_distribution["high"]
    copyleft = sum(1 for d in dependencies if "GPL" in (d.license.spdx_id or ""))
    unknown = sum(1 for d in dependencies if d.license.is_unknown)

    if high_risk:
        summary.compliance_issues.append(f"{high_risk} dependencies with high-risk licenses")
    if copyleft:
        summary.compliance_issues.append(f"{copyleft} GPL-licensed dependencies (copyleft)")
    if unknown:
        summary.compliance_issues.append(f"{unknown} dependencies with unknown licenses")
    return summary


class LicenseMetadataClient:
    """Fetches declared license strings from public package registries.

    Lookups raise ``httpx.HTTPError`` on transport or HTTP failures; the
    analyzer maps those to an Unknown license.
    """

    NPM_URL = "https://registry.npmjs.org"
    PYPI_URL = "https://pypi.org/pypi"
    CRATES_URL = "https://crates.io/api/v1/crates"

    def __init__(self, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self.client = client or httpx.Client(
            timeout=timeout,
            headers={"User-Agent": f"reposcore/{__version__}"},
            follow_redirects=True,
        )

    def __enter__(self) -> "LicenseMetadataClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def lookup(self, name: str, version: str | None, ecosystem: str) -> str | None:
        """Declared license for one package version (latest when version is None)."""
        if ecosystem == "npm":
            return self.npm_license(name, version)
        if ecosystem == "pypi":
            return self.pypi_license(name, version)
        if ecosystem == "cargo":
            return self.crates_license(name, version)
        raise ValueError(f"Unsupported ecosystem: {ecosystem}")

    def npm_license(self, name: str, version: str | None) -> str | None:
        response = self.client.get(f"{self.NPM_URL}/{name}/{version or 'latest'}")
        response.raise_for_status()
        data = response.json()
        found = _manifest_license_field(data.get("license"))
        if found:
            return found
        # Legacy "licenses": [{"type": ...}]
        legacy = data.get("licenses")
        if isinstance(legacy, list) and legacy:
            return _manifest_license_field(legacy[0])
        return None

    def pypi_license(self, name: str, version: str | None) -> str | None:
        url = f"{self.PYPI_URL}/{name}/{version}/json" if version else f"{self.PYPI_URL}/{name}/json"
        response = self.client.get(url)
        response.raise_for_status()
        info = response.json().get("info") or {}

        for key in ("license_expression", "license"):
            value = info.get(key)
            # Some projects paste the whole license text into this field
            if isinstance(value, str) and value.strip() and len(value) < 200:
                return value.strip()
        for classifier in info.get("classifiers") or []:
            if isinstance(classifier, str) and classifier.startswith("License ::"):
                return classifier.split("::")[-1].strip()
        return None

    def crates_license(self, name: str, version: str | None) -> str | None:
        if version:
            response = self.client.get(f"{self.CRATES_URL}/{name}/{version}")
            response.raise_for_status()
            return (response.json().get("version") or {}).get("license")

        response = self.client.get(f"{self.CRATES_URL}/{name}")
        response.raise_for_status()
        versions = response.json().get("versions") or []
        return versions[0].get("license") if versions else None


class LicenseAnalyzer:
    """Project and dependency license classification for one working copy."""

    def __init__(
        self,
        repo_path: Path,
        client: LicenseMetadataClient | None = None,
        resolve_dependencies: bool = True,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the analyzer.

        Args:
            repo_path: Path to repository root
            client: Registry client; one is created (and closed) per run if None
            resolve_dependencies: Query registries for dependency licenses
            timeout: Per-request timeout when creating a client
        """
        self.repo_path = repo_path
        self.client = client
        self.resolve_dependencies = resolve_dependencies
        self.timeout = timeout
        self.warnings: list[str] = []

    def analyze(self, cancel_token: CancellationToken | None = None) -> LicenseReport:
        """Build the license report.

        Args:
            cancel_token: Optional job cancellation token

        Returns:
            LicenseReport with project license, dependency licenses and summary
        """
        project_license = self.project_license()
        dependencies: list[DependencyLicense] = []

        if self.resolve_dependencies:
            declared = collect_dependencies(self.repo_path)
            if declared:
                client = self.client or LicenseMetadataClient(timeout=self.timeout)
                try:
                    dependencies = self.resolve(declared, client, cancel_token)
                finally:
                    if self.client is None:
                        client.close()

        report = LicenseReport(
            project_license=project_license,
            dependencies=dependencies,
            summary=summarize_licenses(dependencies),
        )
        logger.info(
            "Licenses: project %s, %d dependencies, %d compliance issue(s)",
            project_license.spdx_id if project_license and project_license.spdx_id else "unknown",
            len(dependencies),
            len(report.summary.compliance_issues),
        )
        return report

    def project_license(self) -> LicenseInfo | None:
        """License file text first, then manifest license fields."""
        for name in LICENSE_FILES:
            path = self.repo_path / name
            if not path.is_file():
                continue
            try:
                return identify_license_text(path.read_text(encoding="utf-8", errors="replace"))
            except OSError as e:
                logger.warning("Failed to read %s: %s", name, e)

        for name, reader in MANIFEST_LICENSE_READERS:
            path = self.repo_path / name
            if not path.is_file():
                continue
            try:
                declared = reader(path)
            except (OSError, ValueError, tomllib.TOMLDecodeError, AttributeError) as e:
                logger.debug("No license field in %s: %s", name, e)
                continue
            if declared:
                return identify_license(declared)
        return None

    def resolve(
        self,
        declared: list[ManifestDependency],
        client: LicenseMetadataClient,
        cancel_token: CancellationToken | None = None,
    ) -> list[DependencyLicense]:
        """Look up and classify each declared dependency."""
        resolved = []
        failures = 0
        for dep in declared:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            version = pinned_version(dep.version)
            try:
                license_info = identify_license(client.lookup(dep.name, version, dep.ecosystem))
            except (httpx.HTTPError, AttributeError, TypeError, ValueError) as e:
                failures += 1
                logger.debug("License lookup failed for %s: %s", dep.name, e)
                license_info = unknown_license()

            resolved.append(
                DependencyLicense(
                    package=dep.name,
                    version=dep.version,
                    license=license_info,
                    is_direct=True,
                    ecosystem=dep.ecosystem,
                )
            )

        if failures:
            message = f"License lookup failed for {failures} of {len(declared)} dependencies"
            self.warnings.append(message)
            logger.warning(message)
        return resolved
