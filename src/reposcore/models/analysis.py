"""Analysis result entities.

One dataclass per stage output, aggregated by ``AnalysisResult``:
- Inventory: FileRecord, LanguageStats, InventoryResult
- Static analysis: LintIssue, ComplexitySummary, StaticAnalysisResult
- Security: Vulnerability, SecretMatch, SecurityResult
- Coverage: CoverageMetric, CoverageReport
- Documentation: ReadmeScore, ApiDocsInfo, ExamplesInfo, DocumentationScore
- Ownership: AuthorShare, OwnershipRecord
- Licenses: LicenseInfo, DependencyLicense, LicenseSummary, LicenseReport
- Signals: TestSignals, CISignals

Absent optional reports (coverage, licenses) are ``None``: "could not
determine" is never stored as a measured zero.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any


class AnalysisStatus(Enum):
    """Status of an analysis operation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


LINT_SEVERITIES = ("error", "warning", "info")
VULNERABILITY_SEVERITIES = ("critical", "high", "medium", "low")
RISK_LEVELS = ("low", "medium", "high")


@dataclass
class AnalysisError:
    """Non-fatal error encountered during analysis.

    Attributes:
        component: Stage or tool that failed (inventory, eslint, npm-audit, ...)
        message: Error description
        file_path: File that caused the error (if applicable)
        recoverable: Whether analysis continued after this error
    """

    component: str
    message: str
    file_path: str | None = None
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "file_path": self.file_path,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Inventory
# =============================================================================


@dataclass(frozen=True)
class FileRecord:
    """Single file found by the inventory walk.

    Attributes:
        path: Path relative to the repository root (POSIX separators)
        size: Size in bytes
        language: Detected language, None if unclassified
        is_binary: Binary by extension or lockfile name
        modified_at: Last modification time (UTC)
    """

    path: str
    size: int
    language: str | None
    is_binary: bool
    modified_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "size": self.size,
            "language": self.language,
            "is_binary": self.is_binary,
            "modified_at": self.modified_at.isoformat(),
        }


@dataclass
class LanguageStats:
    """Per-language totals derived from FileRecords."""

    language: str
    files: int = 0
    lines: int = 0
    bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "language": self.language,
            "files": self.files,
            "lines": self.lines,
            "bytes": self.bytes,
        }


@dataclass
class InventoryResult:
    """Output of the inventory stage.

    Attributes:
        files: Every non-ignored file
        languages: Language statistics sorted by line count, descending
        package_managers: Detected package managers, de-duplicated
        total_files: Number of files
        total_lines: Estimated line total
        total_bytes: Byte total
    """

    files: list[FileRecord] = field(default_factory=list)
    languages: list[LanguageStats] = field(default_factory=list)
    package_managers: list[str] = field(default_factory=list)
    total_files: int = 0
    total_lines: int = 0
    total_bytes: int = 0

    @property
    def language_names(self) -> list[str]:
        return [stats.language for stats in self.languages]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (file list omitted)."""
        return {
            "languages": [stats.to_dict() for stats in self.languages],
            "package_managers": self.package_managers,
            "total_files": self.total_files,
            "total_lines": self.total_lines,
            "total_bytes": self.total_bytes,
        }


# =============================================================================
# Static analysis
# =============================================================================


@dataclass
class LintIssue:
    """Normalized diagnostic from any linter or SARIF producer.

    Attributes:
        file: File path relative to the repository root
        line: 1-based line (0 if unknown)
        column: 1-based column (0 if unknown)
        severity: One of error, warning, info
        message: Diagnostic text
        rule: Rule identifier
        source: Originating tool name
    """

    file: str
    line: int
    column: int
    severity: str
    message: str
    rule: str
    source: str

    def __post_init__(self) -> None:
        if self.severity not in LINT_SEVERITIES:
            raise ValueError(f"Invalid lint severity: {self.severity}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
            "message": self.message,
            "rule": self.rule,
            "source": self.source,
        }


@dataclass
class ComplexitySummary:
    """Complexity values extracted from complexity-flagged lint issues."""

    average: float = 0.0
    max: int = 0
    distribution: dict[str, int] = field(
        default_factory=lambda: {"low": 0, "medium": 0, "high": 0}
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "average": self.average,
            "max": self.max,
            "distribution": dict(self.distribution),
        }


@dataclass
class StaticAnalysisResult:
    """Output of the static analysis stage."""

    lint_issues: list[LintIssue] = field(default_factory=list)
    complexity: ComplexitySummary = field(default_factory=ComplexitySummary)
    warnings: list[str] = field(default_factory=list)

    def count_by_severity(self) -> dict[str, int]:
        counts = {severity: 0 for severity in LINT_SEVERITIES}
        for issue in self.lint_issues:
            counts[issue.severity] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "lint_issues": [issue.to_dict() for issue in self.lint_issues],
            "by_severity": self.count_by_severity(),
            "complexity": self.complexity.to_dict(),
            "warnings": self.warnings,
        }


# =============================================================================
# Security
# =============================================================================


@dataclass
class Vulnerability:
    """One advisory affecting one package.

    Attributes:
        id: Advisory identifier
        severity: One of critical, high, medium, low
        title: Short advisory title
        description: Advisory text
        package: Affected package name
        version: Affected version or range
        fixed_in: First fixed version (if known)
        cve: CVE identifier (if known)
        source: Audit tool that reported it
    """

    id: str
    severity: str
    title: str
    description: str
    package: str
    version: str
    fixed_in: str | None = None
    cve: str | None = None
    source: str = ""

    def __post_init__(self) -> None:
        if self.severity not in VULNERABILITY_SEVERITIES:
            raise ValueError(f"Invalid vulnerability severity: {self.severity}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "package": self.package,
            "version": self.version,
            "fixed_in": self.fixed_in,
            "cve": self.cve,
            "source": self.source,
        }


@dataclass(frozen=True)
class SecretMatch:
    """Credential-shaped string found in a text file.

    ``value`` only ever holds the redacted form produced by the scanner.
    """

    file: str
    line: int
    type: str
    confidence: float
    value: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "file": self.file,
            "line": self.line,
            "type": self.type,
            "confidence": self.confidence,
            "value": self.value,
        }


@dataclass
class SecurityResult:
    """Output of the security stage."""

    vulnerabilities: list[Vulnerability] = field(default_factory=list)
    secrets: list[SecretMatch] = field(default_factory=list)
    dependency_count: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "secrets": [s.to_dict() for s in self.secrets],
            "dependency_count": self.dependency_count,
            "warnings": self.warnings,
        }


# =============================================================================
# Coverage
# =============================================================================


@dataclass
class CoverageMetric:
    """Covered/total pair with its percentage."""

    total: int
    covered: int
    percentage: float

    @classmethod
    def from_counts(cls, total: int, covered: int) -> "CoverageMetric":
        percentage = (covered / total) * 100 if total > 0 else 0.0
        return cls(total=total, covered=covered, percentage=percentage)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"total": self.total, "covered": self.covered, "percentage": self.percentage}


@dataclass
class CoverageReport:
    """Overall coverage for one repository.

    Attributes:
        total: Total lines (or 100 for a badge-derived report)
        covered: Covered lines
        percentage: Covered percentage in [0, 100]
        branches: Branch breakdown (if reported)
        functions: Function breakdown (if reported)
        lines: Line breakdown (if reported)
        by_file: Per-file breakdown keyed by path
        source_format: Parser that produced the report
    """

    total: int
    covered: int
    percentage: float
    branches: CoverageMetric | None = None
    functions: CoverageMetric | None = None
    lines: CoverageMetric | None = None
    by_file: dict[str, CoverageMetric] = field(default_factory=dict)
    source_format: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "covered": self.covered,
            "percentage": self.percentage,
            "branches": self.branches.to_dict() if self.branches else None,
            "functions": self.functions.to_dict() if self.functions else None,
            "lines": self.lines.to_dict() if self.lines else None,
            "by_file": {path: metric.to_dict() for path, metric in self.by_file.items()},
            "source_format": self.source_format,
        }


# =============================================================================
# Documentation
# =============================================================================


@dataclass
class ReadmeScore:
    """Heuristic README completeness score and section flags."""

    exists: bool = False
    path: str | None = None
    score: int = 0
    has_purpose: bool = False
    has_setup: bool = False
    has_run: bool = False
    has_test: bool = False
    has_env: bool = False
    has_license: bool = False
    has_contributing: bool = False
    has_api_docs: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "exists": self.exists,
            "path": self.path,
            "score": self.score,
            "has_purpose": self.has_purpose,
            "has_setup": self.has_setup,
            "has_run": self.has_run,
            "has_test": self.has_test,
            "has_env": self.has_env,
            "has_license": self.has_license,
            "has_contributing": self.has_contributing,
            "has_api_docs": self.has_api_docs,
        }


@dataclass
class ApiDocsInfo:
    """Detected API documentation artifact.

    Attributes:
        exists: Any API documentation found
        type: swagger, sphinx, jsdoc, docstring or other
        coverage: Estimated documentation coverage in [0, 100]
    """

    exists: bool = False
    type: str | None = None
    coverage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"exists": self.exists, "type": self.type, "coverage": self.coverage}


@dataclass
class ExamplesInfo:
    exists: bool = False
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"exists": self.exists, "count": self.count}


@dataclass
class DocumentationScore:
    """Output of the documentation stage."""

    readme: ReadmeScore = field(default_factory=ReadmeScore)
    api_docs: ApiDocsInfo = field(default_factory=ApiDocsInfo)
    examples: ExamplesInfo = field(default_factory=ExamplesInfo)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "readme": self.readme.to_dict(),
            "api_docs": self.api_docs.to_dict(),
            "examples": self.examples.to_dict(),
        }


# =============================================================================
# Ownership
# =============================================================================


@dataclass
class AuthorShare:
    """One author's contribution within a directory."""

    author: str
    lines: int
    percentage: float
    commits: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "author": self.author,
            "lines": self.lines,
            "percentage": self.percentage,
            "commits": self.commits,
        }


@dataclass
class OwnershipRecord:
    """Per-directory blame aggregate.

    Attributes:
        path: Directory path relative to the repository root ("." for root)
        authors: Author shares, largest line count first
        total_lines: Attributed lines in the directory
        total_commits: Sum of the authors' commit counts
    """

    path: str
    authors: list[AuthorShare] = field(default_factory=list)
    total_lines: int = 0
    total_commits: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "authors": [a.to_dict() for a in self.authors],
            "total_lines": self.total_lines,
            "total_commits": self.total_commits,
        }


# =============================================================================
# Licenses
# =============================================================================


@dataclass
class LicenseInfo:
    """A license classified against the known-license table.

    Attributes:
        name: Display name ("Unknown" when unmatched)
        spdx_id: SPDX identifier (if known)
        is_osi_approved: OSI approval
        is_fsf_approved: FSF approval
        risk_level: low, medium or high
        restrictions: Restriction tags such as "copyleft"
    """

    name: str
    spdx_id: str | None = None
    is_osi_approved: bool = False
    is_fsf_approved: bool = False
    risk_level: str = "high"
    restrictions: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.risk_level not in RISK_LEVELS:
            raise ValueError(f"Invalid risk level: {self.risk_level}")

    @property
    def is_unknown(self) -> bool:
        return self.spdx_id is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "spdx_id": self.spdx_id,
            "is_osi_approved": self.is_osi_approved,
            "is_fsf_approved": self.is_fsf_approved,
            "risk_level": self.risk_level,
            "restrictions": list(self.restrictions),
        }


@dataclass
class DependencyLicense:
    package: str
    version: str
    license: LicenseInfo
    is_direct: bool = True
    ecosystem: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "package": self.package,
            "version": self.version,
            "license": self.license.to_dict(),
            "is_direct": self.is_direct,
            "ecosystem": self.ecosystem,
        }


@dataclass
class LicenseSummary:
    """Totals and compliance issues over all dependency licenses."""

    total_dependencies: int = 0
    direct_dependencies: int = 0
    indirect_dependencies: int = 0
    risk_distribution: dict[str, int] = field(
        default_factory=lambda: {"low": 0, "medium": 0, "high": 0}
    )
    license_distribution: dict[str, int] = field(default_factory=dict)
    compliance_issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_dependencies": self.total_dependencies,
            "direct_dependencies": self.direct_dependencies,
            "indirect_dependencies": self.indirect_dependencies,
            "risk_distribution": dict(self.risk_distribution),
            "license_distribution": dict(self.license_distribution),
            "compliance_issues": list(self.compliance_issues),
        }


@dataclass
class LicenseReport:
    """Output of the license stage."""

    project_license: LicenseInfo | None = None
    dependencies: list[DependencyLicense] = field(default_factory=list)
    summary: LicenseSummary = field(default_factory=LicenseSummary)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "project_license": self.project_license.to_dict() if self.project_license else None,
            "dependencies": [d.to_dict() for d in self.dependencies],
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Test and CI signals
# =============================================================================


@dataclass
class TestSignals:
    """Presence of a test suite in the working copy."""

    __test__ = False  # not a pytest class

    has_tests: bool = False
    test_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"has_tests": self.has_tests, "test_files": self.test_files}


@dataclass
class CISignals:
    """Presence of continuous integration configuration."""

    has_ci: bool = False
    providers: list[str] = field(default_factory=list)
    config_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "has_ci": self.has_ci,
            "providers": self.providers,
            "config_files": self.config_files,
        }


# =============================================================================
# Aggregate
# =============================================================================


@dataclass
class AnalysisResult:
    """Aggregated analysis data for one repository.

    Built by the pipeline from each stage's return value and handed to the
    scoring engine once all stages have completed or degraded.

    Attributes:
        repository_path: Path to the analyzed working copy
        repository_name: Name of the repository
        timestamp: Analysis execution timestamp (UTC)
        status: Current analysis status
        inventory: Inventory stage output
        static_analysis: Static analysis stage output
        security: Security stage output
        documentation: Documentation stage output
        ownership: Ownership records, one per directory
        coverage: Coverage report, None when no coverage data exists
        licenses: License report, None when it could not be determined
        tests: Test suite signals
        ci: CI configuration signals
        errors: Non-fatal errors encountered during analysis
        tool_versions: External tool versions used (for reproducibility)
    """

    repository_path: Path
    repository_name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: AnalysisStatus = AnalysisStatus.PENDING
    inventory: InventoryResult = field(default_factory=InventoryResult)
    static_analysis: StaticAnalysisResult = field(default_factory=StaticAnalysisResult)
    security: SecurityResult = field(default_factory=SecurityResult)
    documentation: DocumentationScore = field(default_factory=DocumentationScore)
    ownership: list[OwnershipRecord] = field(default_factory=list)
    coverage: CoverageReport | None = None
    licenses: LicenseReport | None = None
    tests: TestSignals = field(default_factory=TestSignals)
    ci: CISignals = field(default_factory=CISignals)
    errors: list[AnalysisError] = field(default_factory=list)
    tool_versions: dict[str, str] = field(default_factory=dict)

    def add_error(self, error: AnalysisError) -> None:
        """Add an analysis error."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Check if any errors were recorded."""
        return len(self.errors) > 0

    def get_errors_by_component(self, component: str) -> list[AnalysisError]:
        """Get errors for a specific component."""
        return [e for e in self.errors if e.component == component]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization and rendering."""
        return {
            "repository_path": str(self.repository_path),
            "repository_name": self.repository_name,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "inventory": self.inventory.to_dict(),
            "static_analysis": self.static_analysis.to_dict(),
            "security": self.security.to_dict(),
            "documentation": self.documentation.to_dict(),
            "ownership": [record.to_dict() for record in self.ownership],
            "coverage": self.coverage.to_dict() if self.coverage else None,
            "licenses": self.licenses.to_dict() if self.licenses else None,
            "tests": self.tests.to_dict(),
            "ci": self.ci.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
            "tool_versions": self.tool_versions,
        }
