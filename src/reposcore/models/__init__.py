"""Reposcore data models.

This module exports the core entities used throughout the application:
- Repository: Working copy being analyzed
- AnalysisResult: Aggregated stage outputs for one repository
- AnalysisError: Non-fatal errors encountered during analysis
- ScoreResult / SubScore: Scoring engine output
"""

from reposcore.models.analysis import (
    AnalysisError,
    AnalysisResult,
    AnalysisStatus,
    ApiDocsInfo,
    AuthorShare,
    CISignals,
    ComplexitySummary,
    CoverageMetric,
    CoverageReport,
    DependencyLicense,
    DocumentationScore,
    ExamplesInfo,
    FileRecord,
    InventoryResult,
    LanguageStats,
    LicenseInfo,
    LicenseReport,
    LicenseSummary,
    LintIssue,
    OwnershipRecord,
    ReadmeScore,
    SecretMatch,
    SecurityResult,
    StaticAnalysisResult,
    TestSignals,
    Vulnerability,
)
from reposcore.models.repository import Repository, RepositoryError
from reposcore.models.score import SCORE_DIMENSIONS, ScoreResult, SubScore

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "AnalysisStatus",
    "ApiDocsInfo",
    "AuthorShare",
    "CISignals",
    "ComplexitySummary",
    "CoverageMetric",
    "CoverageReport",
    "DependencyLicense",
    "DocumentationScore",
    "ExamplesInfo",
    "FileRecord",
    "InventoryResult",
    "LanguageStats",
    "LicenseInfo",
    "LicenseReport",
    "LicenseSummary",
    "LintIssue",
    "OwnershipRecord",
    "ReadmeScore",
    "Repository",
    "RepositoryError",
    "SCORE_DIMENSIONS",
    "ScoreResult",
    "SecretMatch",
    "SecurityResult",
    "StaticAnalysisResult",
    "SubScore",
    "TestSignals",
    "Vulnerability",
]
