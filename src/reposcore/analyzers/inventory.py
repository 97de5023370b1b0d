"""Repository inventory.

Walks the working copy, classifies every file by language and binary-ness,
detects package managers from marker files, and aggregates per-language
statistics.

Line counts are an approximation: ``ceil(size / 50)`` for text files and 0
for binary files. Files are not read, so counts are not exact.
"""

import logging
import math
import os
from collections import defaultdict
from datetime import UTC, datetime
from pathlib import Path

from reposcore.models import FileRecord, InventoryResult, LanguageStats
from reposcore.utils.process import CancellationToken

logger = logging.getLogger(__name__)

# Directories never descended into, at any depth
IGNORED_DIRS = frozenset(
    {
        ".git",
        "node_modules",
        "dist",
        "build",
        "target",
        "__pycache__",
        ".pytest_cache",
        "venv",
        ".venv",
        "env",
        ".env",
        "coverage",
        ".nyc_output",
        ".next",
        ".nuxt",
        "vendor",
        ".gradle",
        ".mvn",
    }
)

LANGUAGE_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "typescript": (".ts", ".tsx", ".mts", ".cts"),
    "python": (".py", ".pyi", ".pyw"),
    "java": (".java",),
    "csharp": (".cs",),
    "go": (".go",),
    "rust": (".rs",),
    "php": (".php", ".phtml"),
    "ruby": (".rb",),
    "swift": (".swift",),
    "kotlin": (".kt", ".kts"),
    "cpp": (".cpp", ".cc", ".cxx", ".c++"),
    "c": (".c", ".h"),
    "html": (".html", ".htm"),
    "css": (".css", ".scss", ".sass", ".less"),
    "json": (".json",),
    "yaml": (".yml", ".yaml"),
    "xml": (".xml",),
    "markdown": (".md", ".markdown"),
    "shell": (".sh", ".bash", ".zsh", ".fish"),
    "powershell": (".ps1", ".psm1"),
}

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ext: language for language, extensions in LANGUAGE_EXTENSIONS.items() for ext in extensions
}

SPECIAL_FILENAMES: dict[str, str] = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
    "Rakefile": "ruby",
    "Gemfile": "ruby",
    "Cargo.toml": "rust",
    "go.mod": "go",
    "pom.xml": "java",
    "build.gradle": "java",
}

BINARY_EXTENSIONS = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico",
        ".pdf", ".zip", ".tar", ".gz", ".rar", ".7z",
        ".exe", ".dll", ".so", ".dylib", ".bin",
        ".mp4", ".mp3", ".wav", ".avi", ".mov",
        ".woff", ".woff2", ".ttf", ".eot",
    }
)

# Marker file -> package manager, in detection order
PACKAGE_MANAGER_MARKERS: tuple[tuple[str, str], ...] = (
    ("package.json", "npm"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("requirements.txt", "pip"),
    ("pyproject.toml", "pip"),
    ("Pipfile", "pip"),
    ("Cargo.toml", "cargo"),
    ("go.mod", "go"),
    ("pom.xml", "maven"),
    ("build.gradle", "gradle"),
    ("composer.json", "composer"),
    ("Gemfile", "bundler"),
)

CHARS_PER_LINE = 50


def detect_language(path: Path) -> str | None:
    """Classify a file by extension, then by special filename."""
    language = EXTENSION_TO_LANGUAGE.get(path.suffix.lower())
    if language is not None:
        return language
    return SPECIAL_FILENAMES.get(path.name)


def is_binary(path: Path) -> bool:
    """Binary by extension, or a lockfile by name."""
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return True
    return "lock" in path.name.lower()


def estimate_lines(record: FileRecord) -> int:
    """Approximate line count: ceil(size / 50), or 0 for binary files."""
    if record.is_binary:
        return 0
    return math.ceil(record.size / CHARS_PER_LINE)


def detect_package_managers(repo_path: Path) -> list[str]:
    """Detect package managers from root marker files, de-duplicated."""
    managers: list[str] = []
    for marker, manager in PACKAGE_MANAGER_MARKERS:
        if (repo_path / marker).exists() and manager not in managers:
            managers.append(manager)
    return managers


class InventoryAnalyzer:
    """Builds the file inventory for a working copy."""

    def __init__(self, repo_path: Path) -> None:
        """Initialize the analyzer.

        Args:
            repo_path: Path to repository root
        """
        self.repo_path = repo_path

    def analyze(self, cancel_token: CancellationToken | None = None) -> InventoryResult:
        """Walk the tree and aggregate statistics.

        Args:
            cancel_token: Optional job cancellation token

        Returns:
            InventoryResult with files, language stats and totals
        """
        files = list(self._walk(cancel_token))
        languages = self._language_stats(files)

        result = InventoryResult(
            files=files,
            languages=languages,
            package_managers=detect_package_managers(self.repo_path),
            total_files=len(files),
            total_lines=sum(estimate_lines(f) for f in files),
            total_bytes=sum(f.size for f in files),
        )
        logger.info(
            "Inventory: %d files, %d languages, package managers: %s",
            result.total_files,
            len(languages),
            ", ".join(result.package_managers) or "none",
        )
        return result

    def _walk(self, cancel_token: CancellationToken | None = None):
        for dirpath, dirnames, filenames in os.walk(self.repo_path, onerror=self._log_walk_error):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            # Pruned in place: ignored directories are never entered
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)

            for filename in sorted(filenames):
                full_path = Path(dirpath) / filename
                try:
                    stat = full_path.stat()
                except OSError as e:
                    logger.warning("Could not stat %s: %s", full_path, e)
                    continue
                if not full_path.is_file():
                    continue

                yield FileRecord(
                    path=full_path.relative_to(self.repo_path).as_posix(),
                    size=stat.st_size,
                    language=detect_language(full_path),
                    is_binary=is_binary(full_path),
                    modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                )

    @staticmethod
    def _log_walk_error(error: OSError) -> None:
        logger.warning("Could not read directory %s: %s", error.filename, error)

    @staticmethod
    def _language_stats(files: list[FileRecord]) -> list[LanguageStats]:
        stats: dict[str, LanguageStats] = defaultdict(lambda: LanguageStats(language=""))
        for record in files:
            if record.language is None:
                continue
            entry = stats[record.language]
            entry.language = record.language
            entry.files += 1
            entry.lines += estimate_lines(record)
            entry.bytes += record.size

        # Ties broken by name
        return sorted(stats.values(), key=lambda s: (-s.lines, s.language))
