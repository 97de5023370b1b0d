"""Code ownership from git blame.

Tracked files are grouped by directory; each file is blamed with
``--line-porcelain`` and lines are attributed to the author's email. Commit
counts come from ``git log`` per author and file, since blame only reports
the commit that currently owns each line.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from reposcore.models import AuthorShare, OwnershipRecord
from reposcore.utils.process import CancellationToken, run_tool

logger = logging.getLogger(__name__)

EMAIL_IN_BRACKETS = re.compile(r"<(.+?)>")
SHORTLOG_LINE = re.compile(r"^\s*(\d+)\s+(.+)$")

DEFAULT_BLAME_TIMEOUT = 10.0


def normalize_author(author: str) -> str:
    """Email from angle-bracket notation, otherwise the trimmed name."""
    match = EMAIL_IN_BRACKETS.search(author)
    if match:
        return match.group(1).strip()
    return author.strip().replace("<", "").replace(">", "")


def parse_blame_porcelain(output: str) -> dict[str, int]:
    """Count lines per author in ``git blame --line-porcelain`` output.

    The author is taken from ``author-mail`` when present, otherwise from
    ``author``. Content lines start with a tab.
    """
    counts: dict[str, int] = defaultdict(int)
    author = ""
    author_mail = ""
    for line in output.splitlines():
        if line.startswith("\t"):
            key = normalize_author(author_mail or author)
            if key:
                counts[key] += 1
            continue
        if line.startswith("author-mail "):
            author_mail = line[len("author-mail ") :]
        elif line.startswith("author "):
            author = line[len("author ") :]
            author_mail = ""
    return dict(counts)


def directory_of(path: str) -> str:
    parent = str(PurePosixPath(path).parent)
    return parent if parent else "."


@dataclass
class Contributor:
    """Repository-wide commit count for one author."""

    author: str
    commits: int
    percentage: float = 0.0


@dataclass
class _DirectoryStats:
    lines: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    commits: dict[str, int] = field(default_factory=lambda: defaultdict(int))


class OwnershipAnalyzer:
    """Aggregates blame data per directory."""

    def __init__(self, repo_path: Path, timeout: float = DEFAULT_BLAME_TIMEOUT) -> None:
        """Initialize the analyzer.

        Args:
            repo_path: Path to repository root
            timeout: Per-command git timeout in seconds
        """
        self.repo_path = repo_path
        self.timeout = timeout
        self.warnings: list[str] = []

    def analyze(self, cancel_token: CancellationToken | None = None) -> list[OwnershipRecord]:
        """Build one OwnershipRecord per directory with attributable lines.

        Args:
            cancel_token: Optional job cancellation token

        Returns:
            Records sorted by directory path
        """
        files = self.tracked_files(cancel_token)
        groups: dict[str, list[str]] = defaultdict(list)
        for path in files:
            groups[directory_of(path)].append(path)

        records = []
        for directory in sorted(groups):
            stats = _DirectoryStats()
            for path in groups[directory]:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                self._add_file(path, stats, cancel_token)

            record = self._build_record(directory, stats)
            if record is not None:
                records.append(record)

        logger.info("Ownership: %d directories, %d tracked files", len(records), len(files))
        return records

    def tracked_files(self, cancel_token: CancellationToken | None = None) -> list[str]:
        result = run_tool(["git", "ls-files"], self.repo_path, self.timeout * 3, cancel_token)
        if not result.ran or result.exit_code != 0:
            message = f"git ls-files failed: {result.describe_failure()}"
            self.warnings.append(message)
            logger.warning(message)
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]

    def blame(self, path: str, cancel_token: CancellationToken | None = None) -> dict[str, int] | None:
        """Lines per author for one file, None when the file cannot be blamed."""
        result = run_tool(
            ["git", "blame", "--line-porcelain", "--", path],
            self.repo_path,
            self.timeout,
            cancel_token,
        )
        if not result.ran or result.exit_code != 0:
            message = f"git blame skipped {path}: {result.describe_failure()}"
            self.warnings.append(message)
            logger.warning(message)
            return None
        return parse_blame_porcelain(result.stdout)

    def count_commits(
        self,
        path: str,
        author: str,
        cancel_token: CancellationToken | None = None,
    ) -> int:
        """Commits by one author touching one file."""
        result = run_tool(
            ["git", "log", f"--author={author}", "--oneline", "--", path],
            self.repo_path,
            self.timeout,
            cancel_token,
        )
        if not result.ran or result.exit_code != 0:
            return 0
        return sum(1 for line in result.stdout.splitlines() if line.strip())

    def top_contributors(
        self,
        limit: int = 10,
        cancel_token: CancellationToken | None = None,
    ) -> list[Contributor]:
        """Repository-wide contributors by commit count, from ``git shortlog``."""
        result = run_tool(
            ["git", "shortlog", "-sne", "--all"],
            self.repo_path,
            self.timeout,
            cancel_token,
        )
        if not result.ran or result.exit_code != 0:
            logger.warning("git shortlog failed: %s", result.describe_failure())
            return []

        contributors = []
        for line in result.stdout.splitlines():
            match = SHORTLOG_LINE.match(line)
            if match:
                contributors.append(
                    Contributor(author=normalize_author(match.group(2)), commits=int(match.group(1)))
                )

        total = sum(c.commits for c in contributors)
        for contributor in contributors:
            contributor.percentage = (contributor.commits / total) * 100 if total else 0.0
        contributors.sort(key=lambda c: (-c.commits, c.author))
        return contributors[:limit]

    def _add_file(
        self,
        path: str,
        stats: _DirectoryStats,
        cancel_token: CancellationToken | None,
    ) -> None:
        authors = self.blame(path, cancel_token)
        if not authors:
            return
        for author, lines in authors.items():
            stats.lines[author] += lines
            stats.commits[author] += self.count_commits(path, author, cancel_token)

    @staticmethod
    def _build_record(directory: str, stats: _DirectoryStats) -> OwnershipRecord | None:
        total_lines = sum(stats.lines.values())
        if total_lines == 0:
            return None

        authors = [
            AuthorShare(
                author=author,
                lines=lines,
                percentage=(lines / total_lines) * 100,
                commits=stats.commits[author],
            )
            for author, lines in stats.lines.items()
        ]
        authors.sort(key=lambda share: (-share.lines, share.author))
        return OwnershipRecord(
            path=directory,
            authors=authors,
            total_lines=total_lines,
            total_commits=sum(share.commits for share in authors),
        )
