"""Unit tests for blame-based ownership."""

from pathlib import Path

import pytest

from reposcore.analyzers.ownership import (
    OwnershipAnalyzer,
    directory_of,
    normalize_author,
    parse_blame_porcelain,
)
from reposcore.utils.process import ProcessResult


def porcelain(*lines: tuple[str, str]) -> str:
    """Build --line-porcelain output for (author, email) per content line."""
    chunks = []
    for index, (name, email) in enumerate(lines, start=1):
        chunks.append(
            f"{index:040x} {index} {index} 1\n"
            f"author {name}\n"
            f"author-mail <{email}>\n"
            "summary change\n"
            "filename file\n"
            f"\tline {index}\n"
        )
    return "".join(chunks)


class FakeGit:
    """Dispatches git subcommands to canned output."""

    def __init__(self, files: dict[str, str], log_lines: int = 1, unblameable: tuple[str, ...] = ()) -> None:
        self.files = files
        self.log_lines = log_lines
        self.unblameable = unblameable
        self.calls: list[list[str]] = []

    def __call__(self, args, cwd, timeout, cancel_token=None, env=None) -> ProcessResult:
        self.calls.append(list(args))
        command = args[1]
        if command == "ls-files":
            tracked = [*self.files, *self.unblameable]
            return ProcessResult(args=args, exit_code=0, stdout="\n".join(tracked) + "\n")
        if command == "blame":
            path = args[-1]
            if path not in self.files:
                return ProcessResult(args=args, exit_code=128, stderr="fatal: no such path")
            return ProcessResult(args=args, exit_code=0, stdout=self.files[path])
        if command == "log":
            return ProcessResult(args=args, exit_code=0, stdout="abc123 change\n" * self.log_lines)
        if command == "shortlog":
            return ProcessResult(
                args=args,
                exit_code=0,
                stdout="    12\tAda <ada@example.com>\n     4\tBob <bob@example.com>\n",
            )
        return ProcessResult(args=args, exit_code=1)


class TestParsing:
    """Tests for porcelain parsing helpers."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("<ada@example.com>", "ada@example.com"), ("Ada Lovelace ", "Ada Lovelace"), ("<>", "")],
    )
    def test_normalize_author(self, raw: str, expected: str) -> None:
        """Test email extraction and name fallback."""
        assert normalize_author(raw) == expected

    def test_counts_lines_per_email(self) -> None:
        """Content lines are attributed to author-mail."""
        output = porcelain(
            ("Ada", "ada@example.com"),
            ("Ada L.", "ada@example.com"),
            ("Bob", "bob@example.com"),
        )

        assert parse_blame_porcelain(output) == {"ada@example.com": 2, "bob@example.com": 1}

    def test_directory_of(self) -> None:
        """Test root files group under '.'."""
        assert directory_of("README.md") == "."
        assert directory_of("src/pkg/mod.py") == "src/pkg"


class TestOwnershipAnalyzer:
    """Tests for OwnershipAnalyzer."""

    def test_groups_by_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Records are per directory with authors sorted by lines."""
        fake = FakeGit(
            {
                "README.md": porcelain(("Ada", "ada@example.com")),
                "src/a.py": porcelain(("Bob", "bob@example.com"), ("Ada", "ada@example.com")),
                "src/b.py": porcelain(("Bob", "bob@example.com")),
            },
            log_lines=2,
        )
        monkeypatch.setattr("reposcore.analyzers.ownership.run_tool", fake)

        records = OwnershipAnalyzer(tmp_path).analyze()

        assert [r.path for r in records] == [".", "src"]
        src = records[1]
        assert src.total_lines == 3
        assert [(a.author, a.lines) for a in src.authors] == [
            ("bob@example.com", 2),
            ("ada@example.com", 1),
        ]
        assert src.authors[0].percentage == pytest.approx(200 / 3)
        assert src.authors[0].commits == 4
        assert src.total_commits == 6

    def test_unblameable_file_is_skipped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A blame failure drops the file and records a warning."""
        fake = FakeGit({"a.py": porcelain(("Ada", "ada@example.com"))}, unblameable=("gone.py",))
        monkeypatch.setattr("reposcore.analyzers.ownership.run_tool", fake)
        analyzer = OwnershipAnalyzer(tmp_path)

        records = analyzer.analyze()

        assert [r.total_lines for r in records] == [1]
        assert analyzer.warnings == ["git blame skipped gone.py: git exited with 128: fatal: no such path"]

    def test_ls_files_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a failing ls-files yields no records and a warning."""
        monkeypatch.setattr(
            "reposcore.analyzers.ownership.run_tool",
            lambda args, cwd, timeout, cancel_token=None, env=None: ProcessResult(
                args=args, exit_code=128, stderr="fatal: not a git repository"
            ),
        )
        analyzer = OwnershipAnalyzer(tmp_path)

        assert analyzer.analyze() == []
        assert "git ls-files failed" in analyzer.warnings[0]

    def test_top_contributors(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test shortlog parsing and percentages."""
        monkeypatch.setattr("reposcore.analyzers.ownership.run_tool", FakeGit({}))

        contributors = OwnershipAnalyzer(tmp_path).top_contributors()

        assert [(c.author, c.commits) for c in contributors] == [
            ("ada@example.com", 12),
            ("bob@example.com", 4),
        ]
        assert contributors[0].percentage == pytest.approx(75.0)
