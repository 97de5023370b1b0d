"""Repository entity representing a checked-out working copy to analyze.

The Repository entity carries the working-copy path and validates that it
is a readable directory before any stage runs.
"""

import os
from dataclasses import dataclass
from pathlib import Path


class RepositoryError(Exception):
    """Raised when a working copy does not exist or is not a readable tree.

    This is the only failure that aborts a repository's pipeline run.
    """

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


@dataclass
class Repository:
    """Checked-out working copy of one repository.

    Attributes:
        path: Absolute path to the working copy root
        name: Repository name (derived from the directory name)

    Validation Rules:
        - path must exist, be a directory and be readable
        - path should contain a .git directory (warning if not)
    """

    path: Path
    name: str

    def __post_init__(self) -> None:
        """Normalize the path after initialization."""
        if isinstance(self.path, str):
            self.path = Path(self.path)

        self.path = self.path.resolve()

    def validate(self) -> list[str]:
        """Validate the working copy.

        Returns:
            List of validation warning messages (empty if valid)

        Raises:
            RepositoryError: If path does not exist, is not a directory or is unreadable
        """
        warnings: list[str] = []

        if not self.path.exists():
            raise RepositoryError(self.path, "Repository path does not exist")

        if not self.path.is_dir():
            raise RepositoryError(self.path, "Repository path is not a directory")

        if not os.access(self.path, os.R_OK | os.X_OK):
            raise RepositoryError(self.path, "Repository path is not readable")

        if not self.is_git_repo:
            warnings.append(f"Not a git repository (no .git directory): {self.path}")

        return warnings

    @property
    def is_git_repo(self) -> bool:
        """Check if the path is a git working copy."""
        return (self.path / ".git").exists()

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> "Repository":
        """Create a Repository from a path.

        Args:
            path: Path to the working copy root
            name: Optional name override (defaults to directory name)

        Returns:
            Repository instance
        """
        path = Path(path).resolve()
        if name is None:
            name = path.name

        return cls(path=path, name=name)
