"""Shared pytest fixtures for Reposcore tests.

Fixtures are organized by category:
- Repository fixtures: working copies built in tmp_path
- Process fixtures: a fake ``run_tool`` for adapters and git
- Analysis fixtures: pre-built analysis results for scoring and rendering
"""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from reposcore.models import AnalysisResult
from reposcore.utils.process import ProcessResult
from tests.fixtures import build_sample_project


@pytest.fixture(autouse=True)
def reset_reposcore_logger() -> Iterator[None]:
    """Undo handlers installed by CLI runs so caplog keeps working."""
    yield
    logger = logging.getLogger("reposcore")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary directory that looks like a git working copy."""
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".git").mkdir()
    return repo


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A small Python project with README, tests, CI and coverage data."""
    return build_sample_project(tmp_path / "sample_project")


# =============================================================================
# Process Fixtures
# =============================================================================


FakeRunTool = Callable[..., ProcessResult]


def make_run_tool(
    stdout: str = "",
    exit_code: int | None = 0,
    stderr: str = "",
    not_found: bool = False,
    timed_out: bool = False,
    calls: list[list[str]] | None = None,
) -> FakeRunTool:
    """Build a run_tool replacement that returns a fixed ProcessResult."""

    def fake_run_tool(args: list[str], cwd: Any, timeout: float, cancel_token: Any = None, env: Any = None) -> ProcessResult:
        if calls is not None:
            calls.append(list(args))
        return ProcessResult(
            args=list(args),
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            not_found=not_found,
            timed_out=timed_out,
        )

    return fake_run_tool


@pytest.fixture
def tool_output(monkeypatch: pytest.MonkeyPatch) -> Callable[..., list[list[str]]]:
    """Patch the adapters' run_tool; returns the list of recorded command lines."""

    def install(**kwargs: Any) -> list[list[str]]:
        calls: list[list[str]] = []
        monkeypatch.setattr(
            "reposcore.analyzers.base.run_tool", make_run_tool(calls=calls, **kwargs)
        )
        return calls

    return install


# =============================================================================
# Analysis Fixtures
# =============================================================================


@pytest.fixture
def empty_result(tmp_path: Path) -> AnalysisResult:
    """AnalysisResult with every section at its default."""
    return AnalysisResult(repository_path=tmp_path, repository_name="empty")
