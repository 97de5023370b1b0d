"""Integration tests for Reposcore CLI commands.

These tests exercise the CLI end to end against generated working copies.
Stages that need external linters, auditors or the network are skipped
through the configuration file so results do not depend on the host.
"""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from reposcore import __version__
from reposcore.cli import app
from tests.fixtures import build_sample_project

pytestmark = pytest.mark.integration

runner = CliRunner()

OFFLINE_CONFIG = {
    "tools": {"license_lookups": False},
    "pipeline": {"skip": ["static_analysis", "security", "ownership"]},
}


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory with an offline reposcore.yaml."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "reposcore.yaml").write_text(yaml.safe_dump(OFFLINE_CONFIG))
    return tmp_path


@pytest.fixture
def project(workspace: Path) -> Path:
    return build_sample_project(workspace / "project")


class TestVersion:
    """Tests for --version."""

    def test_version(self) -> None:
        """Test the version flag prints and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"reposcore {__version__}" in result.output


class TestAnalyze:
    """Integration tests for `reposcore analyze`."""

    def test_json_output_file(self, project: Path, workspace: Path) -> None:
        """Test analyze writes a parseable JSON scorecard."""
        output = workspace / "out" / "card.json"

        result = runner.invoke(app, ["analyze", str(project), "--format", "json", "--output", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text())
        assert data["analysis"]["repository_name"] == "project"
        assert data["analysis"]["ownership"] == []
        assert 0 <= data["score"]["overall"] <= 100
        assert data["score"]["weights"]["craft"] == 0.25

    def test_markdown_output(self, project: Path, workspace: Path) -> None:
        """Test the markdown scorecard sections."""
        output = workspace / "card.md"

        result = runner.invoke(app, ["analyze", str(project), "-f", "markdown", "-o", str(output)])

        assert result.exit_code == 0, result.output
        content = output.read_text()
        assert content.startswith("# Scorecard: project")
        assert "## Overall:" in content
        assert "- Coverage: 85.0% (json-summary)" in content
        assert "- Project license: MIT" in content

    def test_profile_changes_weights(self, project: Path, workspace: Path) -> None:
        """Test --profile selects a preset weight profile."""
        output = workspace / "card.json"

        result = runner.invoke(
            app, ["analyze", str(project), "-f", "json", "-o", str(output), "--profile", "security-focused"]
        )

        assert result.exit_code == 0, result.output
        weights = json.loads(output.read_text())["score"]["weights"]
        assert weights["security"] > weights["craft"]

    def test_unknown_profile_fails(self, project: Path) -> None:
        """Test an unknown profile is a usage error."""
        result = runner.invoke(app, ["analyze", str(project), "--profile", "nope"])

        assert result.exit_code == 1

    def test_missing_path_fails(self, workspace: Path) -> None:
        """Test a missing working copy exits with 1."""
        result = runner.invoke(app, ["analyze", str(workspace / "missing")])

        assert result.exit_code == 1

    def test_invalid_format_fails(self, project: Path) -> None:
        """Test an unknown output format exits with 1."""
        result = runner.invoke(app, ["analyze", str(project), "--format", "pdf"])

        assert result.exit_code == 1

    def test_invalid_skip_fails(self, project: Path) -> None:
        """Test an unknown stage name exits with 1."""
        result = runner.invoke(app, ["analyze", str(project), "--skip", "inventory"])

        assert result.exit_code == 1


class TestBatch:
    """Integration tests for `reposcore batch`."""

    def test_batch_with_failure(self, workspace: Path) -> None:
        """One missing path fails the batch but the others are scored."""
        first = build_sample_project(workspace / "first")
        second = build_sample_project(workspace / "second")
        output = workspace / "batch.json"

        result = runner.invoke(
            app,
            ["batch", str(first), str(workspace / "missing"), str(second), "-f", "json", "-o", str(output)],
        )

        assert result.exit_code == 1
        data = json.loads(output.read_text())
        assert [item["scorecard"] is not None for item in data["items"]] == [True, False, True]
        assert data["aggregate"]["craft"]["factors"] == {"repositories": 2}

    def test_batch_success(self, workspace: Path) -> None:
        """Test a batch of healthy repositories exits with 0."""
        first = build_sample_project(workspace / "first")
        output = workspace / "batch.md"

        result = runner.invoke(app, ["batch", str(first), "--workers", "1", "-f", "markdown", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Aggregate of 1 repositories" in output.read_text()


class TestInit:
    """Integration tests for `reposcore init`."""

    def test_init_creates_config(self, workspace: Path) -> None:
        """Test init writes a loadable default config."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        config_file = workspace / ".reposcore" / "config.yaml"
        assert config_file.exists()
        assert "scoring" in yaml.safe_load(config_file.read_text())

    def test_init_refuses_to_overwrite(self, workspace: Path) -> None:
        """Test init without --force keeps an existing config."""
        (workspace / ".reposcore").mkdir()
        (workspace / ".reposcore" / "config.yaml").write_text("output: {}\n")

        assert runner.invoke(app, ["init"]).exit_code == 1
        assert runner.invoke(app, ["init", "--force"]).exit_code == 0


class TestProfiles:
    """Integration tests for `reposcore profiles`."""

    def test_lists_presets_and_configured(self, workspace: Path) -> None:
        """Configured profiles are listed alongside the presets."""
        config = {
            **OFFLINE_CONFIG,
            "scoring": {
                "profiles": {
                    "team": {
                        "craft": 0.3,
                        "reliability": 0.3,
                        "documentation": 0.1,
                        "security": 0.1,
                        "impact": 0.1,
                        "collaboration": 0.1,
                    }
                }
            },
        }
        (workspace / "reposcore.yaml").write_text(yaml.safe_dump(config))

        result = runner.invoke(app, ["profiles", "--json"])

        assert result.exit_code == 0
        names = [profile["name"] for profile in json.loads(result.stdout)]
        assert names[0] == "default"
        assert {"security-focused", "team"} <= set(names)

    def test_text_marks_active_profile(self, workspace: Path) -> None:
        """Test the configured profile is starred."""
        result = runner.invoke(app, ["profiles"])

        assert result.exit_code == 0
        assert "* default:" in result.output


class TestCheck:
    """Integration tests for `reposcore check`."""

    def test_json_report(self, workspace: Path) -> None:
        """Test the preflight report is JSON with a git entry."""
        result = runner.invoke(app, ["check", "--json"])

        assert result.exit_code in (0, 1, 2)
        data = json.loads(result.stdout)
        assert "git" in [check["name"] for check in data["checks"]]
