"""Unit tests for dependency manifest parsing."""

import json
from pathlib import Path

import pytest

from reposcore.analyzers.manifests import (
    collect_dependencies,
    parse_cargo_toml,
    parse_pyproject_toml,
    parse_requirements_txt,
    pinned_version,
    read_manifest,
)


class TestParsers:
    """Tests for individual manifest parsers."""

    def test_requirements_txt(self, tmp_path: Path) -> None:
        """Comments, options and markers are handled."""
        path = tmp_path / "requirements.txt"
        path.write_text(
            "# pinned\n"
            "-r base.txt\n"
            "Flask==2.0.0  # web\n"
            "requests[socks]>=2.28\n"
            "tomli; python_version < '3.11'\n"
        )

        deps = parse_requirements_txt(path)

        assert [(d.name, d.version) for d in deps] == [
            ("flask", "==2.0.0"),
            ("requests", ">=2.28"),
            ("tomli", "*"),
        ]

    def test_pyproject_pep621_and_poetry(self, tmp_path: Path) -> None:
        """Both PEP 621 and Poetry tables are read; python is skipped."""
        path = tmp_path / "pyproject.toml"
        path.write_text(
            '[project]\n'
            'dependencies = ["httpx>=0.27"]\n'
            '[project.optional-dependencies]\n'
            'dev = ["pytest>=8"]\n'
            '[tool.poetry.dependencies]\n'
            'python = "^3.11"\n'
            'PyYAML = {version = "^6.0"}\n'
        )

        deps = parse_pyproject_toml(path)

        assert [(d.name, d.is_dev) for d in deps] == [
            ("httpx", False),
            ("pytest", True),
            ("pyyaml", False),
        ]
        assert deps[2].version == "^6.0"

    def test_cargo_toml(self, tmp_path: Path) -> None:
        """Test table and inline-table specifiers."""
        path = tmp_path / "Cargo.toml"
        path.write_text(
            '[dependencies]\nserde = "1.0"\ntokio = { version = "1.35", features = ["full"] }\n'
            '[dev-dependencies]\ncriterion = "0.5"\n'
        )

        deps = parse_cargo_toml(path)

        assert [(d.name, d.version, d.is_dev) for d in deps] == [
            ("serde", "1.0", False),
            ("tokio", "1.35", False),
            ("criterion", "0.5", True),
        ]

    def test_unparsable_manifest_yields_empty(self, tmp_path: Path) -> None:
        """Invalid JSON is logged, not raised."""
        path = tmp_path / "package.json"
        path.write_text("{not json")

        assert read_manifest(path) == []

    @pytest.mark.parametrize(
        ("filename", "content"),
        [
            ("package.json", "[]"),
            ("package.json", '"express"'),
            ("pyproject.toml", "[project]\ndependencies = [1]\n"),
        ],
    )
    def test_wrongly_shaped_manifest_yields_empty(self, tmp_path: Path, filename: str, content: str) -> None:
        """Valid syntax with the wrong structure is logged, not raised."""
        path = tmp_path / filename
        path.write_text(content)

        assert read_manifest(path) == []

    def test_non_object_dependency_table_is_skipped(self, tmp_path: Path) -> None:
        """Test a list-valued dependencies table does not hide devDependencies."""
        path = tmp_path / "package.json"
        path.write_text(json.dumps({"dependencies": ["express"], "devDependencies": {"jest": "^29.0.0"}}))

        assert [(d.name, d.is_dev) for d in read_manifest(path)] == [("jest", True)]


class TestCollectDependencies:
    """Tests for collect_dependencies."""

    def test_requirements_take_precedence(self, tmp_path: Path) -> None:
        """pyproject.toml is ignored when requirements.txt exists."""
        (tmp_path / "requirements.txt").write_text("flask==2.0.0\n")
        (tmp_path / "pyproject.toml").write_text('[project]\ndependencies = ["django"]\n')
        (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"react": "^18.2.0"}}))

        assert [d.name for d in collect_dependencies(tmp_path, "pypi")] == ["flask"]
        assert [d.name for d in collect_dependencies(tmp_path)] == ["react", "flask"]


class TestPinnedVersion:
    """Tests for pinned_version."""

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("==2.0.0", "2.0.0"),
            ("4.17.20", "4.17.20"),
            ("^18.2.0", "18.2.0"),
            (">=2.28", None),
            ("*", None),
        ],
    )
    def test_pinned_version(self, spec: str, expected: str | None) -> None:
        """Only exact or caret/tilde versions resolve to a version."""
        assert pinned_version(spec) == expected
