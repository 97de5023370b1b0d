"""Dependency manifest parsing.

Reads declared dependencies from the manifests at the repository root:
- package.json (npm; dependencies + devDependencies)
- requirements.txt, pyproject.toml (pip; PEP 621 and Poetry tables)
- Cargo.toml (cargo; [dependencies] and [dev-dependencies])

Used by the security stage for dependency counts and by the license stage
as the list of packages to resolve.
"""

import json
import logging
import re
import tomllib
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

REQUIREMENT_NAME = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)(?:\[[^\]]*\])?\s*(.*)$")
EXACT_VERSION = re.compile(r"^==\s*([^\s,;]+)")


@dataclass(frozen=True)
class ManifestDependency:
    """Single declared dependency.

    Attributes:
        name: Package name as declared
        version: Version specifier (may be a range), "*" if unpinned
        ecosystem: npm, pypi or cargo
        source_file: Manifest file name
        is_dev: Declared as a development dependency
    """

    name: str
    version: str
    ecosystem: str
    source_file: str
    is_dev: bool = False


def parse_package_json(path: Path) -> list[ManifestDependency]:
    """Parse package.json dependency tables."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("package.json top level is not an object")
    deps = []
    for table, is_dev in (("dependencies", False), ("devDependencies", True)):
        entries = data.get(table) or {}
        if not isinstance(entries, dict):
            continue
        for name, version in entries.items():
            deps.append(
                ManifestDependency(
                    name=name,
                    version=str(version),
                    ecosystem="npm",
                    source_file=path.name,
                    is_dev=is_dev,
                )
            )
    return deps


def _parse_requirement(line: str, source_file: str, is_dev: bool = False) -> ManifestDependency | None:
    line = line.split(";", 1)[0].strip()
    match = REQUIREMENT_NAME.match(line)
    if not match:
        return None
    spec = match.group(2).strip()
    return ManifestDependency(
        name=match.group(1).lower(),
        version=spec or "*",
        ecosystem="pypi",
        source_file=source_file,
        is_dev=is_dev,
    )


def parse_requirements_txt(path: Path) -> list[ManifestDependency]:
    """Parse requirements.txt, skipping comments and pip options."""
    deps = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("-"):
            continue
        dep = _parse_requirement(line.split(" #", 1)[0], path.name)
        if dep is not None:
            deps.append(dep)
    return deps


def parse_pyproject_toml(path: Path) -> list[ManifestDependency]:
    """Parse PEP 621 and Poetry dependency tables."""
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    deps: list[ManifestDependency] = []

    project = data.get("project") or {}
    for requirement in project.get("dependencies") or []:
        dep = _parse_requirement(requirement, path.name)
        if dep is not None:
            deps.append(dep)
    for group in (project.get("optional-dependencies") or {}).values():
        for requirement in group:
            dep = _parse_requirement(requirement, path.name, is_dev=True)
            if dep is not None:
                deps.append(dep)

    poetry = (data.get("tool") or {}).get("poetry") or {}
    poetry_tables = [(poetry.get("dependencies") or {}, False)]
    poetry_tables.append((poetry.get("dev-dependencies") or {}, True))
    for group in (poetry.get("group") or {}).values():
        poetry_tables.append((group.get("dependencies") or {}, True))
    for table, is_dev in poetry_tables:
        for name, spec in table.items():
            if name.lower() == "python":
                continue
            deps.append(
                ManifestDependency(
                    name=name.lower(),
                    version=_toml_version(spec),
                    ecosystem="pypi",
                    source_file=path.name,
                    is_dev=is_dev,
                )
            )
    return deps


def parse_cargo_toml(path: Path) -> list[ManifestDependency]:
    """Parse Cargo.toml dependency tables."""
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    deps = []
    for table, is_dev in (("dependencies", False), ("dev-dependencies", True)):
        for name, spec in (data.get(table) or {}).items():
            deps.append(
                ManifestDependency(
                    name=name,
                    version=_toml_version(spec),
                    ecosystem="cargo",
                    source_file=path.name,
                    is_dev=is_dev,
                )
            )
    return deps


def _toml_version(spec: Any) -> str:
    if isinstance(spec, str):
        return spec
    if isinstance(spec, dict):
        return str(spec.get("version", "*"))
    return "*"


def pinned_version(version: str) -> str | None:
    """Return the exact version from an ``==x.y`` or bare ``x.y.z`` specifier."""
    match = EXACT_VERSION.match(version.strip())
    if match:
        return match.group(1)
    cleaned = version.strip().lstrip("^~=v")
    if re.fullmatch(r"\d+(\.\d+)*([.-]?[A-Za-z0-9]+)*", cleaned):
        return cleaned
    return None


MANIFEST_PARSERS: dict[str, tuple[str, Callable[[Path], list[ManifestDependency]]]] = {
    "package.json": ("npm", parse_package_json),
    "requirements.txt": ("pypi", parse_requirements_txt),
    "pyproject.toml": ("pypi", parse_pyproject_toml),
    "Cargo.toml": ("cargo", parse_cargo_toml),
}


def read_manifest(path: Path) -> list[ManifestDependency]:
    """Parse one manifest, returning [] (and logging) if it is unreadable."""
    entry = MANIFEST_PARSERS.get(path.name)
    if entry is None or not path.is_file():
        return []
    _, parser = entry
    try:
        return parser(path)
    except (OSError, ValueError, AttributeError, TypeError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return []


def collect_dependencies(repo_path: Path, ecosystem: str | None = None) -> list[ManifestDependency]:
    """Collect declared dependencies from the root manifests.

    requirements.txt takes precedence over pyproject.toml so Python
    dependencies are not counted twice.

    Args:
        repo_path: Repository root
        ecosystem: Restrict to one ecosystem (npm, pypi, cargo)

    Returns:
        Declared dependencies, de-duplicated by (ecosystem, name)
    """
    deps: list[ManifestDependency] = []
    seen: set[tuple[str, str]] = set()
    for filename, (manifest_ecosystem, _) in MANIFEST_PARSERS.items():
        if ecosystem is not None and manifest_ecosystem != ecosystem:
            continue
        if filename == "pyproject.toml" and (repo_path / "requirements.txt").is_file():
            continue
        for dep in read_manifest(repo_path / filename):
            key = (dep.ecosystem, dep.name)
            if key not in seen:
                seen.add(key)
                deps.append(dep)
    return deps
