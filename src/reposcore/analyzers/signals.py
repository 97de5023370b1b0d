"""Test suite and CI configuration detection.

Both signals feed the reliability score. Test files are recognized from the
inventory (test directories and ``*.test.*`` / ``*.spec.*`` names, plus
``test_*.py`` / ``*_test.go`` conventions); CI is recognized from provider
configuration files at the repository root.
"""

import re
from pathlib import Path, PurePosixPath

from reposcore.models import CISignals, InventoryResult, TestSignals

TEST_DIRS = frozenset({"test", "tests", "__tests__", "spec"})
TEST_FILE_PATTERN = re.compile(r"(\.(test|spec)\.[^.]+$)|(^test_.+\.py$)|(_test\.(py|go)$)")

# Provider -> config path, in reporting order
CI_PROVIDERS: tuple[tuple[str, str], ...] = (
    ("GitHub Actions", ".github/workflows"),
    ("GitLab CI", ".gitlab-ci.yml"),
    ("Jenkins", "Jenkinsfile"),
    ("Azure DevOps", "azure-pipelines.yml"),
    ("CircleCI", ".circleci/config.yml"),
    ("CircleCI", "circle.yml"),
    ("Travis CI", ".travis.yml"),
    ("Travis CI", "travis.yml"),
    ("Bitbucket Pipelines", "bitbucket-pipelines.yml"),
)


def is_test_file(path: str) -> bool:
    parts = PurePosixPath(path).parts
    if any(part in TEST_DIRS for part in parts[:-1]):
        return True
    return bool(TEST_FILE_PATTERN.search(parts[-1])) if parts else False


def detect_tests(inventory: InventoryResult) -> TestSignals:
    """Find test files among the inventoried files."""
    test_files = [record.path for record in inventory.files if is_test_file(record.path)]
    return TestSignals(has_tests=bool(test_files), test_files=test_files)


def detect_ci(repo_path: Path) -> CISignals:
    """Find CI provider configuration in the working copy."""
    providers: list[str] = []
    config_files: list[str] = []

    for provider, config in CI_PROVIDERS:
        config_path = repo_path / config
        if config_path.is_dir():
            entries = sorted(p.name for p in config_path.iterdir() if p.suffix in (".yml", ".yaml"))
            if not entries:
                continue
            config_files.extend(f"{config}/{name}" for name in entries)
        elif config_path.is_file():
            config_files.append(config)
        else:
            continue
        if provider not in providers:
            providers.append(provider)

    return CISignals(has_ci=bool(providers), providers=providers, config_files=config_files)
