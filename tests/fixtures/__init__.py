"""Test fixtures for Reposcore.

Sample working copies are generated into a temporary directory rather than
checked in, so their test files and manifests never reach test collection.

Sample Repositories:
- sample project: a Python package with README, tests, CI and coverage data
"""

import json
from pathlib import Path

README = """# Sample Project

A small service used to exercise the analyzers.

## Installation

    pip install -e .

## Usage

```python
from sample import greet
greet("world")
```

## Testing

Run the tests with pytest.

## License

MIT
"""

APP_SOURCE = '''"""Sample application."""


def greet(name):
    """Return a greeting."""
    return f"Hello, {name}"


class Counter:
    """Counts things."""

    def __init__(self):
        self.value = 0

    def increment(self):
        self.value += 1
        return self.value
'''

TEST_SOURCE = '''from sample.app import greet


def test_greet():
    assert greet("x") == "Hello, x"
'''

PYPROJECT = """[project]
name = "sample"
version = "0.1.0"
license = "MIT"
dependencies = ["requests>=2.0"]
"""

MIT_LICENSE = """MIT License

Copyright (c) 2024 Sample Authors

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction.
"""

WORKFLOW = """name: ci
on: [push]
jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - run: pytest
"""

COVERAGE_SUMMARY = {
    "total": {
        "lines": {"total": 200, "covered": 170, "skipped": 0, "pct": 85},
        "branches": {"total": 40, "covered": 30, "skipped": 0, "pct": 75},
        "functions": {"total": 20, "covered": 18, "skipped": 0, "pct": 90},
    },
    "src/sample/app.py": {
        "lines": {"total": 200, "covered": 170, "skipped": 0, "pct": 85},
    },
}


def build_sample_project(root: Path) -> Path:
    """Write the sample project into root and return it."""
    (root / "src" / "sample").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / ".github" / "workflows").mkdir(parents=True)
    (root / "coverage").mkdir()

    (root / "README.md").write_text(README)
    (root / "LICENSE").write_text(MIT_LICENSE)
    (root / "pyproject.toml").write_text(PYPROJECT)
    (root / "src" / "sample" / "__init__.py").write_text("")
    (root / "src" / "sample" / "app.py").write_text(APP_SOURCE)
    (root / "tests" / "test_app.py").write_text(TEST_SOURCE)
    (root / ".github" / "workflows" / "ci.yml").write_text(WORKFLOW)
    (root / "coverage" / "coverage-summary.json").write_text(json.dumps(COVERAGE_SUMMARY))
    return root
