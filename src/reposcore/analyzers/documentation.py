"""Documentation analysis.

Scores README completeness from keyword-triggered sections, detects API
documentation artifacts (OpenAPI/Swagger specs, Sphinx trees, doc
directories, doc comments in source) and counts example files.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from reposcore.models import ApiDocsInfo, DocumentationScore, ExamplesInfo, ReadmeScore

logger = logging.getLogger(__name__)

README_CANDIDATES = ("README.md", "README.rst", "README.txt", "README.adoc")

# (flag, points, keywords); a section counts when any keyword occurs in the README
README_SECTIONS: tuple[tuple[str, int, tuple[str, ...]], ...] = (
    (
        "has_purpose",
        15,
        ("description", "about", "overview", "what is", "purpose", "## ", "# ", "introduction"),
    ),
    (
        "has_setup",
        15,
        ("installation", "setup", "install", "getting started", "prerequisites", "requirements"),
    ),
    (
        "has_run",
        15,
        ("usage", "how to use", "running", "start", "run", "examples", "quick start"),
    ),
    ("has_test", 10, ("testing", "tests", "test", "run tests", "test suite")),
    (
        "has_env",
        10,
        ("environment", "env", "configuration", "config", "environment variables", "env vars"),
    ),
    ("has_license", 10, ("license", "licensing", "copyright", "legal")),
    (
        "has_contributing",
        10,
        ("contributing", "contribute", "development", "dev", "pull request", "issues", "bug report"),
    ),
    (
        "has_api_docs",
        15,
        ("api", "documentation", "docs", "reference", "endpoints", "swagger", "openapi"),
    ),
)

# Markup bonuses: headings, fenced code, images
README_BONUSES: tuple[str, ...] = ("#", "```", "![")
BONUS_POINTS = 5

# Checked in order; the first existing artifact decides the API docs type
API_DOC_ARTIFACTS: tuple[str, ...] = (
    "swagger.json",
    "swagger.yaml",
    "openapi.json",
    "openapi.yaml",
    "openapi.yml",
    "api-docs.json",
    "api-docs.yaml",
    "docs/api",
    "api",
    "sphinx",
    "docs",
    "doc",
)

OTHER_DOCS_COVERAGE = 50.0
SPHINX_POINTS_PER_FILE = 10
SPHINX_DOC_EXTENSIONS = (".rst", ".md")
HTTP_METHODS = frozenset({"get", "put", "post", "delete", "options", "head", "patch", "trace"})

DOC_COMMENT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".py")
DOC_COMMENT_FILE_LIMIT = 50
JS_DECLARATION = re.compile(r"^(export\s+)?(async\s+)?(function|const|let|var|class)\s+\w+.*[=(]")
PY_DECLARATION = re.compile(r"^(async\s+)?(def|class)\s+\w+")

EXAMPLE_DIRS = ("examples", "example", "samples", "sample", "demos", "demo")
EXAMPLE_EXTENSIONS = (".js", ".ts", ".py", ".java", ".go", ".rs", ".md")
EXAMPLE_FILE = re.compile(r"^example\.\w+$")

SKIP_DIRS = frozenset({".git", "node_modules", "vendor", ".venv", "venv", "__pycache__", "dist", "build"})


def score_readme_content(content: str) -> ReadmeScore:
    """Score README text: section points plus markup bonuses, capped at 100."""
    lowered = content.lower()
    flags: dict[str, bool] = {}
    score = 0

    for flag, points, keywords in README_SECTIONS:
        present = any(keyword in lowered for keyword in keywords)
        flags[flag] = present
        if present:
            score += points

    score += sum(BONUS_POINTS for marker in README_BONUSES if marker in content)
    return ReadmeScore(exists=True, score=min(score, 100), **flags)


def load_api_spec(path: Path) -> dict[str, Any] | None:
    """Load an OpenAPI/Swagger document from JSON or YAML."""
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        logger.debug("Could not load API spec %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def api_spec_coverage(spec: dict[str, Any]) -> float:
    """30 for having paths, plus 70 x the share of operations described in > 20 chars."""
    paths = spec.get("paths")
    if not isinstance(paths, dict) or not paths:
        return 0.0

    operations = 0
    described = 0
    for path_item in paths.values():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if not isinstance(method, str) or not isinstance(operation, dict):
                continue
            if method.lower() not in HTTP_METHODS:
                continue
            operations += 1
            description = operation.get("description")
            if isinstance(description, str) and len(description) > 20:
                described += 1

    coverage = 30.0
    if operations:
        coverage += (described / operations) * 70
    return min(coverage, 100.0)


def count_doc_comments(content: str, suffix: str) -> tuple[int, int]:
    """Return (documented, total) declarations for one source file.

    JS/TS declarations count as documented when the closest preceding
    non-blank line closes a ``/** ... */`` block; Python declarations when
    the body opens with a docstring.
    """
    lines = [line.strip() for line in content.splitlines()]
    documented = 0
    total = 0

    if suffix == ".py":
        for index, line in enumerate(lines):
            if not PY_DECLARATION.match(line):
                continue
            total += 1
            following = next((l for l in lines[index + 1 :] if l), "")
            if following.startswith(('"""', "'''", 'r"""')):
                documented += 1
        return documented, total

    in_doc_block = False
    last_closed_doc = False
    for line in lines:
        if not line:
            continue
        if line.startswith("/**"):
            in_doc_block = not line.endswith("*/")
            last_closed_doc = not in_doc_block
            continue
        if in_doc_block:
            if line.endswith("*/"):
                in_doc_block = False
                last_closed_doc = True
            continue
        if JS_DECLARATION.match(line):
            total += 1
            if last_closed_doc:
                documented += 1
        last_closed_doc = False

    return documented, total


def find_files(root: Path, extensions: tuple[str, ...], limit: int | None = None) -> list[Path]:
    """Files under root with the given extensions, in a stable order."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            if filename.endswith(extensions):
                found.append(Path(dirpath) / filename)
                if limit is not None and len(found) >= limit:
                    return found
    return found


class DocumentationAnalyzer:
    """Scores README, API docs and examples for one working copy."""

    def __init__(self, repo_path: Path) -> None:
        self.repo_path = repo_path

    def analyze(self) -> DocumentationScore:
        """Run all documentation checks.

        Returns:
            DocumentationScore with README, API docs and examples sections
        """
        score = DocumentationScore(
            readme=self.analyze_readme(),
            api_docs=self.analyze_api_docs(),
            examples=self.analyze_examples(),
        )
        logger.info(
            "Documentation: README score %d, API docs %s, %d examples",
            score.readme.score,
            score.api_docs.type or "none",
            score.examples.count,
        )
        return score

    def analyze_readme(self) -> ReadmeScore:
        """Score the first readable README candidate."""
        for name in README_CANDIDATES:
            path = self.repo_path / name
            if not path.is_file():
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read %s: %s", name, e)
                continue
            readme = score_readme_content(content)
            readme.path = name
            return readme
        return ReadmeScore()

    def analyze_api_docs(self) -> ApiDocsInfo:
        """Detect API documentation; fall back to doc comments in source."""
        for artifact in API_DOC_ARTIFACTS:
            path = self.repo_path / artifact
            if not path.exists():
                continue

            if "swagger" in artifact or "openapi" in artifact or artifact.startswith("api-docs"):
                spec = load_api_spec(path) if path.is_file() else None
                coverage = api_spec_coverage(spec) if spec is not None else 0.0
                return ApiDocsInfo(exists=True, type="swagger", coverage=coverage)

            if path.is_dir() and (artifact == "sphinx" or (path / "conf.py").is_file()):
                files = find_files(path, SPHINX_DOC_EXTENSIONS)
                coverage = float(min(len(files) * SPHINX_POINTS_PER_FILE, 100))
                return ApiDocsInfo(exists=True, type="sphinx", coverage=coverage)

            return ApiDocsInfo(exists=True, type="other", coverage=OTHER_DOCS_COVERAGE)

        return self.analyze_doc_comments()

    def analyze_doc_comments(self) -> ApiDocsInfo:
        """Documentation ratio over the first JS/TS/Python sources."""
        documented = {"docstring": 0, "jsdoc": 0}
        total = 0
        for path in find_files(self.repo_path, DOC_COMMENT_EXTENSIONS, DOC_COMMENT_FILE_LIMIT):
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            file_documented, file_total = count_doc_comments(content, path.suffix)
            documented["docstring" if path.suffix == ".py" else "jsdoc"] += file_documented
            total += file_total

        documented_total = sum(documented.values())
        if total == 0 or documented_total == 0:
            return ApiDocsInfo()

        return ApiDocsInfo(
            exists=True,
            type=max(documented, key=lambda kind: documented[kind]),
            coverage=(documented_total / total) * 100,
        )

    def analyze_examples(self) -> ExamplesInfo:
        """Count files in example directories plus root ``example.*`` files."""
        exists = False
        count = 0

        for name in EXAMPLE_DIRS:
            path = self.repo_path / name
            if path.is_dir():
                exists = True
                count += len(find_files(path, EXAMPLE_EXTENSIONS))

        try:
            root_entries = sorted(self.repo_path.iterdir())
        except OSError as e:
            logger.warning("Could not list %s: %s", self.repo_path, e)
            root_entries = []
        for entry in root_entries:
            if entry.is_file() and EXAMPLE_FILE.match(entry.name):
                exists = True
                count += 1

        return ExamplesInfo(exists=exists, count=count)
