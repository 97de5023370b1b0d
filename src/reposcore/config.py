"""Reposcore configuration system.

Configuration is YAML-based with minimal CLI overrides (--format, --output,
--skip, --workers, --ci). Supports environment variable substitution
(${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.reposcore/config.yaml
3. ./reposcore.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from reposcore.scoring import ScoringWeights

OUTPUT_FORMATS = ("text", "json", "markdown")
PIPELINE_STAGES = (
    "static_analysis",
    "security",
    "coverage",
    "documentation",
    "ownership",
    "licenses",
    "signals",
)

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        path: Output file path (None prints to stdout)
        format: Output format (text, json, markdown)
    """

    path: str | None = None
    format: str = "text"

    def __post_init__(self) -> None:
        """Validate output configuration."""
        if self.format not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output format: {self.format}. Valid: {OUTPUT_FORMATS}")


@dataclass
class ToolsConfig:
    """External tool configuration.

    Tools are auto-skipped when their language or ecosystem is not detected.

    Attributes:
        disabled: Tool names never run (e.g. ["spotbugs", "cargo-audit"])
        timeouts: Per-tool timeout overrides in seconds
        lint_timeout: Default linter timeout
        audit_timeout: Default dependency-audit timeout
        blame_timeout: Per-command git timeout for ownership
        license_lookups: Query package registries for dependency licenses
        license_timeout: Registry request timeout
    """

    disabled: list[str] = field(default_factory=list)
    timeouts: dict[str, float] = field(default_factory=dict)
    lint_timeout: float = 30.0
    audit_timeout: float = 60.0
    blame_timeout: float = 10.0
    license_lookups: bool = True
    license_timeout: float = 10.0

    def __post_init__(self) -> None:
        """Validate tool timeouts."""
        for name, value in {
            "lint_timeout": self.lint_timeout,
            "audit_timeout": self.audit_timeout,
            "blame_timeout": self.blame_timeout,
            "license_timeout": self.license_timeout,
            **self.timeouts,
        }.items():
            if value <= 0:
                raise ValueError(f"Timeout for {name} must be positive (got {value})")

    def is_enabled(self, name: str) -> bool:
        return name not in self.disabled

    def timeout_for(self, name: str, capability: str) -> float:
        """Timeout for one tool: explicit override, else the capability default."""
        if name in self.timeouts:
            return float(self.timeouts[name])
        return self.audit_timeout if capability == "audit" else self.lint_timeout


@dataclass
class ScoringConfig:
    """Scoring weights configuration.

    Attributes:
        profile: Weight profile name (looked up in the profile store)
        weights: Explicit weights; take precedence over the profile
        profiles: Additional named profiles loaded into the store
    """

    profile: str = "default"
    weights: ScoringWeights | None = None
    profiles: dict[str, ScoringWeights] = field(default_factory=dict)


@dataclass
class PipelineConfig:
    """Pipeline concurrency configuration.

    Attributes:
        max_workers: Concurrent stages within one repository
        repo_workers: Concurrent repositories in a batch
        fail_fast: Cancel the rest of a batch after the first failed repository
        skip: Stages never run
        scan_secrets: Run the secret scanner in the security stage
    """

    max_workers: int = 4
    repo_workers: int = 2
    fail_fast: bool = False
    skip: list[str] = field(default_factory=list)
    scan_secrets: bool = True

    def __post_init__(self) -> None:
        """Validate pipeline configuration."""
        if self.max_workers < 1 or self.repo_workers < 1:
            raise ValueError("max_workers and repo_workers must be at least 1")
        unknown = [stage for stage in self.skip if stage not in PIPELINE_STAGES]
        if unknown:
            raise ValueError(f"Unknown stages: {unknown}. Valid: {PIPELINE_STAGES}")


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        fail_on_warning: Exit with code 2 when any stage degraded
        json_output: Use JSON output format
    """

    fail_on_warning: bool = True
    json_output: bool = False


@dataclass
class ReposcoreConfig:
    """Top-level Reposcore configuration.

    Attributes:
        output: Output path and format
        tools: External tool settings
        scoring: Weights and weight profiles
        pipeline: Concurrency and stage selection
        ci: CI/CD settings
    """

    output: OutputConfig = field(default_factory=OutputConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    # Set by load_config
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return ENV_VAR_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.reposcore/config.yaml
    2. ./reposcore.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()
    candidates = [
        start_path / ".reposcore" / "config.yaml",
        start_path / "reposcore.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def _weights(value: Any, label: str) -> ScoringWeights:
    if not isinstance(value, dict):
        raise ValueError(f"{label} must be a mapping of dimension to weight")
    try:
        return ScoringWeights.from_dict(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid {label}: {e}") from e


def load_config_from_dict(data: dict[str, Any]) -> ReposcoreConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        ReposcoreConfig instance

    Raises:
        ValueError: On invalid values
    """
    data = substitute_env_vars(data)
    config = ReposcoreConfig()

    if "output" in data:
        output_data = _section(data, "output")
        config.output = OutputConfig(
            path=output_data.get("path", config.output.path),
            format=output_data.get("format", config.output.format),
        )

    if "tools" in data:
        tools_data = _section(data, "tools")
        defaults = ToolsConfig()
        config.tools = ToolsConfig(
            disabled=list(tools_data.get("disabled", [])),
            timeouts={k: float(v) for k, v in (tools_data.get("timeouts") or {}).items()},
            lint_timeout=float(tools_data.get("lint_timeout", defaults.lint_timeout)),
            audit_timeout=float(tools_data.get("audit_timeout", defaults.audit_timeout)),
            blame_timeout=float(tools_data.get("blame_timeout", defaults.blame_timeout)),
            license_lookups=bool(tools_data.get("license_lookups", defaults.license_lookups)),
            license_timeout=float(tools_data.get("license_timeout", defaults.license_timeout)),
        )

    if "scoring" in data:
        scoring_data = _section(data, "scoring")
        weights = scoring_data.get("weights")
        config.scoring = ScoringConfig(
            profile=scoring_data.get("profile", "default"),
            weights=_weights(weights, "scoring.weights") if weights is not None else None,
            profiles={
                name: _weights(values, f"scoring.profiles.{name}")
                for name, values in (scoring_data.get("profiles") or {}).items()
            },
        )

    if "pipeline" in data:
        pipeline_data = _section(data, "pipeline")
        config.pipeline = PipelineConfig(
            max_workers=int(pipeline_data.get("max_workers", 4)),
            repo_workers=int(pipeline_data.get("repo_workers", 2)),
            fail_fast=bool(pipeline_data.get("fail_fast", False)),
            skip=list(pipeline_data.get("skip", [])),
            scan_secrets=bool(pipeline_data.get("scan_secrets", True)),
        )

    if "ci" in data:
        ci_data = _section(data, "ci")
        config.ci = CIConfig(
            fail_on_warning=ci_data.get("fail_on_warning", True),
            json_output=ci_data.get("json_output", False),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> ReposcoreConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        ReposcoreConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
        ValueError: If the file contains invalid settings
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {found_path}")
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = ReposcoreConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return """# Reposcore Configuration

# Output settings
output:
  format: "text"  # text, json, markdown
  # path: "scorecard.md"

# External tools (skipped automatically when their language is not detected)
tools:
  disabled: []           # e.g. ["spotbugs", "cargo-audit"]
  lint_timeout: 30       # seconds per linter run
  audit_timeout: 60      # seconds per dependency audit
  blame_timeout: 10      # seconds per git command
  license_lookups: true  # query npm / PyPI / crates.io for dependency licenses
  license_timeout: 10
  # timeouts:
  #   spotbugs: 300

# Scoring weights (must sum to 1.0)
scoring:
  profile: "default"
  # weights:
  #   craft: 0.25
  #   reliability: 0.15
  #   documentation: 0.15
  #   security: 0.15
  #   impact: 0.20
  #   collaboration: 0.10
  # profiles:
  #   strict-security:
  #     craft: 0.20
  #     reliability: 0.20
  #     documentation: 0.10
  #     security: 0.35
  #     impact: 0.10
  #     collaboration: 0.05

# Concurrency
pipeline:
  max_workers: 4     # stages run concurrently per repository
  repo_workers: 2    # repositories analyzed concurrently in a batch
  fail_fast: false
  scan_secrets: true
  skip: []           # static_analysis, security, coverage, documentation, ownership, licenses, signals

# CI/CD settings
ci:
  fail_on_warning: true  # exit 2 when any stage degraded
  json_output: false
"""
