"""Reposcore CLI interface.

Commands:
- analyze: Analyze and score one working copy
- batch: Analyze several working copies concurrently
- check: Report external tool availability
- profiles: List the available weight profiles
- init: Initialize Reposcore configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON logs and JSON output
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from reposcore import __version__
from reposcore.config import (
    OUTPUT_FORMATS,
    ReposcoreConfig,
    create_default_config,
    load_config,
)
from reposcore.scoring import ScoringWeights
from reposcore.stores import InMemoryWeightProfileStore, WeightProfile
from reposcore.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="reposcore",
    help="Repository analysis and scoring",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: ReposcoreConfig = ReposcoreConfig()
_ci: bool = False
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"reposcore {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON logs and JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Reposcore - repository analysis and scoring.

    Runs linters, dependency audits, secret scanning, coverage, documentation,
    ownership and license analysis over checked-out repositories and computes
    a six-dimension score.
    """
    global _config, _ci

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)
    _ci = ci

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        _logger.error(f"Invalid config: {e}")
        raise typer.Exit(1)


# =============================================================================
# Helpers
# =============================================================================


def build_profile_store(config: ReposcoreConfig) -> InMemoryWeightProfileStore:
    """Weight profile store with presets plus profiles from the config file."""
    store = InMemoryWeightProfileStore(include_presets=True)
    for name, weights in config.scoring.profiles.items():
        store.save(WeightProfile(name=name, weights=weights, description="From configuration"))
    return store


def resolve_weights(config: ReposcoreConfig, profile: str | None = None) -> ScoringWeights:
    """Explicit config weights win; otherwise the named (or configured) profile.

    Raises:
        typer.Exit: If the profile does not exist
    """
    if profile is None and config.scoring.weights is not None:
        return config.scoring.weights

    store = build_profile_store(config)
    name = profile or config.scoring.profile
    try:
        return store.resolve(name)
    except KeyError:
        available = ", ".join(p.name for p in store.list_profiles())
        _logger.error(f"Unknown weight profile '{name}'. Available: {available}")
        raise typer.Exit(1)


def resolve_format(output_format: str | None) -> str:
    if output_format is None:
        output_format = "json" if (_ci or _config.ci.json_output) else _config.output.format
    if output_format not in OUTPUT_FORMATS:
        _logger.error(f"Invalid format: {output_format}. Valid: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(1)
    return output_format


def emit(content: str, output: Path | None) -> None:
    """Write rendered content to a file, or print it."""
    from reposcore.templates import ScorecardRenderer

    if output is None:
        typer.echo(content, nl=False)
        return
    ScorecardRenderer().render_to_file(content, output)
    typer.echo(f"Scorecard written to: {output}", err=True)


def exit_for(degraded: bool) -> None:
    if degraded and _config.ci.fail_on_warning:
        raise typer.Exit(2)
    raise typer.Exit(0)


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    path: Annotated[
        Path,
        typer.Argument(help="Working copy to analyze"),
    ] = Path("."),
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: text, json, markdown",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (overrides config)",
        ),
    ] = None,
    skip: Annotated[
        list[str] | None,
        typer.Option(
            "--skip",
            "-s",
            help="Stage to skip (repeatable)",
        ),
    ] = None,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Weight profile name",
        ),
    ] = None,
) -> None:
    """Analyze and score one working copy.

    Exit codes:
        0: Scored successfully
        1: Fatal error (missing or unreadable path, invalid options)
        2: Scored, but one or more stages degraded
    """
    from reposcore.models import Repository, RepositoryError
    from reposcore.pipeline import AnalysisPipeline, PipelineOptions
    from reposcore.templates import ScorecardRenderer

    output_format = resolve_format(format)
    output_path = output or (Path(_config.output.path) if _config.output.path else None)
    weights = resolve_weights(_config, profile)

    try:
        options = PipelineOptions(
            skip=frozenset(_config.pipeline.skip) | frozenset(skip or []),
            max_workers=_config.pipeline.max_workers,
            scan_secrets=_config.pipeline.scan_secrets,
        )
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    repository = Repository.from_path(path)
    _logger.info(f"Analyzing repository: {repository.path}")

    pipeline = AnalysisPipeline(config=_config, weights=weights)
    try:
        scorecard = pipeline.run(repository, options)
    except RepositoryError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if scorecard.degraded:
        _logger.warning(f"Encountered {len(scorecard.analysis.errors)} warning(s)")
        for error in scorecard.analysis.errors:
            _logger.warning(f"  [{error.component}] {error.message}")

    try:
        emit(ScorecardRenderer().render(scorecard, output_format), output_path)
    except (OSError, ValueError) as e:
        _logger.error(f"Rendering failed: {e}")
        raise typer.Exit(1)

    exit_for(scorecard.degraded)


# =============================================================================
# batch command
# =============================================================================


@app.command()
def batch(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Working copies to analyze"),
    ],
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            min=1,
            help="Repositories analyzed concurrently (overrides config)",
        ),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: text, json, markdown",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path",
        ),
    ] = None,
    fail_fast: Annotated[
        bool,
        typer.Option(
            "--fail-fast",
            help="Cancel remaining repositories after the first failure",
        ),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Weight profile name",
        ),
    ] = None,
) -> None:
    """Analyze several working copies and report an aggregate score.

    Exit codes:
        0: Every repository scored
        1: One or more repositories failed
        2: All scored, but one or more stages degraded
    """
    from reposcore.pipeline import AnalysisPipeline, BatchRunner, PipelineOptions
    from reposcore.templates import ScorecardRenderer

    output_format = resolve_format(format)
    weights = resolve_weights(_config, profile)

    runner = BatchRunner(
        AnalysisPipeline(config=_config, weights=weights),
        max_workers=workers or _config.pipeline.repo_workers,
        options=PipelineOptions.from_config(_config),
        fail_fast=fail_fast or _config.pipeline.fail_fast,
    )
    try:
        result = runner.run(paths)
    except KeyboardInterrupt:
        runner.cancel()
        _logger.error("Interrupted")
        raise typer.Exit(1)

    try:
        emit(ScorecardRenderer().render_batch(result, output_format), output)
    except (OSError, ValueError) as e:
        _logger.error(f"Rendering failed: {e}")
        raise typer.Exit(1)

    if result.failed:
        raise typer.Exit(1)
    exit_for(result.degraded)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Report external tool availability.

    Only git is required. Missing linters and auditors are reported as
    warnings: their stages degrade instead of failing.

    Exit codes:
        0: All tools available
        1: A required tool is missing
        2: Only optional tools missing (warnings)
    """
    from reposcore.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(skip_tools=_config.tools.disabled)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo("\nPreflight Check Results\n")

        for check_result in result.checks:
            status = "ok " if check_result.available else "missing"
            version_str = f" ({check_result.version})" if check_result.version else ""
            required_str = " [required]" if check_result.required else " [optional]"

            typer.echo(f"  {status} {check_result.name}{version_str}{required_str}")
            if check_result.available and check_result.path:
                typer.echo(f"     {check_result.path}")
            elif not check_result.available:
                typer.echo(f"     {check_result.message}")

        typer.echo()

    if result.errors:
        if not json_output:
            typer.echo("Preflight check FAILED")
            for error in result.errors:
                typer.echo(f"   - {error}")
        raise typer.Exit(1)
    elif result.warnings:
        if not json_output:
            typer.echo("Preflight check passed with WARNINGS")
            for warning in result.warnings:
                typer.echo(f"   - {warning}")
        raise typer.Exit(2)
    else:
        if not json_output:
            typer.echo("All preflight checks passed")
        raise typer.Exit(0)


# =============================================================================
# profiles command
# =============================================================================


@app.command()
def profiles(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """List weight profiles (built-in presets plus configured profiles)."""
    store = build_profile_store(_config)

    if json_output:
        typer.echo(json.dumps([p.to_dict() for p in store.list_profiles()], indent=2))
        raise typer.Exit(0)

    for p in store.list_profiles():
        marker = "*" if p.name == _config.scoring.profile else " "
        weights = ", ".join(f"{k}={v:.2f}" for k, v in p.weights.to_dict().items())
        typer.echo(f"{marker} {p.name}: {weights}")
        if p.description:
            typer.echo(f"    {p.description}")
    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize Reposcore configuration.

    Creates .reposcore/config.yaml with the commented default settings.
    """
    config_dir = Path(".reposcore")
    config_dir.mkdir(exist_ok=True)
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config())
    _logger.info(f"Created config: {config_file}")

    typer.echo("\nReposcore configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
