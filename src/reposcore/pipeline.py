"""Analysis pipeline orchestrator.

Runs the stages for one working copy and scores the result:

1. Inventory (sequential; every other stage depends on it)
2-8. Static analysis, security, coverage, documentation, ownership,
     licenses and test/CI signals, concurrently on a thread pool
9. Scoring, once every stage has completed or degraded

A stage failure degrades only that stage's section to its default and is
recorded as a recoverable AnalysisError. The only exception that escapes
``AnalysisPipeline.run`` besides cancellation is ``RepositoryError``.

``BatchRunner`` repeats the pipeline for several working copies with a
bounded worker pool, and ``aggregate_scores`` reduces the per-repository
scores into one job-level ScoreResult.
"""

import logging
import shutil
import tempfile
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import Any

from reposcore import __version__
from reposcore.analyzers import ToolRegistry, setup_default_adapters
from reposcore.analyzers.coverage import CoverageAnalyzer
from reposcore.analyzers.documentation import DocumentationAnalyzer
from reposcore.analyzers.inventory import InventoryAnalyzer
from reposcore.analyzers.license import LicenseAnalyzer, LicenseMetadataClient
from reposcore.analyzers.ownership import OwnershipAnalyzer
from reposcore.analyzers.security import SecurityAnalyzer
from reposcore.analyzers.signals import detect_ci, detect_tests
from reposcore.analyzers.static_analysis import StaticAnalyzer, find_sarif_reports
from reposcore.config import PIPELINE_STAGES, ReposcoreConfig
from reposcore.models import (
    SCORE_DIMENSIONS,
    AnalysisError,
    AnalysisResult,
    AnalysisStatus,
    InventoryResult,
    Repository,
    RepositoryError,
    ScoreResult,
    SubScore,
)
from reposcore.scoring import ScoringEngine, ScoringWeights
from reposcore.utils.process import CancellationToken, OperationCancelled

logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    """Options for controlling pipeline execution.

    Attributes:
        skip: Stages not to run (their sections keep the documented defaults)
        max_workers: Concurrent stages
        scan_secrets: Run the secret scanner in the security stage
    """

    skip: frozenset[str] = frozenset()
    max_workers: int = 4
    scan_secrets: bool = True

    def __post_init__(self) -> None:
        """Validate stage names."""
        self.skip = frozenset(self.skip)
        unknown = sorted(self.skip - set(PIPELINE_STAGES))
        if unknown:
            raise ValueError(f"Unknown stages: {unknown}. Valid: {PIPELINE_STAGES}")

    @classmethod
    def from_config(cls, config: ReposcoreConfig) -> "PipelineOptions":
        return cls(
            skip=frozenset(config.pipeline.skip),
            max_workers=config.pipeline.max_workers,
            scan_secrets=config.pipeline.scan_secrets,
        )


@dataclass
class StageOutcome:
    """Values a stage contributes to the AnalysisResult, plus its warnings."""

    values: dict[str, Any]
    warnings: list[str] = field(default_factory=list)


@dataclass
class Scorecard:
    """Analysis result and score for one repository."""

    analysis: AnalysisResult
    score: ScoreResult

    @property
    def degraded(self) -> bool:
        """True if any stage degraded to its default."""
        return self.analysis.has_errors()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"analysis": self.analysis.to_dict(), "score": self.score.to_dict()}


class AnalysisPipeline:
    """Orchestrates all analyzers for one working copy.

    Collaborators are injected so tests can substitute them: the tool
    registry (linters, auditors), the license metadata client and the
    scoring weights.
    """

    def __init__(
        self,
        config: ReposcoreConfig | None = None,
        registry: ToolRegistry | None = None,
        weights: ScoringWeights | None = None,
        license_client: LicenseMetadataClient | None = None,
    ) -> None:
        """Initialize the analysis pipeline.

        Args:
            config: Reposcore configuration (uses defaults if None)
            registry: Tool registry (a fresh default registry if None)
            weights: Scoring weights (config weights or defaults if None)
            license_client: Registry client for dependency licenses
        """
        self.config = config or ReposcoreConfig()
        self.registry = registry or setup_default_adapters(ToolRegistry())
        self.scoring = ScoringEngine(weights or self.config.scoring.weights)
        self.license_client = license_client

    def run(
        self,
        repository: Repository,
        options: PipelineOptions | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Scorecard:
        """Execute the full analysis pipeline and score the result.

        Args:
            repository: Working copy to analyze
            options: Pipeline execution options (from config if None)
            cancel_token: Optional job cancellation token

        Returns:
            Scorecard with the AnalysisResult and its ScoreResult

        Raises:
            RepositoryError: If the working copy is missing or unreadable
            OperationCancelled: If the job was cancelled
        """
        options = options or PipelineOptions.from_config(self.config)

        for warning in repository.validate():
            logger.warning("Repository warning: %s", warning)

        result = AnalysisResult(
            repository_path=repository.path,
            repository_name=repository.name,
            timestamp=datetime.now(UTC),
            status=AnalysisStatus.RUNNING,
            tool_versions={"reposcore": __version__},
        )
        logger.info("Starting analysis pipeline for %s", repository.name)

        # Stage 1: Inventory
        result.inventory = self._run_inventory(repository, result, cancel_token)

        # Stages 2-8: concurrent
        stages = self._stages(repository, result.inventory, options, cancel_token)
        self._run_concurrent(stages, result, options.max_workers, cancel_token)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        if any(not e.recoverable for e in result.errors):
            result.status = AnalysisStatus.FAILED
        else:
            result.status = AnalysisStatus.COMPLETED

        # Stage 9: Scoring
        score = self.scoring.score(result)
        logger.info(
            "Analysis complete: %s, overall score %d (%d warnings)",
            result.status.value,
            score.overall,
            len(result.errors),
        )
        return Scorecard(analysis=result, score=score)

    # =========================================================================
    # Stage execution
    # =========================================================================

    def _run_inventory(
        self,
        repository: Repository,
        result: AnalysisResult,
        cancel_token: CancellationToken | None,
    ) -> InventoryResult:
        logger.info("Stage 1: Building inventory")
        try:
            return InventoryAnalyzer(repository.path).analyze(cancel_token)
        except OperationCancelled:
            raise
        except Exception as e:
            result.add_error(
                AnalysisError(component="inventory", message=f"Inventory failed: {e}")
            )
            logger.warning("Inventory failed: %s", e)
            return InventoryResult()

    def _stages(
        self,
        repository: Repository,
        inventory: InventoryResult,
        options: PipelineOptions,
        cancel_token: CancellationToken | None,
    ) -> dict[str, Callable[[], StageOutcome]]:
        path = repository.path
        stages: dict[str, Callable[[], StageOutcome]] = {
            "static_analysis": lambda: self._static_analysis(path, inventory, cancel_token),
            "security": lambda: self._security(path, inventory, options, cancel_token),
            "coverage": lambda: StageOutcome({"coverage": CoverageAnalyzer(path).analyze()}),
            "documentation": lambda: StageOutcome(
                {"documentation": DocumentationAnalyzer(path).analyze()}
            ),
            "ownership": lambda: self._ownership(repository, cancel_token),
            "licenses": lambda: self._licenses(path, cancel_token),
            "signals": lambda: StageOutcome(
                {"tests": detect_tests(inventory), "ci": detect_ci(path)}
            ),
        }
        for name in options.skip:
            logger.info("Skipping stage %s", name)
        return {name: stage for name, stage in stages.items() if name not in options.skip}

    def _run_concurrent(
        self,
        stages: dict[str, Callable[[], StageOutcome]],
        result: AnalysisResult,
        max_workers: int,
        cancel_token: CancellationToken | None,
    ) -> None:
        """Run stages on a thread pool and merge their outcomes in stage order."""
        if not stages:
            return

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stage") as executor:
            futures = {name: executor.submit(stage) for name, stage in stages.items()}

            for name, future in futures.items():
                try:
                    outcome = future.result()
                except OperationCancelled:
                    if cancel_token is not None:
                        cancel_token.cancel()
                    raise
                except Exception as e:
                    result.add_error(AnalysisError(component=name, message=f"{name} failed: {e}"))
                    logger.warning("Stage %s failed: %s", name, e)
                    continue

                for key, value in outcome.values.items():
                    setattr(result, key, value)
                for warning in outcome.warnings:
                    result.add_error(AnalysisError(component=name, message=warning))

    # =========================================================================
    # Stages with warnings or injected collaborators
    # =========================================================================

    def _static_analysis(
        self,
        path: Path,
        inventory: InventoryResult,
        cancel_token: CancellationToken | None,
    ) -> StageOutcome:
        analyzer = StaticAnalyzer(path, self.registry.create_linters(self.config.tools))
        static = analyzer.analyze(
            inventory.language_names,
            cancel_token,
            sarif_reports=find_sarif_reports([record.path for record in inventory.files]),
        )
        return StageOutcome({"static_analysis": static}, static.warnings)

    def _security(
        self,
        path: Path,
        inventory: InventoryResult,
        options: PipelineOptions,
        cancel_token: CancellationToken | None,
    ) -> StageOutcome:
        analyzer = SecurityAnalyzer(path, self.registry.create_auditors(self.config.tools))
        security = analyzer.analyze(inventory, cancel_token, scan_secrets=options.scan_secrets)
        return StageOutcome({"security": security}, security.warnings)

    def _ownership(
        self,
        repository: Repository,
        cancel_token: CancellationToken | None,
    ) -> StageOutcome:
        if not repository.is_git_repo:
            logger.info("Skipping ownership: not a git repository")
            return StageOutcome({"ownership": []})
        analyzer = OwnershipAnalyzer(repository.path, timeout=self.config.tools.blame_timeout)
        records = analyzer.analyze(cancel_token)
        return StageOutcome({"ownership": records}, analyzer.warnings)

    def _licenses(self, path: Path, cancel_token: CancellationToken | None) -> StageOutcome:
        tools = self.config.tools
        analyzer = LicenseAnalyzer(
            path,
            client=self.license_client,
            resolve_dependencies=tools.license_lookups,
            timeout=tools.license_timeout,
        )
        report = analyzer.analyze(cancel_token)
        return StageOutcome({"licenses": report}, analyzer.warnings)


# =============================================================================
# Working copies
# =============================================================================


class WorkingCopy:
    """Exclusive working-copy directory, removed on exit.

    The directory is deleted whether the ``with`` block succeeds or raises.

    Example:
        with WorkingCopy.create() as copy:
            checkout_into(copy.path)
            pipeline.run(copy.repository)
    """

    def __init__(self, path: Path | str, name: str | None = None) -> None:
        self.path = Path(path)
        self.name = name or self.path.name

    @classmethod
    def create(cls, parent: Path | None = None, prefix: str = "reposcore-") -> "WorkingCopy":
        """Create an empty temporary directory for a checkout."""
        return cls(Path(tempfile.mkdtemp(prefix=prefix, dir=parent)))

    @property
    def repository(self) -> Repository:
        return Repository.from_path(self.path, name=self.name)

    def __enter__(self) -> "WorkingCopy":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """Remove the working copy directory (no-op if already gone)."""
        if not self.path.exists():
            return
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            logger.warning("Could not remove working copy %s: %s", self.path, e)
            return
        logger.debug("Removed working copy %s", self.path)


# =============================================================================
# Batches
# =============================================================================


@dataclass
class BatchItem:
    """Outcome for one repository in a batch.

    Exactly one of ``scorecard`` (success), ``error`` (failed) or
    ``skipped`` (cancelled before or while running) describes the outcome.
    """

    path: Path
    scorecard: Scorecard | None = None
    error: str | None = None
    skipped: bool = False

    @property
    def succeeded(self) -> bool:
        return self.scorecard is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "scorecard": self.scorecard.to_dict() if self.scorecard else None,
            "error": self.error,
            "skipped": self.skipped,
        }


@dataclass
class BatchResult:
    """Per-repository outcomes in submission order, plus the job-level score."""

    items: list[BatchItem] = field(default_factory=list)
    aggregate: ScoreResult | None = None

    @property
    def failed(self) -> list[BatchItem]:
        return [item for item in self.items if item.error is not None]

    @property
    def degraded(self) -> bool:
        return any(item.scorecard.degraded for item in self.items if item.scorecard)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "items": [item.to_dict() for item in self.items],
            "aggregate": self.aggregate.to_dict() if self.aggregate else None,
        }


class BatchRunner:
    """Runs independent pipelines for several working copies concurrently.

    One repository's failure is recorded and never aborts its siblings
    (unless ``fail_fast`` is set). ``cancel()`` skips unstarted repositories
    and terminates tool processes of running ones.
    """

    def __init__(
        self,
        pipeline: AnalysisPipeline,
        max_workers: int = 2,
        options: PipelineOptions | None = None,
        fail_fast: bool = False,
    ) -> None:
        """Initialize the runner.

        Args:
            pipeline: Pipeline shared by all repositories
            max_workers: Concurrent repositories
            options: Pipeline options for every run
            fail_fast: Cancel remaining work after the first failure
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.pipeline = pipeline
        self.max_workers = max_workers
        self.options = options
        self.fail_fast = fail_fast
        self.cancel_token = CancellationToken()

    def cancel(self) -> None:
        """Cancel the batch: skip unstarted work, terminate running tools."""
        logger.info("Cancelling batch")
        self.cancel_token.cancel()

    def run(self, repositories: Iterable[Repository | Path | str]) -> BatchResult:
        """Analyze every repository.

        Args:
            repositories: Working copies (Repository objects or paths)

        Returns:
            BatchResult with one item per repository, in input order
        """
        repos = [r if isinstance(r, Repository) else Repository.from_path(r) for r in repositories]
        logger.info("Analyzing %d repositories with %d workers", len(repos), self.max_workers)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="repo") as executor:
            futures = [executor.submit(self._run_one, repo) for repo in repos]
            items = [future.result() for future in futures]

        scores = [item.scorecard.score for item in items if item.scorecard]
        batch = BatchResult(items=items, aggregate=aggregate_scores(scores, self.pipeline.scoring.weights))
        logger.info(
            "Batch complete: %d succeeded, %d failed, %d skipped",
            len(scores),
            len(batch.failed),
            sum(1 for item in items if item.skipped),
        )
        return batch

    def _run_one(self, repository: Repository) -> BatchItem:
        if self.cancel_token.cancelled:
            logger.info("Skipping %s: batch cancelled", repository.name)
            return BatchItem(path=repository.path, skipped=True)

        try:
            scorecard = self.pipeline.run(repository, self.options, self.cancel_token)
        except OperationCancelled:
            return BatchItem(path=repository.path, skipped=True)
        except RepositoryError as e:
            logger.error("Repository %s failed: %s", repository.name, e)
            self._after_failure()
            return BatchItem(path=repository.path, error=str(e))
        except Exception as e:
            logger.error("Pipeline failed for %s: %s", repository.name, e)
            self._after_failure()
            return BatchItem(path=repository.path, error=f"{type(e).__name__}: {e}")

        return BatchItem(path=repository.path, scorecard=scorecard)

    def _after_failure(self) -> None:
        if self.fail_fast:
            self.cancel()


# =============================================================================
# Aggregation
# =============================================================================


def aggregate_scores(
    scores: Sequence[ScoreResult],
    weights: ScoringWeights | None = None,
) -> ScoreResult | None:
    """Reduce per-repository scores into one job-level score.

    Each dimension is the mean over repositories; the overall score is the
    weighted sum of those means. Recommendations are the de-duplicated union
    in first-seen order.

    Returns:
        Aggregate ScoreResult, or None when there are no scores
    """
    if not scores:
        return None

    engine = ScoringEngine(weights)
    count = len(scores)
    means = {
        name: sum(getattr(score, name).value for score in scores) / count
        for name in SCORE_DIMENSIONS
    }
    sub_scores = {
        name: SubScore(name=name, value=round(mean, 2), factors={"repositories": count})
        for name, mean in means.items()
    }
    recommendations = tuple(dict.fromkeys(r for score in scores for r in score.recommendations))

    return ScoreResult(
        overall=engine.overall(means),
        recommendations=recommendations,
        weights=engine.weights.to_dict(),
        **sub_scores,
    )
