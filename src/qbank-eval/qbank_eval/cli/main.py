"""CLI entrypoint for qbank-eval — typer app for creating, driving and inspecting jobs."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import structlog
import typer

from qbank_eval.batching.application.sizer import BatchSizer
from qbank_eval.batching.domain.complexity import StaticTaxonomyComplexity
from qbank_eval.batching.infrastructure.observer import StructlogBatchingObserver
from qbank_eval.batching.infrastructure.process_probe import ProcessLoadProbe
from qbank_eval.config.domain.config import AppConfig
from qbank_eval.config.infrastructure.observer import StructlogConfigObserver
from qbank_eval.config.infrastructure.yaml_loader import YamlConfigLoader
from qbank_eval.core.errors import QbankEvalError
from qbank_eval.evaluation.application.controller import BatchOutcome, JobController
from qbank_eval.evaluation.application.executor import BatchExecutor
from qbank_eval.evaluation.application.finalizer import Finalizer
from qbank_eval.evaluation.application.service import EvaluationJobService
from qbank_eval.evaluation.application.worker import ContinuationWorker
from qbank_eval.evaluation.domain.observer import EvaluationObserver
from qbank_eval.evaluation.domain.requester import Requester
from qbank_eval.evaluation.domain.summary import EvaluationSummary
from qbank_eval.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from qbank_eval.evaluation.infrastructure.continuation_queue import (
    InMemoryContinuationQueue,
)
from qbank_eval.evaluation.infrastructure.observer import StructlogEvaluationObserver
from qbank_eval.evaluation.infrastructure.progress_observer import (
    ProgressEvaluationObserver,
)
from qbank_eval.evaluation.infrastructure.summary_store import SummaryRepository
from qbank_eval.generation.infrastructure.litellm import LiteLLMQuestionGenerator
from qbank_eval.generation.infrastructure.observer import StructlogGenerationObserver
from qbank_eval.job.domain.job import EvaluationJob
from qbank_eval.job.infrastructure.repository import JobRepository
from qbank_eval.review.domain.policy import ReviewPolicy
from qbank_eval.review.infrastructure.store_queue import DocumentStoreReviewQueue
from qbank_eval.scoring.infrastructure.litellm import LiteLLMQuestionScorer
from qbank_eval.scoring.infrastructure.observer import StructlogScoringObserver
from qbank_eval.store.infrastructure.json_file import JsonFileDocumentStore

app = typer.Typer(add_completion=False)

_CONFIG_OPTION = typer.Option(
    Path("./qbank-eval.yaml"), "--config", "-c", help="Path to qbank-eval config YAML"
)
_LOG_FORMAT_OPTION = typer.Option(
    "console", "--log-format", help="Log format: 'console' or 'json'"
)

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


@dataclass(frozen=True)
class _Wiring:
    service: EvaluationJobService
    worker: ContinuationWorker


def _build(config: AppConfig, log_format: str) -> _Wiring:
    """Assemble the job service and its continuation worker from config."""
    store = JsonFileDocumentStore(path=config.store.path)
    repository = JobRepository(store=store)
    summaries = SummaryRepository(store=store)
    review_queue = DocumentStoreReviewQueue(store=store)

    load_probe = ProcessLoadProbe(active_jobs=repository.count_active)
    sizer = BatchSizer(
        load_probe=load_probe,
        taxonomy=StaticTaxonomyComplexity(),
        observer=StructlogBatchingObserver(),
        max_safe=config.batching.max_safe_batch_size,
        default=config.batching.default_batch_size,
    )

    generator = LiteLLMQuestionGenerator(
        config=config.generation,
        observer=StructlogGenerationObserver(),
        on_api_call=load_probe.record_api_call,
    )
    scorer = (
        LiteLLMQuestionScorer(
            config=config.scoring,
            observer=StructlogScoringObserver(),
            on_api_call=load_probe.record_api_call,
        )
        if config.scoring.enabled
        else None
    )

    observers: list[EvaluationObserver] = [StructlogEvaluationObserver()]
    if log_format != "json":
        observers.append(ProgressEvaluationObserver())
    observer = CompositeEvaluationObserver(observers=observers)

    executor = BatchExecutor(
        repository=repository,
        generator=generator,
        scorer=scorer,
        review_queue=review_queue,
        observer=observer,
        review_policy=ReviewPolicy(
            score_threshold=config.review.score_threshold,
            accuracy_threshold=config.review.accuracy_threshold,
        ),
        pipeline_models={
            name: pipeline.model
            for name, pipeline in config.generation.pipelines.items()
        },
        scoring_model=scorer.model if scorer is not None else None,
    )
    finalizer = Finalizer(repository=repository, summaries=summaries, observer=observer)
    queue = InMemoryContinuationQueue()
    controller = JobController(
        repository=repository,
        sizer=sizer,
        executor=executor,
        finalizer=finalizer,
        continuation=queue,
        observer=observer,
        invocation_budget_seconds=config.batching.invocation_budget_seconds,
    )
    service = EvaluationJobService(
        repository=repository,
        summaries=summaries,
        controller=controller,
        review_queue=review_queue,
        observer=observer,
    )
    return _Wiring(service=service, worker=ContinuationWorker(queue, controller))


def _load(config_path: Path, log_format: str) -> tuple[AppConfig, _Wiring]:
    _configure_structlog(log_format=log_format)
    config = YamlConfigLoader(observer=StructlogConfigObserver()).load(path=config_path)
    return config, _build(config=config, log_format=log_format)


def _execute(action: Callable[[], Awaitable[None]]) -> None:
    """Run an async command body with the CLI's error reporting."""
    try:
        asyncio.run(action())
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("Interrupted.")
        sys.exit(1)
    except QbankEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


async def _drive(
    wiring: _Wiring,
    job_id: str,
    start_index: int,
    batch_size: int | None,
    process_all_remaining: bool,
) -> BatchOutcome:
    """Run one controller invocation, then every continuation it hands off."""
    outcome = await wiring.service.process_batch(
        job_id=job_id,
        start_index=start_index,
        batch_size=batch_size,
        process_all_remaining=process_all_remaining,
    )
    report = await wiring.worker.drain()
    if report.failed_jobs:
        typer.echo(f"{_RED}Continuation failed for: {', '.join(report.failed_jobs)}{_RESET}")
    return report.last_outcome or outcome


def _print_outcome(job_id: str, outcome: BatchOutcome) -> None:
    state = f"{_GREEN}finished{_RESET}" if outcome.finished else f"{_YELLOW}paused{_RESET}"
    typer.echo(f"  {_DIM}Job{_RESET}         {job_id}  ({state})")
    if outcome.next_start_index is not None and not outcome.finished:
        typer.echo(f"  {_DIM}Resume at{_RESET}   --start-index {outcome.next_start_index}")
    if outcome.batch_size is not None:
        typer.echo(
            f"  {_DIM}Last batch{_RESET}  {outcome.batch_successes}/{outcome.batch_size} succeeded"
        )


def _print_job(job: EvaluationJob) -> None:
    progress = job.progress
    rows: list[tuple[str, str]] = [
        ("Job ID", job.id),
        ("Owner", job.user_id),
        ("Status", str(job.status)),
        ("Progress", f"{progress.completed_tests}/{progress.total_tests}"),
        ("Updated", job.updated_at.isoformat()),
        ("Errors", str(len(job.results.errors))),
    ]
    if progress.current_pipeline is not None:
        rows.append(
            (
                "Last test",
                f"{progress.current_pipeline} / {progress.current_topic} "
                f"({progress.current_difficulty})",
            )
        )
    if job.cancel_requested:
        rows.append(("Cancellation", job.cancellation_reason or "requested"))
    if job.results.overall is not None:
        overall = job.results.overall
        rows.append(("Success rate", f"{overall.overall_success_rate:.1%}"))
        rows.append(("Avg quality", f"{overall.avg_quality:.1f}"))
        rows.append(("Avg latency", f"{overall.avg_latency_ms:.0f} ms"))

    label_w = max(len(label) for label, _ in rows)
    for label, value in rows:
        typer.echo(f"  {_DIM}{label:<{label_w}}{_RESET}  {value}")


def _print_summary(summary: EvaluationSummary) -> None:
    typer.echo(f"{_CYAN}{_BOLD}  Summary for {summary.job_id}{_RESET}")
    overall = summary.overall
    typer.echo(
        f"  {_DIM}Overall{_RESET}  {overall.total_successes}/{overall.total_tests} "
        f"succeeded, quality {overall.avg_quality:.1f}"
    )
    typer.echo("")
    typer.echo(
        f"  {_DIM}{'Pipeline':<20} {'Tests':>6} {'AI avg':>7} {'AI p90':>7} "
        f"{'p50 ms':>8} {'p90 ms':>8}  ready/minor/major/reject{_RESET}"
    )
    for row in summary.by_pipeline.values():
        grades = row.readiness
        typer.echo(
            f"  {row.pipeline:<20} {row.test_count:>6} {row.avg_ai:>7.1f} {row.p90_ai:>7.1f} "
            f"{row.p50_latency_ms:>8.0f} {row.p90_latency_ms:>8.0f}  "
            f"{grades.ready}/{grades.minor}/{grades.major}/{grades.reject}"
        )


@app.command()
def start(
    config_path: Path = typer.Argument(..., help="Path to qbank-eval config YAML"),
    user: str = typer.Option("cli", "--user", help="Owner of the new job"),
    process: bool = typer.Option(
        True, "--process/--no-process", help="Process the job to completion now"
    ),
    batch_size: int | None = typer.Option(None, "--batch-size", help="Requested chunk size"),
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Create an evaluation job from the config's evaluation section."""

    async def action() -> None:
        config, wiring = _load(config_path, log_format)
        created = await wiring.service.create_job(user_id=user, config=config.evaluation)
        typer.echo(
            f"Created job {created.job_id}: {created.total_tests} tests, "
            f"~{created.estimated_seconds}s"
        )
        if process:
            outcome = await _drive(wiring, created.job_id, 0, batch_size, True)
            _print_outcome(created.job_id, outcome)

    _execute(action)


@app.command(name="process")
def process_job(
    job_id: str = typer.Argument(..., help="Job to process"),
    config_path: Path = _CONFIG_OPTION,
    start_index: int = typer.Option(0, "--start-index", min=0),
    batch_size: int | None = typer.Option(None, "--batch-size", help="Requested chunk size"),
    process_all: bool = typer.Option(
        False, "--all", help="Keep processing chunks until the job finishes"
    ),
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Process one chunk of a job, or all remaining chunks with --all."""

    async def action() -> None:
        _, wiring = _load(config_path, log_format)
        outcome = await _drive(wiring, job_id, start_index, batch_size, process_all)
        _print_outcome(job_id, outcome)

    _execute(action)


@app.command()
def cancel(
    job_id: str = typer.Argument(..., help="Job to cancel"),
    config_path: Path = _CONFIG_OPTION,
    reason: str = typer.Option("Cancelled by user", "--reason"),
    user: str = typer.Option("cli", "--user", help="Who is asking"),
    admin: bool = typer.Option(False, "--admin", help="Requester has the admin role"),
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Request cancellation; it takes effect at the next chunk boundary."""

    async def action() -> None:
        _, wiring = _load(config_path, log_format)
        await wiring.service.cancel_job(
            job_id=job_id, reason=reason, requester=Requester(user_id=user, is_admin=admin)
        )
        typer.echo(f"Cancellation requested for job {job_id}")

    _execute(action)


@app.command()
def status(
    job_id: str = typer.Argument(..., help="Job to show"),
    config_path: Path = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Show a job's status and progress."""

    async def action() -> None:
        _, wiring = _load(config_path, log_format)
        job = await wiring.service.get_job(job_id)
        if job is None:
            typer.echo(f"Evaluation job not found: {job_id}")
            raise typer.Exit(code=1)
        _print_job(job)

    _execute(action)


@app.command()
def summary(
    job_id: str = typer.Argument(..., help="Job whose summary to show"),
    config_path: Path = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Show the analytics summary of a completed job."""

    async def action() -> None:
        _, wiring = _load(config_path, log_format)
        found = await wiring.service.get_summary(job_id)
        if found is None:
            typer.echo(f"No summary for job {job_id}")
            raise typer.Exit(code=1)
        _print_summary(found)

    _execute(action)


@app.command(name="enqueue-review")
def enqueue_review(
    job_id: str = typer.Argument(..., help="Job whose questions to enqueue"),
    config_path: Path = _CONFIG_OPTION,
    threshold: int = typer.Option(70, "--threshold", min=0, max=100),
    only_failing: bool = typer.Option(False, "--only-failing"),
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Add a job's AI-scored questions to the review queue."""

    async def action() -> None:
        _, wiring = _load(config_path, log_format)
        report = await wiring.service.enqueue_evaluated_questions(
            job_id=job_id, score_threshold=threshold, only_failing=only_failing
        )
        typer.echo(
            f"Added {report.added_count} of {report.total_results} results to the review queue"
        )
        if report.failed_count:
            typer.echo(f"{_RED}{report.failed_count} questions could not be queued{_RESET}")

    _execute(action)


@app.command(name="stop-stalled")
def stop_stalled(
    config_path: Path = _CONFIG_OPTION,
    older_than_minutes: int = typer.Option(30, "--older-than-minutes", min=1),
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Fail active jobs that have made no progress recently."""

    async def action() -> None:
        _, wiring = _load(config_path, log_format)
        stopped = await wiring.service.stop_stalled_jobs(
            older_than=timedelta(minutes=older_than_minutes)
        )
        if not stopped:
            typer.echo("No stalled jobs")
            return
        for job_id in stopped:
            typer.echo(f"Stopped {job_id}")

    _execute(action)


if __name__ == "__main__":
    app()
