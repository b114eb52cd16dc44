"""EvaluationJobService — the caller-facing surface for evaluation jobs."""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from qbank_eval.config.domain.evaluation import EvaluationConfig
from qbank_eval.core.clock import Clock, utc_now
from qbank_eval.evaluation.application.controller import BatchOutcome, JobController
from qbank_eval.evaluation.domain.case_generator import (
    estimate_duration_seconds,
    generate_test_cases,
)
from qbank_eval.evaluation.domain.observer import EvaluationObserver
from qbank_eval.evaluation.domain.requester import Requester
from qbank_eval.evaluation.domain.summary import EvaluationSummary
from qbank_eval.evaluation.infrastructure.errors import PermissionDeniedError
from qbank_eval.evaluation.infrastructure.summary_store import SummaryRepository
from qbank_eval.job.domain.error_entry import ErrorContext, ErrorDetail, ErrorEntry
from qbank_eval.job.domain.job import EvaluationJob, JobProgress, PendingJob
from qbank_eval.job.domain.live_log import LiveLogEntry, LiveLogType
from qbank_eval.job.infrastructure.errors import TerminalJobError
from qbank_eval.job.infrastructure.repository import JobRepository
from qbank_eval.review.domain.item import ReviewItem
from qbank_eval.review.domain.policy import ReviewPolicy
from qbank_eval.review.domain.queue import ReviewQueue

MANUALLY_STOPPED = "MANUALLY_STOPPED"


@dataclass(frozen=True)
class CreatedJob:
    job_id: str
    total_tests: int
    estimated_seconds: int


@dataclass(frozen=True)
class EnqueueReport:
    added_count: int
    total_results: int
    failed_count: int = 0


def _new_job_id() -> str:
    return uuid.uuid4().hex[:20]


class EvaluationJobService:
    """Create, process, cancel and inspect evaluation jobs."""

    def __init__(
        self,
        repository: JobRepository,
        summaries: SummaryRepository,
        controller: JobController,
        review_queue: ReviewQueue,
        observer: EvaluationObserver,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = _new_job_id,
    ) -> None:
        self._repository = repository
        self._summaries = summaries
        self._controller = controller
        self._review_queue = review_queue
        self._observer = observer
        self._clock = clock
        self._id_factory = id_factory

    async def create_job(self, user_id: str, config: EvaluationConfig) -> CreatedJob:
        """Materialize every test case and store the job as pending."""
        test_cases = generate_test_cases(config)
        now = self._clock()
        job = PendingJob(
            id=self._id_factory(),
            user_id=user_id,
            config=config,
            test_cases=test_cases,
            progress=JobProgress(total_tests=len(test_cases)),
            created_at=now,
            updated_at=now,
        )
        await self._repository.create(job)

        estimated = estimate_duration_seconds(config)
        self._observer.job_created(
            job_id=job.id,
            user_id=user_id,
            total_tests=len(test_cases),
            estimated_seconds=estimated,
        )
        return CreatedJob(
            job_id=job.id, total_tests=len(test_cases), estimated_seconds=estimated
        )

    async def process_batch(
        self,
        job_id: str,
        start_index: int = 0,
        batch_size: int | None = None,
        process_all_remaining: bool = False,
    ) -> BatchOutcome:
        return await self._controller.process_batch(
            job_id=job_id,
            start_index=start_index,
            batch_size=batch_size,
            process_all_remaining=process_all_remaining,
        )

    async def cancel_job(self, job_id: str, reason: str, requester: Requester) -> None:
        """Request cooperative cancellation; the controller honours it at the next chunk boundary.

        Raises:
            JobNotFoundError: if the job does not exist.
            PermissionDeniedError: if the requester is neither owner nor admin.
            TerminalJobError: if the job already finished.
        """
        job = await self._repository.require(job_id)
        if job.user_id != requester.user_id and not requester.is_admin:
            raise PermissionDeniedError(job_id=job_id, user_id=requester.user_id)
        if job.is_terminal or not await self._repository.request_cancellation(
            job_id, reason
        ):
            raise TerminalJobError(job_id=job_id, status=str(job.status))

        await self._repository.add_live_log(
            job_id,
            LiveLogEntry(
                type=LiveLogType.CANCEL_REQUEST,
                timestamp=self._clock(),
                message=f"Cancellation requested by user {requester.user_id}",
                details={"reason": reason, "requester": requester.user_id},
            ),
        )
        self._observer.cancellation_requested(
            job_id=job_id, requester=requester.user_id, reason=reason
        )

    async def get_job(self, job_id: str) -> EvaluationJob | None:
        return await self._repository.get(job_id)

    async def get_summary(self, job_id: str) -> EvaluationSummary | None:
        return await self._summaries.get(job_id)

    async def enqueue_evaluated_questions(
        self, job_id: str, score_threshold: int = 70, only_failing: bool = False
    ) -> EnqueueReport:
        """Add a job's AI-scored questions to the review queue after the fact.

        With ``only_failing`` only questions below ``score_threshold`` or
        graded major_revision/reject are added. A question the queue rejects
        is reported through the observer and counted in ``failed_count``;
        the remaining questions are still added.
        """
        await self._repository.require(job_id)
        results = await self._repository.list_results(job_id)

        added = 0
        failed = 0
        for result in results:
            if result.draft is None or result.ai_scores is None:
                continue
            if only_failing and not ReviewPolicy.is_failing(
                result.ai_scores, score_threshold
            ):
                continue
            try:
                item = ReviewItem.from_result(job_id, result, created_at=self._clock())
                await self._review_queue.enqueue(item)
            except Exception as exc:
                self._observer.review_enqueue_failed(
                    job_id=job_id,
                    test_index=result.test_index,
                    reason=str(exc) or type(exc).__name__,
                )
                failed += 1
                continue
            added += 1
        return EnqueueReport(
            added_count=added, total_results=len(results), failed_count=failed
        )

    async def find_stalled_jobs(self, older_than: timedelta) -> list[EvaluationJob]:
        """Active jobs whose last update is older than ``older_than``."""
        cutoff = self._clock() - older_than
        return [job for job in await self._repository.find_active() if job.updated_at < cutoff]

    async def stop_stalled_jobs(self, older_than: timedelta) -> list[str]:
        """Mark stalled jobs failed with code MANUALLY_STOPPED; returns their ids."""
        stopped: list[str] = []
        minutes = int(older_than.total_seconds() // 60)
        for job in await self.find_stalled_jobs(older_than):
            message = f"Stopped after no progress for {minutes} minutes"
            entry = ErrorEntry(
                timestamp=self._clock(),
                error=ErrorDetail(message=message, code=MANUALLY_STOPPED),
                context=ErrorContext(
                    fatal=True,
                    details={"completed_tests": job.progress.completed_tests},
                ),
            )
            if not await self._repository.fail(job.id, entry):
                continue
            await self._repository.add_live_log(
                job.id,
                LiveLogEntry(
                    type=LiveLogType.FAILED,
                    timestamp=self._clock(),
                    message=f"Evaluation stopped: {message}",
                    success=False,
                ),
            )
            self._observer.job_failed(job_id=job.id, reason=message)
            stopped.append(job.id)
        return stopped

