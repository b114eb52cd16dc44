"""JobController — the resumable chunk loop that drives a job to a terminal status."""

import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass

from qbank_eval.batching.application.sizer import BatchSizer
from qbank_eval.core.clock import Clock, utc_now
from qbank_eval.evaluation.application.executor import BatchExecution, BatchExecutor
from qbank_eval.evaluation.application.finalizer import Finalizer
from qbank_eval.evaluation.domain.continuation import BatchRequest, ContinuationQueue
from qbank_eval.evaluation.domain.observer import EvaluationObserver
from qbank_eval.evaluation.infrastructure.errors import BatchProcessingError
from qbank_eval.job.domain.error_entry import ErrorContext, ErrorDetail, ErrorEntry
from qbank_eval.job.domain.job import EvaluationJob, JobStatus
from qbank_eval.job.domain.live_log import LiveLogEntry, LiveLogType
from qbank_eval.job.infrastructure.repository import JobRepository

DEFAULT_CANCELLATION_REASON = "Cancelled by user"
DEFAULT_INVOCATION_BUDGET_SECONDS = 270.0


@dataclass(frozen=True)
class BatchOutcome:
    """What one controller invocation achieved.

    ``finished`` is True once the job is terminal. The optional fields are
    absent when no chunk ran.
    """

    success: bool
    finished: bool
    next_start_index: int | None = None
    batch_successes: int | None = None
    batch_size: int | None = None


class JobController:
    """Drives ``pending -> running -> completed | failed | cancelled``.

    Every decision is taken from durable state (the stored job and its
    results), so any invocation can resume from any start index.
    Cancellation is checked before the first chunk and after every chunk.
    With ``process_all_remaining`` the loop continues while the invocation
    budget allows another chunk of the longest duration seen so far; once it
    does not, the remaining work is handed to the continuation queue.
    """

    def __init__(
        self,
        repository: JobRepository,
        sizer: BatchSizer,
        executor: BatchExecutor,
        finalizer: Finalizer,
        continuation: ContinuationQueue,
        observer: EvaluationObserver,
        invocation_budget_seconds: float = DEFAULT_INVOCATION_BUDGET_SECONDS,
        clock: Clock = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repository = repository
        self._sizer = sizer
        self._executor = executor
        self._finalizer = finalizer
        self._continuation = continuation
        self._observer = observer
        self._budget = invocation_budget_seconds
        self._clock = clock
        self._monotonic = monotonic

    async def process_batch(
        self,
        job_id: str,
        start_index: int = 0,
        batch_size: int | None = None,
        process_all_remaining: bool = False,
    ) -> BatchOutcome:
        """Process one chunk, or chunks until done or out of budget.

        Raises:
            JobNotFoundError: if the job does not exist.
            BatchProcessingError: if a chunk failed at job level; the job has
                already been moved to failed.
        """
        job = await self._repository.require(job_id)
        if job.is_terminal:
            return BatchOutcome(success=True, finished=True)

        try:
            return await self._run(job, start_index, batch_size, process_all_remaining)
        except Exception as exc:
            await self._fail(job.id, exc)
            raise BatchProcessingError(
                job_id=job.id, reason=str(exc) or type(exc).__name__
            ) from exc

    async def _run(
        self,
        job: EvaluationJob,
        start_index: int,
        batch_size: int | None,
        process_all_remaining: bool,
    ) -> BatchOutcome:
        invocation_started = self._monotonic()
        longest_chunk = 0.0
        index = start_index
        last: BatchExecution | None = None

        if job.cancel_requested:
            await self._cancel(job)
            return BatchOutcome(success=True, finished=True, next_start_index=index)

        while True:
            total = job.progress.total_tests
            if index >= total:
                await self._finalizer.finalize(job)
                return self._outcome(index, last, finished=True)

            if job.status is JobStatus.PENDING:
                await self._repository.mark_running(job.id)

            size = await self._sizer.size(batch_size, job.test_cases[index:])
            self._observer.batch_started(
                job_id=job.id,
                start_index=index,
                batch_size=size,
                completed_tests=job.progress.completed_tests,
                total_tests=total,
            )
            chunk_started = self._monotonic()
            last = await self._executor.execute_batch(job, index, size)
            chunk_seconds = self._monotonic() - chunk_started
            longest_chunk = max(longest_chunk, chunk_seconds)
            self._observer.batch_completed(
                job_id=job.id,
                start_index=index,
                end_index=last.end_index,
                successes=last.successes,
                elapsed_seconds=chunk_seconds,
            )

            last_index = last.end_index - 1
            await self._repository.update_display_progress(
                job.id, job.test_cases[last_index], last_index
            )
            index = last.end_index

            job = await self._repository.require(job.id)
            if job.is_terminal:
                return self._outcome(index, last, finished=True)
            if job.cancel_requested:
                await self._cancel(job)
                return self._outcome(index, last, finished=True)
            if index >= total:
                await self._finalizer.finalize(job)
                return self._outcome(index, last, finished=True)
            if not process_all_remaining:
                return self._outcome(index, last, finished=False)

            elapsed = self._monotonic() - invocation_started
            if elapsed + longest_chunk > self._budget:
                await self._continuation.enqueue(
                    BatchRequest(
                        job_id=job.id,
                        start_index=index,
                        batch_size=batch_size,
                        process_all_remaining=True,
                    )
                )
                self._observer.continuation_enqueued(
                    job_id=job.id, next_start_index=index
                )
                return self._outcome(index, last, finished=False)

    async def _cancel(self, job: EvaluationJob) -> None:
        reason = job.cancellation_reason or DEFAULT_CANCELLATION_REASON
        if not await self._repository.cancel(job.id, reason):
            return
        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.CANCELLED,
                timestamp=self._clock(),
                message=f"Evaluation cancelled: {reason}",
                details={
                    "reason": reason,
                    "completed_tests": job.progress.completed_tests,
                },
            ),
        )
        self._observer.job_cancelled(job_id=job.id, reason=reason)

    async def _fail(self, job_id: str, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        entry = ErrorEntry(
            timestamp=self._clock(),
            error=ErrorDetail(
                message=message,
                stack="".join(traceback.format_exception(exc)),
                code=type(exc).__name__,
            ),
            context=ErrorContext(fatal=True),
        )
        self._observer.job_failed(job_id=job_id, reason=message)
        await self._repository.fail(job_id, entry)
        await self._repository.add_live_log(
            job_id,
            LiveLogEntry(
                type=LiveLogType.FAILED,
                timestamp=self._clock(),
                message=f"Evaluation failed: {message}",
                success=False,
            ),
        )

    @staticmethod
    def _outcome(
        index: int, last: BatchExecution | None, finished: bool
    ) -> BatchOutcome:
        return BatchOutcome(
            success=True,
            finished=finished,
            next_start_index=index,
            batch_successes=last.successes if last is not None else None,
            batch_size=len(last.test_indices) if last is not None else None,
        )
