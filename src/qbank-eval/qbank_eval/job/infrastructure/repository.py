"""JobRepository — maps evaluation jobs, results and live logs onto a DocumentStore.

Every mutation of job progress or results is guarded by a status
precondition evaluated atomically by the store, so once a job reaches a
terminal status no writer can change its counters, results or status.
Guarded methods return False when the precondition rejected the write.
"""

import structlog

from qbank_eval.core.clock import Clock, utc_now
from qbank_eval.job.domain.case import TestCase
from qbank_eval.job.domain.error_entry import ErrorEntry
from qbank_eval.job.domain.job import (
    ACTIVE_STATUSES,
    CompletedResults,
    EvaluationJob,
    JobStatus,
    PendingJob,
    parse_job,
)
from qbank_eval.job.domain.live_log import LiveLogEntry
from qbank_eval.job.domain.result import TestResult, result_id
from qbank_eval.job.infrastructure.errors import (
    JobNotFoundError,
    TestResultExistsError,
)
from qbank_eval.store.domain.document_store import DocumentStore, Filter
from qbank_eval.store.infrastructure.errors import DocumentExistsError

JOBS = "evaluationJobs"

_ACTIVE = (Filter(field="status", op="in", value=[str(s) for s in ACTIVE_STATUSES]),)


def results_collection(job_id: str) -> str:
    return f"{JOBS}/{job_id}/testResults"


def live_logs_collection(job_id: str) -> str:
    return f"{JOBS}/{job_id}/liveLogs"


class JobRepository:
    """Job persistence over an injected DocumentStore handle."""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._log = structlog.get_logger()

    async def create(self, job: PendingJob) -> None:
        await self._store.create(JOBS, job.id, job.model_dump(mode="json"))

    async def get(self, job_id: str) -> EvaluationJob | None:
        document = await self._store.get(JOBS, job_id)
        if document is None:
            return None
        return parse_job(document)

    async def require(self, job_id: str) -> EvaluationJob:
        """Return the job or raise JobNotFoundError."""
        job = await self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id=job_id)
        return job

    async def find_active(self) -> list[EvaluationJob]:
        rows = await self._store.query(JOBS, filters=_ACTIVE, order_by="created_at")
        return [parse_job(document) for _, document in rows]

    async def count_active(self) -> int:
        return len(await self._store.query(JOBS, filters=_ACTIVE))

    async def mark_running(self, job_id: str) -> bool:
        return await self._store.update(
            JOBS,
            job_id,
            {"status": str(JobStatus.RUNNING), "updated_at": self._now()},
            require=(Filter(field="status", op="==", value=str(JobStatus.PENDING)),),
        )

    async def update_display_progress(
        self, job_id: str, test_case: TestCase, last_processed_index: int
    ) -> bool:
        return await self._store.update(
            JOBS,
            job_id,
            {
                "progress.current_pipeline": test_case.pipeline,
                "progress.current_topic": test_case.topic,
                "progress.current_difficulty": str(test_case.difficulty),
                "progress.last_processed_index": last_processed_index,
                "updated_at": self._now(),
            },
            require=_ACTIVE,
        )

    async def increment_completed(self, job_id: str, total_tests: int) -> bool:
        """Atomically count one processed test case without exceeding the total."""
        return await self._store.increment(
            JOBS,
            job_id,
            "progress.completed_tests",
            amount=1,
            require=(
                *_ACTIVE,
                Filter(field="progress.completed_tests", op="<", value=total_tests),
            ),
        )

    async def append_error(self, job_id: str, entry: ErrorEntry) -> bool:
        return await self._store.array_append(
            JOBS,
            job_id,
            "results.errors",
            [entry.model_dump(mode="json")],
            require=_ACTIVE,
        )

    async def store_result(self, job_id: str, result: TestResult) -> None:
        """Write a test result exactly once.

        Raises:
            TestResultExistsError: if a result for this index was already stored.
        """
        try:
            await self._store.create(
                results_collection(job_id),
                result_id(result.test_index),
                result.model_dump(mode="json"),
            )
        except DocumentExistsError as exc:
            raise TestResultExistsError(
                job_id=job_id, test_index=result.test_index
            ) from exc

    async def has_result(self, job_id: str, test_index: int) -> bool:
        document = await self._store.get(results_collection(job_id), result_id(test_index))
        return document is not None

    async def list_results(self, job_id: str) -> list[TestResult]:
        rows = await self._store.query(results_collection(job_id), order_by="test_index")
        return [TestResult.model_validate(document) for _, document in rows]

    async def complete(self, job_id: str, results: CompletedResults) -> bool:
        """Write final results and the completed status in a single update."""
        now = self._now()
        return await self._store.update(
            JOBS,
            job_id,
            {
                "status": str(JobStatus.COMPLETED),
                "results.overall": results.overall.model_dump(mode="json"),
                "results.by_pipeline": {
                    name: metrics.model_dump(mode="json")
                    for name, metrics in results.by_pipeline.items()
                },
                "results.by_category": {
                    name: metrics.model_dump(mode="json")
                    for name, metrics in results.by_category.items()
                },
                "completed_at": now,
                "updated_at": now,
            },
            require=_ACTIVE,
        )

    async def fail(self, job_id: str, entry: ErrorEntry) -> bool:
        """Record a fatal error and move an active job to failed."""
        if not await self.append_error(job_id, entry):
            return False
        now = self._now()
        return await self._store.update(
            JOBS,
            job_id,
            {"status": str(JobStatus.FAILED), "completed_at": now, "updated_at": now},
            require=_ACTIVE,
        )

    async def cancel(self, job_id: str, reason: str) -> bool:
        now = self._now()
        return await self._store.update(
            JOBS,
            job_id,
            {
                "status": str(JobStatus.CANCELLED),
                "cancellation_reason": reason,
                "completed_at": now,
                "updated_at": now,
            },
            require=_ACTIVE,
        )

    async def request_cancellation(self, job_id: str, reason: str) -> bool:
        return await self._store.update(
            JOBS,
            job_id,
            {
                "cancel_requested": True,
                "cancellation_reason": reason,
                "updated_at": self._now(),
            },
            require=_ACTIVE,
        )

    async def add_live_log(self, job_id: str, entry: LiveLogEntry) -> None:
        """Append a live-log entry; a failed write is logged and dropped."""
        try:
            await self._store.add(
                live_logs_collection(job_id), entry.model_dump(mode="json")
            )
        except Exception as exc:
            self._log.warning(
                "job.live_log_write_failed",
                job_id=job_id,
                log_type=str(entry.type),
                reason=str(exc),
            )

    async def list_live_logs(self, job_id: str) -> list[LiveLogEntry]:
        rows = await self._store.query(live_logs_collection(job_id), order_by="timestamp")
        return [LiveLogEntry.model_validate(document) for _, document in rows]

    def _now(self) -> str:
        return self._clock().isoformat()
