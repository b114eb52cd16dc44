"""ContinuationWorker — drains continuation requests by re-invoking the controller."""

from dataclasses import dataclass, field

from qbank_eval.core.errors import QbankEvalError
from qbank_eval.evaluation.application.controller import BatchOutcome, JobController
from qbank_eval.evaluation.domain.continuation import ContinuationQueue


@dataclass
class WorkerReport:
    processed: int = 0
    failed_jobs: list[str] = field(default_factory=list)
    last_outcome: BatchOutcome | None = None


class ContinuationWorker:
    """Processes queued BatchRequests until the queue is empty.

    Each request is one fresh controller invocation, as a task-queue
    delivery would be. A job-level failure is already recorded on the job,
    so it is reported and the worker moves on to the next request.
    """

    def __init__(self, queue: ContinuationQueue, controller: JobController) -> None:
        self._queue = queue
        self._controller = controller

    async def drain(self) -> WorkerReport:
        report = WorkerReport()
        while (request := await self._queue.dequeue()) is not None:
            report.processed += 1
            try:
                report.last_outcome = await self._controller.process_batch(
                    job_id=request.job_id,
                    start_index=request.start_index,
                    batch_size=request.batch_size,
                    process_all_remaining=request.process_all_remaining,
                )
            except QbankEvalError:
                report.failed_jobs.append(request.job_id)
        return report
