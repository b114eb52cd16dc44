"""Finalizer — aggregates persisted results into the job's terminal state."""

from qbank_eval.core.clock import Clock, utc_now
from qbank_eval.evaluation.domain.analytics import build_final_results, build_summary
from qbank_eval.evaluation.domain.observer import EvaluationObserver
from qbank_eval.evaluation.infrastructure.errors import FinalizationError
from qbank_eval.evaluation.infrastructure.summary_store import SummaryRepository
from qbank_eval.job.domain.job import EvaluationJob
from qbank_eval.job.domain.live_log import LiveLogEntry, LiveLogType
from qbank_eval.job.infrastructure.repository import JobRepository


class Finalizer:
    """Completes a job from the TestResults in the store.

    Results are always re-read from the store rather than taken from the
    in-memory job, which may predate earlier invocations. Final results and
    the completed status are written in one update.
    """

    def __init__(
        self,
        repository: JobRepository,
        summaries: SummaryRepository,
        observer: EvaluationObserver,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._summaries = summaries
        self._observer = observer
        self._clock = clock

    async def finalize(self, job: EvaluationJob) -> bool:
        """Complete the job; returns False if it was already terminal.

        Raises:
            FinalizationError: if the test results cannot be read.
        """
        try:
            results = await self._repository.list_results(job.id)
        except Exception as exc:
            raise FinalizationError(
                job_id=job.id, reason=f"could not read test results ({exc})"
            ) from exc

        now = self._clock()
        duration_ms = max(0, int((now - job.created_at).total_seconds() * 1000))
        final = build_final_results(results, total_duration_ms=duration_ms)
        if not await self._repository.complete(job.id, final):
            return False

        try:
            await self._summaries.write(
                build_summary(job.id, results, overall=final.overall, created_at=now)
            )
        except Exception as exc:
            self._observer.summary_write_failed(job_id=job.id, reason=str(exc))

        overall = final.overall
        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.COMPLETE,
                timestamp=now,
                message=(
                    f"Evaluation completed: success rate "
                    f"{overall.overall_success_rate * 100:.1f}%, "
                    f"avg quality {overall.avg_quality:.1f}%"
                ),
                success=True,
                details={"overall": overall.model_dump(mode="json")},
            ),
        )
        self._observer.job_completed(
            job_id=job.id,
            total_tests=overall.total_tests,
            total_successes=overall.total_successes,
            success_rate=overall.overall_success_rate,
        )
        return True
