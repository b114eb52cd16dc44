"""CompositeEvaluationObserver — fans out all events to a list of observers."""

from qbank_eval.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = observers

    def job_created(
        self, job_id: str, user_id: str, total_tests: int, estimated_seconds: int
    ) -> None:
        for obs in self._observers:
            obs.job_created(
                job_id=job_id,
                user_id=user_id,
                total_tests=total_tests,
                estimated_seconds=estimated_seconds,
            )

    def batch_started(
        self,
        job_id: str,
        start_index: int,
        batch_size: int,
        completed_tests: int,
        total_tests: int,
    ) -> None:
        for obs in self._observers:
            obs.batch_started(
                job_id=job_id,
                start_index=start_index,
                batch_size=batch_size,
                completed_tests=completed_tests,
                total_tests=total_tests,
            )

    def batch_completed(
        self,
        job_id: str,
        start_index: int,
        end_index: int,
        successes: int,
        elapsed_seconds: float,
    ) -> None:
        for obs in self._observers:
            obs.batch_completed(
                job_id=job_id,
                start_index=start_index,
                end_index=end_index,
                successes=successes,
                elapsed_seconds=elapsed_seconds,
            )

    def test_started(
        self, job_id: str, test_index: int, pipeline: str, topic: str, difficulty: str
    ) -> None:
        for obs in self._observers:
            obs.test_started(
                job_id=job_id,
                test_index=test_index,
                pipeline=pipeline,
                topic=topic,
                difficulty=difficulty,
            )

    def test_completed(
        self, job_id: str, test_index: int, pipeline: str, latency_ms: int, quality: float
    ) -> None:
        for obs in self._observers:
            obs.test_completed(
                job_id=job_id,
                test_index=test_index,
                pipeline=pipeline,
                latency_ms=latency_ms,
                quality=quality,
            )

    def test_failed(
        self, job_id: str, test_index: int, pipeline: str, reason: str
    ) -> None:
        for obs in self._observers:
            obs.test_failed(
                job_id=job_id, test_index=test_index, pipeline=pipeline, reason=reason
            )

    def test_skipped(self, job_id: str, test_index: int) -> None:
        for obs in self._observers:
            obs.test_skipped(job_id=job_id, test_index=test_index)

    def ai_scoring_degraded(self, job_id: str, test_index: int, reason: str) -> None:
        for obs in self._observers:
            obs.ai_scoring_degraded(job_id=job_id, test_index=test_index, reason=reason)

    def review_enqueue_failed(self, job_id: str, test_index: int, reason: str) -> None:
        for obs in self._observers:
            obs.review_enqueue_failed(
                job_id=job_id, test_index=test_index, reason=reason
            )

    def continuation_enqueued(self, job_id: str, next_start_index: int) -> None:
        for obs in self._observers:
            obs.continuation_enqueued(job_id=job_id, next_start_index=next_start_index)

    def cancellation_requested(self, job_id: str, requester: str, reason: str) -> None:
        for obs in self._observers:
            obs.cancellation_requested(job_id=job_id, requester=requester, reason=reason)

    def job_cancelled(self, job_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.job_cancelled(job_id=job_id, reason=reason)

    def job_completed(
        self, job_id: str, total_tests: int, total_successes: int, success_rate: float
    ) -> None:
        for obs in self._observers:
            obs.job_completed(
                job_id=job_id,
                total_tests=total_tests,
                total_successes=total_successes,
                success_rate=success_rate,
            )

    def job_failed(self, job_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.job_failed(job_id=job_id, reason=reason)

    def summary_write_failed(self, job_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.summary_write_failed(job_id=job_id, reason=reason)
