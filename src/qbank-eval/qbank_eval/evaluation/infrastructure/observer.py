"""StructlogEvaluationObserver — production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def job_created(
        self, job_id: str, user_id: str, total_tests: int, estimated_seconds: int
    ) -> None:
        self._log.info(
            "evaluation.job.created",
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
        self._log.info(
            "evaluation.batch.started",
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
        self._log.info(
            "evaluation.batch.completed",
            job_id=job_id,
            start_index=start_index,
            end_index=end_index,
            successes=successes,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def test_started(
        self, job_id: str, test_index: int, pipeline: str, topic: str, difficulty: str
    ) -> None:
        self._log.info(
            "evaluation.test.started",
            job_id=job_id,
            test_index=test_index,
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
        )

    def test_completed(
        self, job_id: str, test_index: int, pipeline: str, latency_ms: int, quality: float
    ) -> None:
        self._log.info(
            "evaluation.test.completed",
            job_id=job_id,
            test_index=test_index,
            pipeline=pipeline,
            latency_ms=latency_ms,
            quality=round(quality, 1),
        )

    def test_failed(
        self, job_id: str, test_index: int, pipeline: str, reason: str
    ) -> None:
        self._log.error(
            "evaluation.test.failed",
            job_id=job_id,
            test_index=test_index,
            pipeline=pipeline,
            reason=reason,
        )

    def test_skipped(self, job_id: str, test_index: int) -> None:
        self._log.info(
            "evaluation.test.skipped",
            job_id=job_id,
            test_index=test_index,
            message="Result already stored",
        )

    def ai_scoring_degraded(self, job_id: str, test_index: int, reason: str) -> None:
        self._log.warning(
            "evaluation.test.ai_scoring_degraded",
            job_id=job_id,
            test_index=test_index,
            reason=reason,
            message="Proceeding with rule-based scores only",
        )

    def review_enqueue_failed(self, job_id: str, test_index: int, reason: str) -> None:
        self._log.error(
            "evaluation.review.enqueue_failed",
            job_id=job_id,
            test_index=test_index,
            reason=reason,
        )

    def continuation_enqueued(self, job_id: str, next_start_index: int) -> None:
        self._log.info(
            "evaluation.continuation.enqueued",
            job_id=job_id,
            next_start_index=next_start_index,
        )

    def cancellation_requested(self, job_id: str, requester: str, reason: str) -> None:
        self._log.info(
            "evaluation.job.cancel_requested",
            job_id=job_id,
            requester=requester,
            reason=reason,
        )

    def job_cancelled(self, job_id: str, reason: str) -> None:
        self._log.warning("evaluation.job.cancelled", job_id=job_id, reason=reason)

    def job_completed(
        self, job_id: str, total_tests: int, total_successes: int, success_rate: float
    ) -> None:
        self._log.info(
            "evaluation.job.completed",
            job_id=job_id,
            total_tests=total_tests,
            total_successes=total_successes,
            success_rate=round(success_rate, 3),
        )

    def job_failed(self, job_id: str, reason: str) -> None:
        self._log.error("evaluation.job.failed", job_id=job_id, reason=reason)

    def summary_write_failed(self, job_id: str, reason: str) -> None:
        self._log.warning(
            "evaluation.summary.write_failed", job_id=job_id, reason=reason
        )
