"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events while jobs are processed.

    Implementations may log to structlog, render progress, or record for
    tests. Live logs in the document store are written separately; this
    port is the operator-facing stream.
    """

    def job_created(
        self, job_id: str, user_id: str, total_tests: int, estimated_seconds: int
    ) -> None: ...

    def batch_started(
        self,
        job_id: str,
        start_index: int,
        batch_size: int,
        completed_tests: int,
        total_tests: int,
    ) -> None: ...

    def batch_completed(
        self,
        job_id: str,
        start_index: int,
        end_index: int,
        successes: int,
        elapsed_seconds: float,
    ) -> None: ...

    def test_started(
        self, job_id: str, test_index: int, pipeline: str, topic: str, difficulty: str
    ) -> None: ...

    def test_completed(
        self, job_id: str, test_index: int, pipeline: str, latency_ms: int, quality: float
    ) -> None: ...

    def test_failed(
        self, job_id: str, test_index: int, pipeline: str, reason: str
    ) -> None: ...

    def test_skipped(self, job_id: str, test_index: int) -> None: ...

    def ai_scoring_degraded(self, job_id: str, test_index: int, reason: str) -> None: ...

    def review_enqueue_failed(
        self, job_id: str, test_index: int, reason: str
    ) -> None: ...

    def continuation_enqueued(self, job_id: str, next_start_index: int) -> None: ...

    def cancellation_requested(
        self, job_id: str, requester: str, reason: str
    ) -> None: ...

    def job_cancelled(self, job_id: str, reason: str) -> None: ...

    def job_completed(
        self, job_id: str, total_tests: int, total_successes: int, success_rate: float
    ) -> None: ...

    def job_failed(self, job_id: str, reason: str) -> None: ...

    def summary_write_failed(self, job_id: str, reason: str) -> None: ...
