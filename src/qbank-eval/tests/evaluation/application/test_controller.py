"""Tests for JobController — the resumable chunk loop."""

import pytest

from qbank_eval.evaluation.infrastructure.errors import BatchProcessingError
from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.job.domain.job import (
    CancelledJob,
    CompletedJob,
    FailedJob,
    JobStatus,
    RunningJob,
)
from qbank_eval.job.infrastructure.errors import JobNotFoundError
from qbank_eval.job.infrastructure.repository import JobRepository
from qbank_eval.store.domain.document_store import Document
from qbank_eval.store.infrastructure.errors import StoreError
from qbank_eval.store.infrastructure.memory import InMemoryDocumentStore
from tests.core.fake_clock import FakeClock
from tests.evaluation.harness import EvaluationHarness, make_harness
from tests.generation.fake_generator import GOOD_DRAFT
from tests.job.builders import make_config, make_job


class _SlowGenerator:
    """Advances the fake clock by ``seconds`` for every generated question."""

    def __init__(self, clock: FakeClock, seconds: float) -> None:
        self._clock = clock
        self._seconds = seconds

    async def generate(self, pipeline: str, topic: str, difficulty: str) -> QuestionDraft:
        self._clock.advance(self._seconds)
        return GOOD_DRAFT


class _CancellingGenerator:
    """Requests cancellation of ``job_id`` while the first question is generated."""

    def __init__(self, job_id: str, reason: str) -> None:
        self.repository: JobRepository | None = None
        self._job_id = job_id
        self._reason = reason

    async def generate(self, pipeline: str, topic: str, difficulty: str) -> QuestionDraft:
        if self.repository is not None:
            await self.repository.request_cancellation(self._job_id, self._reason)
        return GOOD_DRAFT


class _ResultWriteFailingStore(InMemoryDocumentStore):
    async def create(self, collection: str, doc_id: str, data: Document) -> None:
        if collection.endswith("/testResults"):
            raise StoreError("results collection unavailable")
        await super().create(collection, doc_id, data)


async def _create(
    h: EvaluationHarness, topics: list[str], basic: int = 1
) -> str:
    created = await h.service.create_job(
        "owner", make_config(topics=topics, basic=basic)
    )
    return created.job_id


class TestSingleChunk:
    async def test_processes_one_chunk_and_stops(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A", "B", "C", "D"])

        outcome = await h.controller.process_batch(job_id, start_index=0, batch_size=2)

        assert outcome.success is True
        assert outcome.finished is False
        assert outcome.next_start_index == 2
        assert outcome.batch_successes == 2
        assert outcome.batch_size == 2
        job = await h.repository.require(job_id)
        assert isinstance(job, RunningJob)
        assert job.progress.completed_tests == 2
        assert job.progress.last_processed_index == 1
        assert job.progress.current_topic == "B"

    async def test_resumes_from_start_index(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A", "B", "C"])

        await h.controller.process_batch(job_id, start_index=0, batch_size=2)
        outcome = await h.controller.process_batch(job_id, start_index=2, batch_size=2)

        assert outcome.finished is True
        job = await h.repository.require(job_id)
        assert isinstance(job, CompletedJob)
        assert job.results.overall.total_tests == 3

    async def test_oversized_request_is_clamped_to_three(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A", "B", "C", "D", "E"])

        outcome = await h.controller.process_batch(job_id, batch_size=10)

        assert outcome.batch_size == 3

    async def test_unknown_job(self) -> None:
        h = make_harness()

        with pytest.raises(JobNotFoundError):
            await h.controller.process_batch("ghost")


class TestProcessAllRemaining:
    async def test_runs_to_completion_within_budget(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A", "B", "C", "D", "E"])

        outcome = await h.controller.process_batch(
            job_id, batch_size=2, process_all_remaining=True
        )

        assert outcome.finished is True
        assert outcome.next_start_index == 5
        assert [b.start_index for b in h.observer.batches_started] == [0, 2, 4]
        job = await h.repository.require(job_id)
        assert isinstance(job, CompletedJob)
        assert job.progress.completed_tests == 5
        assert len(h.observer.completed) == 1
        assert len(h.continuation) == 0

    async def test_hands_off_when_budget_is_exhausted(self) -> None:
        clock = FakeClock()
        h = make_harness(generator=_SlowGenerator(clock, seconds=100), clock=clock)
        job_id = await _create(h, ["A", "B", "C", "D", "E"])

        outcome = await h.controller.process_batch(
            job_id, batch_size=1, process_all_remaining=True
        )

        assert outcome.finished is False
        assert outcome.next_start_index == 2
        assert h.observer.continuations == [2]
        assert len(h.continuation) == 1
        job = await h.repository.require(job_id)
        assert job.progress.completed_tests == 2

    async def test_worker_drains_continuations_to_completion(self) -> None:
        clock = FakeClock()
        h = make_harness(generator=_SlowGenerator(clock, seconds=100), clock=clock)
        job_id = await _create(h, ["A", "B", "C", "D", "E"])
        await h.controller.process_batch(job_id, batch_size=1, process_all_remaining=True)

        report = await h.worker.drain()

        assert report.processed == 2
        assert report.failed_jobs == []
        assert report.last_outcome is not None
        assert report.last_outcome.finished is True
        assert h.observer.continuations == [2, 4]
        job = await h.repository.require(job_id)
        assert isinstance(job, CompletedJob)
        assert len(await h.repository.list_results(job_id)) == 5


class TestCancellation:
    async def test_cancel_before_first_chunk(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A", "B"])
        await h.repository.request_cancellation(job_id, "Wrong topics")

        outcome = await h.controller.process_batch(job_id, process_all_remaining=True)

        assert outcome.finished is True
        job = await h.repository.require(job_id)
        assert isinstance(job, CancelledJob)
        assert job.cancellation_reason == "Wrong topics"
        assert await h.repository.list_results(job_id) == []
        assert h.observer.cancelled[0].reason == "Wrong topics"

    async def test_cancel_observed_after_chunk(self) -> None:
        generator = _CancellingGenerator(job_id="job-1", reason="Budget exceeded")
        h = make_harness(generator=generator)
        generator.repository = h.repository
        job_id = await _create(h, ["A", "B", "C"])

        outcome = await h.controller.process_batch(
            job_id, batch_size=1, process_all_remaining=True
        )

        assert outcome.finished is True
        assert outcome.next_start_index == 1
        job = await h.repository.require(job_id)
        assert isinstance(job, CancelledJob)
        assert job.progress.completed_tests == 1
        assert len(await h.repository.list_results(job_id)) == 1

    async def test_default_reason(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A"])
        await h.store.update("evaluationJobs", job_id, {"cancel_requested": True})

        await h.controller.process_batch(job_id)

        job = await h.repository.require(job_id)
        assert isinstance(job, CancelledJob)
        assert job.cancellation_reason == "Cancelled by user"


class TestTerminalJobs:
    async def test_completed_job_is_not_reprocessed(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A"])
        await h.controller.process_batch(job_id, process_all_remaining=True)
        before = await h.repository.require(job_id)

        outcome = await h.controller.process_batch(job_id, start_index=0, batch_size=1)

        assert outcome.finished is True
        assert outcome.next_start_index is None
        assert await h.repository.require(job_id) == before

    async def test_redelivered_chunk_does_not_double_count(self) -> None:
        h = make_harness()
        job_id = await _create(h, ["A", "B"])

        await h.controller.process_batch(job_id, start_index=0, batch_size=1)
        await h.controller.process_batch(job_id, start_index=0, batch_size=1)

        job = await h.repository.require(job_id)
        assert job.progress.completed_tests == 1
        assert len(await h.repository.list_results(job_id)) == 1


class TestJobLevelFailure:
    async def test_store_failure_fails_job(self) -> None:
        h = make_harness(store=_ResultWriteFailingStore())
        job_id = await _create(h, ["A", "B"])

        with pytest.raises(BatchProcessingError, match="results collection unavailable"):
            await h.controller.process_batch(job_id, batch_size=2)

        job = await h.repository.require(job_id)
        assert isinstance(job, FailedJob)
        assert job.status is JobStatus.FAILED
        assert job.results.errors[-1].context.fatal is True
        assert len(h.observer.failed) == 1

    async def test_empty_job_completes_immediately(self) -> None:
        h = make_harness()
        job = make_job(config=make_config(basic=0))
        await h.repository.create(job)

        outcome = await h.controller.process_batch(job.id)

        assert outcome.finished is True
        stored = await h.repository.require(job.id)
        assert isinstance(stored, CompletedJob)
        assert stored.results.overall.total_tests == 0
