"""End-to-end properties of job processing over in-memory adapters."""

import asyncio

import pytest

from qbank_eval.batching.application.sizer import BatchSizer
from qbank_eval.batching.domain.complexity import StaticTaxonomyComplexity
from qbank_eval.evaluation.domain.case_generator import generate_test_cases
from qbank_eval.evaluation.domain.requester import Requester
from qbank_eval.job.domain.case import Difficulty, TestCase
from qbank_eval.job.domain.job import CancelledJob, CompletedJob
from tests.batching.fake_load_probe import FakeLoadProbe
from tests.batching.fake_observer import FakeBatchingObserver
from tests.evaluation.harness import make_harness
from tests.generation.fake_generator import FakeQuestionGenerator
from tests.job.builders import make_config


class TestCaseGeneration:
    def test_single_known_topic(self) -> None:
        config = make_config(pipelines=["p1"], topics=["Psoriasis"])

        assert generate_test_cases(config) == [
            TestCase(
                pipeline="p1",
                topic="Psoriasis",
                difficulty=Difficulty.BASIC,
                category="inflammatory",
            )
        ]

    def test_unknown_topic_is_general(self) -> None:
        config = make_config(pipelines=["p1"], topics=["Unknown Topic"])

        assert generate_test_cases(config)[0].category == "general"


class TestChunking:
    async def test_seven_cases_in_chunks_of_three(self) -> None:
        h = make_harness()
        topics = ["A", "B", "C", "D", "E", "F", "G"]
        job_id = (await h.service.create_job("owner", make_config(topics=topics))).job_id

        outcome = await h.service.process_batch(
            job_id, batch_size=3, process_all_remaining=True
        )

        spans = [(b.start_index, b.end_index) for b in h.observer.batches_completed]
        assert spans == [(0, 3), (3, 6), (6, 7)]
        assert outcome.finished is True
        assert isinstance(await h.repository.require(job_id), CompletedJob)

    async def test_resumed_chunks_see_the_same_cases(self) -> None:
        stepwise = make_harness()
        straight = make_harness()
        config = make_config(pipelines=["a", "b"], topics=["X", "Y"], basic=1, advanced=1)
        step_id = (await stepwise.service.create_job("owner", config)).job_id
        straight_id = (await straight.service.create_job("owner", config)).job_id

        index = 0
        while index < 8:
            outcome = await stepwise.service.process_batch(step_id, index, batch_size=2)
            assert outcome.next_start_index is not None
            index = outcome.next_start_index
        await straight.service.process_batch(straight_id, process_all_remaining=True)

        step_cases = [r.test_case for r in await stepwise.repository.list_results(step_id)]
        straight_cases = [r.test_case for r in await straight.repository.list_results(straight_id)]
        assert step_cases == straight_cases
        assert len(step_cases) == 8


class TestCounter:
    async def test_concurrent_completions_are_all_counted(self) -> None:
        h = make_harness(generator=FakeQuestionGenerator(delay_seconds=0.01))
        job_id = (await h.service.create_job("owner", make_config(topics=["A", "B", "C"]))).job_id

        await h.service.process_batch(job_id, batch_size=3)

        job = await h.repository.require(job_id)
        assert job.progress.completed_tests == 3

    async def test_one_failure_among_three(self) -> None:
        h = make_harness(generator=FakeQuestionGenerator(fail_topics={"B"}))
        job_id = (await h.service.create_job("owner", make_config(topics=["A", "B", "C"]))).job_id

        await h.service.process_batch(job_id, batch_size=3)

        results = await h.repository.list_results(job_id)
        assert sorted(r.success for r in results) == [False, True, True]
        job = await h.repository.require(job_id)
        assert job.progress.completed_tests == 3


class TestCancellationHonoured:
    async def test_cancel_before_any_chunk(self) -> None:
        h = make_harness()
        job_id = (await h.service.create_job("owner", make_config(topics=["A", "B"]))).job_id
        await h.repository.request_cancellation(job_id, "Cancelled by user")

        outcome = await h.service.process_batch(job_id)

        assert outcome.finished is True
        job = await h.repository.require(job_id)
        assert isinstance(job, CancelledJob)
        assert job.progress.completed_tests == 0
        assert job.cancellation_reason == "Cancelled by user"

    async def test_no_case_runs_after_cancellation(self) -> None:
        generator = FakeQuestionGenerator()
        h = make_harness(generator=generator)
        job_id = (await h.service.create_job("owner", make_config(topics=["A", "B", "C", "D"]))).job_id
        await h.service.process_batch(job_id, batch_size=2)
        await h.service.cancel_job(job_id, "Stop", Requester(user_id="owner"))

        await h.service.process_batch(job_id, start_index=2, batch_size=2)
        await h.service.process_batch(job_id, start_index=2, batch_size=2)

        assert [topic for _, topic, _ in generator.calls] == ["A", "B"]
        assert len(await h.repository.list_results(job_id)) == 2


class TestTerminalJobsAreInert:
    async def test_cancelled_job_ignores_late_work(self) -> None:
        h = make_harness()
        job_id = (await h.service.create_job("owner", make_config(topics=["A", "B"]))).job_id
        await h.repository.request_cancellation(job_id, "Stop")
        await h.service.process_batch(job_id)
        before = await h.repository.require(job_id)

        outcome = await h.service.process_batch(job_id, start_index=0, batch_size=2)

        assert outcome.finished is True
        assert await h.repository.require(job_id) == before


class TestBatchSizeBounds:
    @pytest.mark.parametrize("requested", [None, -1, 0, 1, 2, 3, 4, 100])
    @pytest.mark.parametrize("load", [0.0, 0.3, 0.5, 0.7, 0.9, 1.0])
    async def test_size_is_always_between_one_and_three(
        self, requested: int | None, load: float
    ) -> None:
        sizer = BatchSizer(
            load_probe=FakeLoadProbe(load=load),
            taxonomy=StaticTaxonomyComplexity(),
            observer=FakeBatchingObserver(),
        )
        cases = [TestCase(pipeline="p", topic="t", difficulty=Difficulty.BASIC)] * 4

        assert 1 <= await sizer.size(requested, cases) <= 3

    async def test_size_never_grows_with_load(self) -> None:
        cases = [TestCase(pipeline="p", topic="t", difficulty=Difficulty.ADVANCED)] * 4
        sizes = []
        for load in (0.0, 0.3, 0.45, 0.65, 0.85, 1.0):
            sizer = BatchSizer(
                load_probe=FakeLoadProbe(load=load),
                taxonomy=StaticTaxonomyComplexity(),
                observer=FakeBatchingObserver(),
            )
            sizes.append(await sizer.size(3, cases))

        assert sizes == sorted(sizes, reverse=True)
        assert sizes[0] == 3
        assert sizes[-1] == 1

    async def test_failed_load_sample_forces_single(self) -> None:
        sizer = BatchSizer(
            load_probe=FakeLoadProbe(error=asyncio.TimeoutError()),
            taxonomy=StaticTaxonomyComplexity(),
            observer=FakeBatchingObserver(),
        )
        cases = [TestCase(pipeline="p", topic="t", difficulty=Difficulty.BASIC)] * 4

        assert await sizer.size(3, cases) == 1
