"""Tests for SummaryRepository."""

from qbank_eval.evaluation.domain.summary import EvaluationSummary, PipelineAnalytics
from qbank_eval.evaluation.infrastructure.summary_store import (
    SUMMARIES,
    SummaryRepository,
)
from qbank_eval.job.domain.job import OverallMetrics
from qbank_eval.store.infrastructure.memory import InMemoryDocumentStore
from tests.core.fake_clock import START


def _summary(job_id: str = "job-1") -> EvaluationSummary:
    return EvaluationSummary(
        job_id=job_id,
        overall=OverallMetrics(
            total_tests=2,
            total_successes=1,
            overall_success_rate=0.5,
            avg_latency_ms=1200.0,
            avg_quality=75.0,
            total_duration_ms=4000,
        ),
        by_pipeline={
            "legacy": PipelineAnalytics(
                pipeline="legacy",
                test_count=1,
                avg_ai=75.0,
                p50_ai=75.0,
                p90_ai=75.0,
                avg_latency_ms=1200.0,
                p50_latency_ms=1200.0,
                p90_latency_ms=1200.0,
            )
        },
        created_at=START,
    )


class TestSummaryRepository:
    async def test_write_is_keyed_by_job(self) -> None:
        store = InMemoryDocumentStore()
        repo = SummaryRepository(store=store)

        await repo.write(_summary())

        assert await store.get(SUMMARIES, "job-1") is not None
        assert await repo.get("job-1") == _summary()

    async def test_rewrite_replaces(self) -> None:
        repo = SummaryRepository(store=InMemoryDocumentStore())
        await repo.write(_summary())
        await repo.write(_summary().model_copy(update={"by_pipeline": {}}))

        stored = await repo.get("job-1")

        assert stored is not None
        assert stored.by_pipeline == {}

    async def test_missing_is_none(self) -> None:
        assert await SummaryRepository(store=InMemoryDocumentStore()).get("ghost") is None
