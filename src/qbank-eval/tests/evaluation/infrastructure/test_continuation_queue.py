"""Tests for InMemoryContinuationQueue."""

from qbank_eval.evaluation.domain.continuation import BatchRequest
from qbank_eval.evaluation.infrastructure.continuation_queue import (
    InMemoryContinuationQueue,
)


class TestInMemoryContinuationQueue:
    async def test_fifo_order(self) -> None:
        queue = InMemoryContinuationQueue()
        await queue.enqueue(BatchRequest(job_id="job-1", start_index=3))
        await queue.enqueue(BatchRequest(job_id="job-2", start_index=6))

        first = await queue.dequeue()
        second = await queue.dequeue()

        assert first is not None and first.job_id == "job-1"
        assert second is not None and second.start_index == 6
        assert len(queue) == 0

    async def test_drained_queue_returns_none(self) -> None:
        assert await InMemoryContinuationQueue().dequeue() is None

    def test_request_defaults_to_all_remaining(self) -> None:
        request = BatchRequest(job_id="job-1")

        assert request.start_index == 0
        assert request.batch_size is None
        assert request.process_all_remaining is True
