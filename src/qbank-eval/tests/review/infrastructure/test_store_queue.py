"""Tests for DocumentStoreReviewQueue."""

from qbank_eval.review.domain.item import ReviewItem
from qbank_eval.review.infrastructure.store_queue import (
    QUEUE_COLLECTION,
    DocumentStoreReviewQueue,
)
from qbank_eval.store.infrastructure.memory import InMemoryDocumentStore
from tests.core.fake_clock import START
from tests.job.builders import make_result
from tests.scoring.fake_scorer import make_score


class TestDocumentStoreReviewQueue:
    async def test_enqueue_writes_pending_item(self) -> None:
        store = InMemoryDocumentStore()
        queue = DocumentStoreReviewQueue(store=store)
        item = ReviewItem.from_result(
            "job-1", make_result(0, ai_scores=make_score(overall=55)), created_at=START
        )

        doc_id = await queue.enqueue(item)

        stored = await store.get(QUEUE_COLLECTION, doc_id)
        assert stored is not None
        assert stored["status"] == "pending"
        assert stored["priority"] == 45
        assert ReviewItem.model_validate(stored) == item
