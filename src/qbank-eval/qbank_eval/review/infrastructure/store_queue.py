"""DocumentStoreReviewQueue — review queue entries stored as documents."""

from qbank_eval.review.domain.item import ReviewItem
from qbank_eval.store.domain.document_store import DocumentStore

QUEUE_COLLECTION = "questionQueue"


class DocumentStoreReviewQueue:
    """Appends review items to the ``questionQueue`` collection.

    Does NOT inherit from ReviewQueue (structural typing via Protocol).
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def enqueue(self, item: ReviewItem) -> str:
        return await self._store.add(QUEUE_COLLECTION, item.model_dump(mode="json"))
