"""FakeReviewQueue — records enqueued review items."""

from qbank_eval.review.domain.item import ReviewItem


class FakeReviewQueue:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.items: list[ReviewItem] = []

    async def enqueue(self, item: ReviewItem) -> str:
        if self._error is not None:
            raise self._error
        self.items.append(item)
        return f"review_{len(self.items)}"
