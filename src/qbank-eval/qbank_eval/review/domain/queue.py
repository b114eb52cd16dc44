"""ReviewQueue Protocol — where low-quality questions are sent for human review."""

from typing import Protocol

from qbank_eval.review.domain.item import ReviewItem


class ReviewQueue(Protocol):
    """Structural interface for review queue adapters.

    Returns the id of the queued entry.
    """

    async def enqueue(self, item: ReviewItem) -> str: ...
