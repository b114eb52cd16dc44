"""QuestionGenerator Protocol — structural interface for generation pipelines."""

from typing import Protocol

from qbank_eval.generation.domain.draft import QuestionDraft


class QuestionGenerator(Protocol):
    """Structural interface satisfied by any question generation adapter.

    Implementations may raise on any failure; callers treat every exception
    as a failed test case.
    """

    async def generate(
        self, pipeline: str, topic: str, difficulty: str
    ) -> QuestionDraft: ...
