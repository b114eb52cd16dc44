"""QuestionScorer Protocol — structural interface for AI quality scorers."""

from typing import Protocol

from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.job.domain.case import TestCase
from qbank_eval.scoring.domain.score import BoardStyleQualityScore


class QuestionScorer(Protocol):
    """Structural interface satisfied by any AI scoring adapter."""

    async def score(
        self, draft: QuestionDraft, test_case: TestCase
    ) -> BoardStyleQualityScore: ...
