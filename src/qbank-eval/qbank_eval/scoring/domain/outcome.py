"""AiScoreOutcome — the result of the best-effort AI scoring stage.

AI scoring is optional: a failure degrades the test case to rule-based
scores only and never fails it. Keeping the outcome a value, rather than an
exception, separates this path from the required rule-based scoring.
"""

from dataclasses import dataclass

from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.job.domain.case import TestCase
from qbank_eval.scoring.domain.score import BoardStyleQualityScore
from qbank_eval.scoring.domain.scorer import QuestionScorer


@dataclass(frozen=True)
class AiScored:
    score: BoardStyleQualityScore


@dataclass(frozen=True)
class AiScoreUnavailable:
    reason: str


type AiScoreOutcome = AiScored | AiScoreUnavailable


async def score_optionally(
    scorer: QuestionScorer | None, draft: QuestionDraft, test_case: TestCase
) -> AiScoreOutcome:
    """Run the AI scorer, converting any failure into AiScoreUnavailable."""
    if scorer is None:
        return AiScoreUnavailable(reason="AI scoring disabled")
    try:
        score = await scorer.score(draft=draft, test_case=test_case)
    except Exception as exc:
        return AiScoreUnavailable(reason=str(exc) or type(exc).__name__)
    return AiScored(score=score)
