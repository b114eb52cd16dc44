"""TestResult — the immutable outcome of one test case, keyed ``test_<i>``."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.job.domain.case import TestCase
from qbank_eval.scoring.domain.rule_based import DetailedQualityScore
from qbank_eval.scoring.domain.score import BoardReadiness, BoardStyleQualityScore


def result_id(test_index: int) -> str:
    return f"test_{test_index}"


class NormalizedQuestion(BaseModel):
    """Pipeline-independent view of the draft's options and answer key."""

    model_config = ConfigDict(frozen=True)

    options_array: list[str] = Field(default_factory=list)
    correct_answer_index: int | None = None
    correct_answer_letter: str | None = None

    @classmethod
    def from_draft(cls, draft: QuestionDraft) -> "NormalizedQuestion":
        return cls(
            options_array=draft.options_array,
            correct_answer_index=draft.correct_answer_index,
            correct_answer_letter=draft.correct_answer_letter,
        )


class AiScoresFlat(BaseModel):
    """The AI score fields that reporting and review queries filter on."""

    model_config = ConfigDict(frozen=True)

    overall: int
    board_readiness: BoardReadiness
    clinical_realism: int
    medical_accuracy: int
    distractor_quality: int
    cueing_absence: int

    @classmethod
    def from_score(cls, score: BoardStyleQualityScore) -> "AiScoresFlat":
        return cls(
            overall=score.overall,
            board_readiness=score.board_readiness,
            clinical_realism=score.core_quality.clinical_realism,
            medical_accuracy=score.core_quality.medical_accuracy,
            distractor_quality=score.technical_quality.distractor_quality,
            cueing_absence=score.technical_quality.cueing_absence,
        )


class ResultTrace(BaseModel):
    model_config = ConfigDict(frozen=True)

    generation_model: str | None = None
    scoring_model: str | None = None
    latency_ms: int
    ai_overall: int | None = None
    board_readiness: BoardReadiness | None = None
    ai_scoring_error: str | None = None


class TestResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    test_index: int = Field(ge=0)
    success: bool
    test_case: TestCase
    latency_ms: int = Field(ge=0)
    draft: QuestionDraft | None = None
    quality: float = Field(default=0, ge=0, le=100)
    detailed_scores: DetailedQualityScore | None = None
    ai_scores: BoardStyleQualityScore | None = None
    normalized: NormalizedQuestion | None = None
    ai_scores_flat: AiScoresFlat | None = None
    trace: ResultTrace | None = None
    error: str | None = None
    created_at: datetime

    @property
    def ai_overall(self) -> float:
        """AI overall when available, otherwise the rule-based quality."""
        if self.ai_scores_flat is not None:
            return self.ai_scores_flat.overall
        if self.ai_scores is not None:
            return self.ai_scores.overall
        return self.quality

    @property
    def board_readiness(self) -> BoardReadiness | None:
        if self.ai_scores is None:
            return None
        return self.ai_scores.board_readiness
