"""ReviewItem — a question placed on the human review queue."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from qbank_eval.job.domain.result import TestResult
from qbank_eval.review.domain.policy import review_priority
from qbank_eval.scoring.domain.score import BoardStyleQualityScore

REVIEW_SOURCE = "evaluation_pipeline"


class DraftItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    stem: str
    options: list[str] | dict[str, str]
    correct_answer: int | str | None
    explanation: str
    topic: str
    difficulty: str
    pipeline: str
    generated_at: datetime
    source: str = REVIEW_SOURCE


class TopicHierarchy(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    topic: str
    subtopic: str
    full_topic_id: str


class ReviewItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_id: str
    test_index: int
    draft_item: DraftItem
    topic_hierarchy: TopicHierarchy
    ai_assessment: BoardStyleQualityScore
    priority: int = Field(ge=0, le=100)
    needs_review: bool = True
    review_reason: str
    status: Literal["pending"] = "pending"
    created_at: datetime

    @classmethod
    def from_result(
        cls, job_id: str, result: TestResult, created_at: datetime
    ) -> "ReviewItem":
        """Build a review item from a generated, AI-scored test result."""
        if result.draft is None or result.ai_scores is None:
            raise ValueError(
                f"Test result {result.test_index} has no AI-scored draft to review"
            )
        draft = result.draft
        case = result.test_case
        score = result.ai_scores
        return cls(
            job_id=job_id,
            test_index=result.test_index,
            draft_item=DraftItem(
                stem=draft.stem,
                options=draft.options,
                correct_answer=draft.correct_answer,
                explanation=draft.explanation,
                topic=case.topic,
                difficulty=str(case.difficulty),
                pipeline=case.pipeline,
                generated_at=result.created_at,
            ),
            topic_hierarchy=TopicHierarchy(
                category=case.category,
                topic=case.topic,
                subtopic=case.subcategory or case.topic,
                full_topic_id=f"{case.category}_{case.topic}",
            ),
            ai_assessment=score,
            priority=review_priority(score),
            review_reason=(
                f"AI assessment: {score.overall}% overall, "
                f"{score.board_readiness} readiness"
            ),
            created_at=created_at,
        )
