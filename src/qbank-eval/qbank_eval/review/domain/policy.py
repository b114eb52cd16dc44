"""ReviewPolicy — decides which AI-scored questions need human review."""

from dataclasses import dataclass

from qbank_eval.scoring.domain.score import BoardReadiness, BoardStyleQualityScore

_REJECTION_GRADES = (BoardReadiness.MAJOR_REVISION, BoardReadiness.REJECT)


@dataclass(frozen=True)
class ReviewPolicy:
    score_threshold: int = 70
    accuracy_threshold: int = 80

    def needs_review(self, score: BoardStyleQualityScore) -> bool:
        """Low overall, rejection-grade readiness or weak medical accuracy."""
        return (
            self.is_failing(score, self.score_threshold)
            or score.medical_accuracy < self.accuracy_threshold
        )

    @staticmethod
    def is_failing(score: BoardStyleQualityScore, score_threshold: int) -> bool:
        return score.overall < score_threshold or score.board_readiness in _REJECTION_GRADES


def review_priority(score: BoardStyleQualityScore) -> int:
    """Lower-scoring questions are reviewed first."""
    return 100 - score.overall
