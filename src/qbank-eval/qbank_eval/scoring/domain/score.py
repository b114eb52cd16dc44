"""AI quality score models for board-style questions."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

_CORE_WEIGHT = 0.5
_TECHNICAL_WEIGHT = 0.3
_EDUCATIONAL_WEIGHT = 0.2

type Percent = int


class BoardReadiness(StrEnum):
    READY = "ready"
    MINOR_REVISION = "minor_revision"
    MAJOR_REVISION = "major_revision"
    REJECT = "reject"


class CoreQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    medical_accuracy: Percent = Field(ge=0, le=100)
    clinical_realism: Percent = Field(ge=0, le=100)
    stem_completeness: Percent = Field(ge=0, le=100)
    difficulty_calibration: Percent = Field(ge=0, le=100)

    def average(self) -> float:
        return (
            self.medical_accuracy
            + self.clinical_realism
            + self.stem_completeness
            + self.difficulty_calibration
        ) / 4


class TechnicalQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    distractor_quality: Percent = Field(ge=0, le=100)
    cueing_absence: Percent = Field(ge=0, le=100)
    clarity: Percent = Field(ge=0, le=100)

    def average(self) -> float:
        return (self.distractor_quality + self.cueing_absence + self.clarity) / 3


class EducationalValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    clinical_relevance: Percent = Field(ge=0, le=100)
    educational_value: Percent = Field(ge=0, le=100)

    def average(self) -> float:
        return (self.clinical_relevance + self.educational_value) / 2


class DetailedFeedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)


class QualityAssessment(BaseModel):
    """Structured response requested from the scoring model.

    Every dimension is a 0-100 rating; the overall score is derived locally
    so that it cannot drift from the dimension ratings.
    """

    model_config = ConfigDict(frozen=True)

    core_quality: CoreQuality
    technical_quality: TechnicalQuality
    educational_value: EducationalValue
    feedback: DetailedFeedback
    board_readiness: BoardReadiness


class BoardStyleQualityScore(BaseModel):
    """Immutable AI score for one question, including the weighted overall."""

    model_config = ConfigDict(frozen=True)

    overall: Percent = Field(ge=0, le=100)
    core_quality: CoreQuality
    technical_quality: TechnicalQuality
    educational_value: EducationalValue
    feedback: DetailedFeedback = DetailedFeedback()
    board_readiness: BoardReadiness

    @classmethod
    def from_assessment(cls, assessment: QualityAssessment) -> "BoardStyleQualityScore":
        overall = (
            assessment.core_quality.average() * _CORE_WEIGHT
            + assessment.technical_quality.average() * _TECHNICAL_WEIGHT
            + assessment.educational_value.average() * _EDUCATIONAL_WEIGHT
        )
        return cls(
            overall=round(overall),
            core_quality=assessment.core_quality,
            technical_quality=assessment.technical_quality,
            educational_value=assessment.educational_value,
            feedback=assessment.feedback,
            board_readiness=assessment.board_readiness,
        )

    @property
    def medical_accuracy(self) -> int:
        return self.core_quality.medical_accuracy
