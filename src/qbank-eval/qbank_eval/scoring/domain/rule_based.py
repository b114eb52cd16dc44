"""Rule-based quality scorers — the required, deterministic scoring path.

Both scorers are pure functions of the draft and never call out. They
look for the surface features that distinguish board-style questions:
clinical vignettes, precise terminology, five plausible options and an
explanation that discusses the distractors.
"""

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from qbank_eval.generation.domain.draft import QuestionDraft

_CLINICAL_KEYWORDS = ("patient", "diagnosis", "treatment", "presents", "examination")
_REFERENCE_MARKERS = ("according to", "studies", "guidelines")

_MEDICAL_TERMS = (
    "diagnosis",
    "pathophysiology",
    "etiology",
    "prognosis",
    "differential",
    "manifestation",
    "syndrome",
    "pathognomonic",
    "biopsy",
    "histopathology",
    "immunofluorescence",
    "serology",
    "dermatoscopy",
    "morphology",
    "distribution",
    "configuration",
)
_DERMATOLOGY_TERMS = (
    "papule",
    "macule",
    "vesicle",
    "bulla",
    "pustule",
    "nodule",
    "plaque",
    "erosion",
    "ulcer",
    "scale",
    "crust",
    "lichenification",
    "erythema",
    "purpura",
    "petechiae",
    "telangiectasia",
)

_DIMENSION_WEIGHTS = {
    "board_style_similarity": 0.25,
    "medical_accuracy": 0.20,
    "clinical_detail": 0.20,
    "distractor_quality": 0.15,
    "explanation_quality": 0.10,
    "complexity": 0.10,
}


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text, re.IGNORECASE) is not None


def _word_count(text: str) -> int:
    return len(text.split())


def calculate_quality_score(draft: QuestionDraft) -> float:
    """Score a draft against a ten-point checklist, returned as a 0-100 percentage."""
    points = 0
    options = draft.options_array
    has_five_options = draft.option_count == 5

    if len(draft.stem) > 50:
        points += 1
    if has_five_options:
        points += 1
    if draft.has_correct_answer:
        points += 1
    if len(draft.explanation) > 100:
        points += 1

    stem = draft.stem.lower()
    if any(keyword in stem for keyword in _CLINICAL_KEYWORDS):
        points += 2

    if has_five_options:
        if all(5 < len(option) < 200 for option in options):
            points += 1
        if len(set(options)) == 5:
            points += 1

    if draft.explanation:
        if len(draft.explanation) > 200:
            points += 1
        if any(marker in draft.explanation for marker in _REFERENCE_MARKERS):
            points += 1

    return points / 10 * 100


class QuestionType(StrEnum):
    RECALL = "recall"
    APPLICATION = "application"
    ANALYSIS = "analysis"


class QualityDimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    board_style_similarity: float = Field(ge=0, le=100)
    medical_accuracy: float = Field(ge=0, le=100)
    clinical_detail: float = Field(ge=0, le=100)
    distractor_quality: float = Field(ge=0, le=100)
    explanation_quality: float = Field(ge=0, le=100)
    complexity: float = Field(ge=0, le=100)


class QualityFeedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    board_style_notes: str = ""


class QualityMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    stem_word_count: int
    explanation_word_count: int
    has_clinical_vignette: bool
    has_lab_values: bool
    has_image_description: bool
    question_type: QuestionType


class DetailedQualityScore(BaseModel):
    """Six weighted rule-based dimensions plus feedback and stem metadata."""

    model_config = ConfigDict(frozen=True)

    overall: int = Field(ge=0, le=100)
    dimensions: QualityDimensions
    feedback: QualityFeedback
    metadata: QualityMetadata


def calculate_detailed_quality_score(draft: QuestionDraft) -> DetailedQualityScore:
    stem = draft.stem
    explanation = draft.explanation
    options = draft.options_array
    stem_words = _word_count(stem)
    explanation_words = _word_count(explanation)

    dimensions = QualityDimensions(
        board_style_similarity=_board_style_similarity(stem, stem_words),
        medical_accuracy=_medical_accuracy(f"{stem} {explanation}"),
        clinical_detail=_clinical_detail(stem),
        distractor_quality=_distractor_quality(options),
        explanation_quality=_explanation_quality(explanation, explanation_words, options),
        complexity=_complexity(stem, stem_words),
    )
    overall = sum(
        getattr(dimensions, name) * weight for name, weight in _DIMENSION_WEIGHTS.items()
    )

    question_type = _question_type(stem)
    has_vignette = _has_clinical_vignette(stem)
    has_labs = _has(r"\d+\s*(mg|μg|ng|pg|mL|dL|L|IU|U|mmol|μmol|nmol|%)", stem)

    return DetailedQualityScore(
        overall=round(overall),
        dimensions=dimensions,
        feedback=_feedback(dimensions, has_vignette, has_labs, stem_words, question_type),
        metadata=QualityMetadata(
            stem_word_count=stem_words,
            explanation_word_count=explanation_words,
            has_clinical_vignette=has_vignette,
            has_lab_values=has_labs,
            has_image_description=_has(
                r"(photograph|image|figure|shown|depicted|microscopy|histopathology)",
                stem,
            ),
            question_type=question_type,
        ),
    )


def _board_style_similarity(stem: str, stem_words: int) -> float:
    score = 0
    if 100 <= stem_words <= 250:
        score += 2
    elif 50 <= stem_words < 100 or 250 < stem_words <= 350:
        score += 1

    if _has(r"\d+[-\s]?(year|month|week|day)[-\s]?old", stem):
        score += 1
    if _has(r"(male|female|man|woman|boy|girl)", stem):
        score += 1
    if _has(r"(presents|complains?|reports?|develops?|notices?)", stem):
        score += 2
    if _has(r"\d+\s*(hours?|days?|weeks?|months?|years?)\s*(ago|prior|before|after|later)", stem):
        score += 1
    if _has(r"(examination|exam|reveals?|shows?|demonstrates?|noted)", stem):
        score += 1
    if stem.endswith("?") or _has(
        r"Which of the following|What is the (most likely|best|next|appropriate)", stem
    ):
        score += 1
    return min(100, score * 10)


def _medical_accuracy(text: str) -> float:
    lowered = text.lower()
    term_count = sum(1 for term in _MEDICAL_TERMS if term in lowered)
    derm_count = sum(1 for term in _DERMATOLOGY_TERMS if term in lowered)
    score = 5 + min(3, term_count * 0.5) + min(2, derm_count * 0.5)
    return min(100, score * 10)


_CLINICAL_DETAIL_RULES = (
    (r"\d+[-\s]?(year|month)[-\s]?old", 1.0),
    (r"(male|female|man|woman)", 0.5),
    (r"(African American|Caucasian|Asian|Hispanic|ethnicity)", 0.5),
    (r"(history of|past medical|PMH|previously diagnosed)", 1.0),
    (r"(medications?|drugs?|therapy|treatment)", 1.0),
    (r"(allergies|family history|social history|occupation)", 0.5),
    (r"(duration|onset|progressive|acute|chronic|intermittent)", 1.0),
    (r"(location|distribution|bilateral|unilateral|symmetric)", 1.0),
    (r"(quality|character|sharp|dull|burning|itching|painful)", 1.0),
    (r"(size|diameter|cm|mm|measurement)", 1.0),
    (r"(color|erythematous|hyperpigmented|violaceous|pearly)", 1.0),
    (r"(texture|smooth|rough|scaly|indurated)", 0.5),
)


def _clinical_detail(stem: str) -> float:
    score = sum(weight for pattern, weight in _CLINICAL_DETAIL_RULES if _has(pattern, stem))
    return min(100, score * 10)


def _distractor_quality(options: list[str]) -> float:
    if len(options) != 5:
        return 0
    score = 2

    lengths = [len(option) for option in options]
    avg_length = sum(lengths) / len(lengths)
    mean_deviation = sum(abs(length - avg_length) for length in lengths) / len(lengths)
    if mean_deviation < avg_length * 0.5:
        score += 2

    if len({option.lower().strip() for option in options}) == len(options):
        score += 2

    # A lone "none/all of the above" option stands out as the odd one.
    catch_alls = [o for o in options if re.match(r"(none|all|both|neither)", o, re.I)]
    if len(catch_alls) != 1:
        score += 2

    if all(len(option) > 10 for option in options):
        score += 2
    return min(100, score * 10)


def _explanation_quality(explanation: str, word_count: int, options: list[str]) -> float:
    if not explanation:
        return 0
    score = 2.0
    if 150 <= word_count <= 400:
        score += 2
    elif 100 <= word_count < 150 or 400 < word_count <= 500:
        score += 1

    if _has(r"correct|accurate|best|appropriate", explanation):
        score += 1

    rejects_options = _has(r"incorrect|wrong|not|wouldn't", explanation)
    discussed = sum(
        1 for option in options if rejects_options or option[:20] in explanation
    )
    score += min(2, discussed * 0.5)

    if _has(r"pathophysiology|mechanism|etiology|epidemiology", explanation):
        score += 1
    if _has(r"guidelines?|criteria|classification", explanation):
        score += 1
    if _has(r"differential|distinguish|compared?", explanation):
        score += 1
    return min(100, score * 10)


def _complexity(stem: str, stem_words: int) -> float:
    score = 5
    if _has(r"which.*most likely diagnosis", stem):
        score += 1
    if _has(r"what is the (best|most appropriate) next step", stem):
        score += 2
    if _has(r"which.*mechanism|pathophysiology", stem):
        score += 1
    if stem_words > 150 and _has(r"however|but|despite|although", stem):
        score += 1
    if stem_words < 50:
        score -= 2
    if stem_words > 400:
        score -= 1
    return min(100, max(0, score * 10))


def _question_type(stem: str) -> QuestionType:
    if _has(r"what is the (mechanism|definition|classification)", stem):
        return QuestionType.RECALL
    if _has(r"next step|best treatment|most appropriate", stem):
        return QuestionType.ANALYSIS
    return QuestionType.APPLICATION


def _has_clinical_vignette(stem: str) -> bool:
    return (
        _has(r"patient|man|woman|boy|girl|infant|child", stem)
        and _has(r"presents?|comes?|brought|admitted", stem)
        and _has(r"complains?|reports?|symptoms?|signs?", stem)
    )


_FEEDBACK_RULES = (
    (
        "board_style_similarity",
        "Excellent board-style format and presentation",
        "Question format differs from typical board style",
    ),
    (
        "medical_accuracy",
        "Strong medical terminology and accuracy",
        "Medical terminology could be more precise",
    ),
    (
        "clinical_detail",
        "Appropriate level of clinical detail",
        "Clinical detail insufficient for board-level assessment",
    ),
    (
        "distractor_quality",
        "High-quality distractors that test knowledge effectively",
        "Distractors could be more plausible",
    ),
)


def _feedback(
    dimensions: QualityDimensions,
    has_vignette: bool,
    has_labs: bool,
    stem_words: int,
    question_type: QuestionType,
) -> QualityFeedback:
    strengths: list[str] = []
    weaknesses: list[str] = []
    for name, strength, weakness in _FEEDBACK_RULES:
        value = getattr(dimensions, name)
        if value >= 80:
            strengths.append(strength)
        elif value < 50:
            weaknesses.append(weakness)

    notes = [
        "Contains clinical vignette" if has_vignette else "Missing clinical vignette format"
    ]
    if 100 <= stem_words <= 250:
        notes.append("Ideal stem length for board exam")
    elif stem_words < 50:
        notes.append("Stem too brief for board style")
    elif stem_words > 350:
        notes.append("Stem longer than typical board question")
    if question_type is QuestionType.ANALYSIS:
        notes.append("Tests higher-order thinking")
    elif question_type is QuestionType.RECALL:
        notes.append("Tests only factual recall")
    if has_labs:
        notes.append("Includes quantitative data")

    return QualityFeedback(
        strengths=strengths,
        weaknesses=weaknesses,
        board_style_notes="; ".join(notes),
    )
