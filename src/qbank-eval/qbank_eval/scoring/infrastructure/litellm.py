"""LiteLLMQuestionScorer — AI board-readiness scoring using LiteLLM."""

import time
from collections.abc import Callable

import litellm

from qbank_eval.config.domain.scoring import ScoringConfig
from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.job.domain.case import TestCase
from qbank_eval.scoring.domain.observer import ScoringObserver
from qbank_eval.scoring.domain.score import BoardStyleQualityScore, QualityAssessment
from qbank_eval.scoring.infrastructure.errors import ScoringError

_SYSTEM_PROMPT = """\
You are a senior dermatology board examiner reviewing a multiple-choice \
question written for a certification exam. Rate every dimension as an integer \
from 0 to 100.

## Core quality
- medical_accuracy: the keyed answer and every clinical fact are correct
- clinical_realism: the vignette reads like a real patient encounter
- stem_completeness: the stem contains everything needed to answer
- difficulty_calibration: the question matches the requested difficulty

## Technical quality
- distractor_quality: every distractor is plausible and clearly wrong
- cueing_absence: no length, grammar or wording cues point to the answer
- clarity: the lead-in asks exactly one unambiguous question

## Educational value
- clinical_relevance: the tested point matters in practice
- educational_value: the explanation teaches the underlying concept

## Board readiness
One of: ready, minor_revision, major_revision, reject.

## Output Format

Respond with a JSON object containing core_quality, technical_quality and \
educational_value objects with the ratings above, a feedback object with \
strengths, weaknesses and improvement_suggestions (lists of strings), and \
board_readiness.
"""


def _render_question(draft: QuestionDraft, test_case: TestCase) -> str:
    options = "\n".join(
        f"{chr(ord('A') + index)}. {option}"
        for index, option in enumerate(draft.options_array)
    )
    return (
        f"## Topic\n{test_case.topic} ({test_case.category})\n\n"
        f"## Requested Difficulty\n{test_case.difficulty}\n\n"
        f"## Stem\n{draft.stem}\n\n"
        f"## Lead-in\n{draft.lead_in}\n\n"
        f"## Options\n{options}\n\n"
        f"## Keyed Answer\n{draft.correct_answer_letter or draft.correct_answer}\n\n"
        f"## Explanation\n{draft.explanation}"
    )


class LiteLLMQuestionScorer:
    """Question scorer that delegates to an LLM via LiteLLM.

    The model returns dimension ratings only; the weighted overall score is
    computed by BoardStyleQualityScore.from_assessment.

    Does NOT inherit from QuestionScorer (structural typing via Protocol).
    """

    def __init__(
        self,
        config: ScoringConfig,
        observer: ScoringObserver,
        on_api_call: Callable[[], None] | None = None,
    ) -> None:
        self._config = config
        self._observer = observer
        self._on_api_call = on_api_call

    @property
    def model(self) -> str:
        return self._config.model

    async def score(
        self, draft: QuestionDraft, test_case: TestCase
    ) -> BoardStyleQualityScore:
        """Invoke the scoring model and return a BoardStyleQualityScore.

        Raises:
            ScoringError: if the LLM call fails or the response cannot be
                parsed into an assessment.
        """
        topic = test_case.topic
        difficulty = str(test_case.difficulty)
        self._observer.scoring_started(
            topic=topic, difficulty=difficulty, model=self._config.model
        )

        start = time.monotonic()
        if self._on_api_call is not None:
            self._on_api_call()
        try:
            response = await litellm.acompletion(
                model=self._config.model,
                temperature=self._config.temperature,
                response_format=QualityAssessment,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": _render_question(draft, test_case)},
                ],
            )
        except Exception as exc:
            reason = str(exc)
            self._observer.scoring_failed(
                topic=topic, difficulty=difficulty, reason=reason
            )
            raise ScoringError(reason=reason) from exc

        duration_ms = int((time.monotonic() - start) * 1000)

        raw_content: str = response.choices[0].message.content
        try:
            assessment = QualityAssessment.model_validate_json(raw_content)
        except Exception as exc:
            reason = f"Failed to parse scoring response: {exc}"
            self._observer.scoring_failed(
                topic=topic, difficulty=difficulty, reason=reason
            )
            raise ScoringError(reason=reason) from exc

        score = BoardStyleQualityScore.from_assessment(assessment)
        self._observer.scoring_completed(
            topic=topic,
            difficulty=difficulty,
            overall=score.overall,
            duration_ms=duration_ms,
        )
        return score
