"""LiteLLMQuestionGenerator — named generation pipelines backed by LiteLLM."""

import time
from collections.abc import Callable

import litellm
from pydantic import BaseModel, Field

from qbank_eval.config.domain.generation import GenerationConfig
from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.generation.domain.observer import GenerationObserver
from qbank_eval.generation.infrastructure.errors import (
    GenerationError,
    UnknownPipelineError,
)

_SYSTEM_PROMPT = """\
You write board-style multiple-choice questions for dermatology certification \
exams. Each question opens with a clinical vignette (age, sex, presentation, \
history, examination findings), ends with a single focused lead-in, and offers \
exactly five homogeneous options of which exactly one is correct. Distractors \
must be plausible to a partially informed candidate and must not be cued by \
length, grammar or absolute wording.

Respond with a JSON object containing:
- stem: the clinical vignette
- lead_in: the question sentence
- options: list of exactly five option strings, in A-E order
- correct_answer: zero-based index of the correct option
- explanation: why the answer is correct and why each distractor is not
"""

_DIFFICULTY_LEVELS = {"Basic": "easy", "Advanced": "medium"}


class _GeneratedQuestion(BaseModel):
    stem: str
    lead_in: str = ""
    options: list[str] = Field(min_length=1)
    correct_answer: int = Field(ge=0)
    explanation: str = ""


def difficulty_level(difficulty: str) -> str:
    """Map an exam tier onto the easy/medium/hard scale pipelines understand."""
    return _DIFFICULTY_LEVELS.get(difficulty, "hard")


class LiteLLMQuestionGenerator:
    """Question generator that delegates each configured pipeline to an LLM.

    A pipeline is a model, a temperature and an optional style instruction
    appended to the system prompt. ``on_api_call`` is invoked once per model
    request so that load sampling can track the API call rate.

    Does NOT inherit from QuestionGenerator (structural typing via Protocol).
    """

    def __init__(
        self,
        config: GenerationConfig,
        observer: GenerationObserver,
        on_api_call: Callable[[], None] | None = None,
    ) -> None:
        self._config = config
        self._observer = observer
        self._on_api_call = on_api_call

    async def generate(self, pipeline: str, topic: str, difficulty: str) -> QuestionDraft:
        """Generate one question draft with the named pipeline.

        Raises:
            UnknownPipelineError: if the pipeline is not configured.
            GenerationError: if the LLM call fails or its response cannot be
                parsed into a question.
        """
        pipeline_config = self._config.pipelines.get(pipeline)
        if pipeline_config is None:
            raise UnknownPipelineError(pipeline=pipeline)

        self._observer.generation_started(
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
            model=pipeline_config.model,
        )

        system_prompt = _SYSTEM_PROMPT
        if pipeline_config.style:
            system_prompt = f"{_SYSTEM_PROMPT}\n{pipeline_config.style}\n"
        user_message = (
            f"## Topic\n{topic}\n\n"
            f"## Difficulty\n{difficulty_level(difficulty)} ({difficulty})"
        )

        start = time.monotonic()
        if self._on_api_call is not None:
            self._on_api_call()
        try:
            response = await litellm.acompletion(
                model=pipeline_config.model,
                temperature=pipeline_config.temperature,
                response_format=_GeneratedQuestion,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
            )
        except Exception as exc:
            reason = str(exc)
            self._fail(pipeline, topic, difficulty, reason)
            raise GenerationError(pipeline=pipeline, reason=reason) from exc

        duration_ms = int((time.monotonic() - start) * 1000)

        raw_content: str = response.choices[0].message.content
        try:
            generated = _GeneratedQuestion.model_validate_json(raw_content)
        except Exception as exc:
            reason = f"Failed to parse generation response: {exc}"
            self._fail(pipeline, topic, difficulty, reason)
            raise GenerationError(pipeline=pipeline, reason=reason) from exc

        self._observer.generation_completed(
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
            duration_ms=duration_ms,
        )
        return QuestionDraft(
            stem=generated.stem,
            lead_in=generated.lead_in,
            options=generated.options,
            correct_answer=generated.correct_answer,
            explanation=generated.explanation,
        )

    def _fail(self, pipeline: str, topic: str, difficulty: str, reason: str) -> None:
        self._observer.generation_failed(
            pipeline=pipeline, topic=topic, difficulty=difficulty, reason=reason
        )
