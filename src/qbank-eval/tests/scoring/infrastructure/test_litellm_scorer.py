"""Tests for LiteLLMQuestionScorer infrastructure implementation."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from qbank_eval.config.domain.scoring import ScoringConfig
from qbank_eval.scoring.domain.score import BoardReadiness
from qbank_eval.scoring.infrastructure.errors import ScoringError
from qbank_eval.scoring.infrastructure.litellm import LiteLLMQuestionScorer
from tests.generation.fake_generator import GOOD_DRAFT
from tests.job.builders import make_case
from tests.scoring.fake_observer import FakeScoringObserver


def _make_scorer(
    on_api_call: MagicMock | None = None,
) -> tuple[LiteLLMQuestionScorer, FakeScoringObserver]:
    observer = FakeScoringObserver()
    scorer = LiteLLMQuestionScorer(
        config=ScoringConfig(model="openai/gpt-4o", temperature=0.0),
        observer=observer,
        on_api_call=on_api_call,
    )
    return scorer, observer


def _assessment_json(board_readiness: str = "ready") -> str:
    return json.dumps(
        {
            "core_quality": {
                "medical_accuracy": 90,
                "clinical_realism": 90,
                "stem_completeness": 90,
                "difficulty_calibration": 90,
            },
            "technical_quality": {
                "distractor_quality": 60,
                "cueing_absence": 60,
                "clarity": 60,
            },
            "educational_value": {"clinical_relevance": 80, "educational_value": 80},
            "feedback": {
                "strengths": ["Realistic vignette"],
                "weaknesses": ["Option C is implausible"],
                "improvement_suggestions": ["Replace option C"],
            },
            "board_readiness": board_readiness,
        }
    )


def _make_acompletion_response(content: str) -> MagicMock:
    """Build a mock litellm response object with the given message content."""
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


class TestScore:
    async def test_returns_weighted_score(self) -> None:
        scorer, _ = _make_scorer()
        mock = AsyncMock(return_value=_make_acompletion_response(_assessment_json()))

        with patch("litellm.acompletion", mock):
            score = await scorer.score(GOOD_DRAFT, make_case())

        assert score.overall == 79  # 90*0.5 + 60*0.3 + 80*0.2
        assert score.board_readiness is BoardReadiness.READY
        assert score.feedback.weaknesses == ["Option C is implausible"]

    async def test_question_rendered_with_lettered_options(self) -> None:
        scorer, _ = _make_scorer()
        mock = AsyncMock(return_value=_make_acompletion_response(_assessment_json()))

        with patch("litellm.acompletion", mock):
            await scorer.score(GOOD_DRAFT, make_case(topic="Cardiology"))

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4o"
        assert kwargs["temperature"] == 0.0
        user = kwargs["messages"][1]["content"]
        assert "A. Inferior wall myocardial infarction" in user
        assert "Cardiology" in user

    async def test_emits_completed_with_overall(self) -> None:
        on_api_call = MagicMock()
        scorer, observer = _make_scorer(on_api_call=on_api_call)
        mock = AsyncMock(return_value=_make_acompletion_response(_assessment_json()))

        with patch("litellm.acompletion", mock):
            await scorer.score(GOOD_DRAFT, make_case())

        assert observer.completed[0].overall == 79
        on_api_call.assert_called_once()

    def test_exposes_model(self) -> None:
        scorer, _ = _make_scorer()

        assert scorer.model == "openai/gpt-4o"


class TestScoreFailures:
    async def test_api_error_becomes_scoring_error(self) -> None:
        scorer, observer = _make_scorer()
        mock = AsyncMock(side_effect=RuntimeError("service unavailable"))

        with patch("litellm.acompletion", mock):
            with pytest.raises(ScoringError, match="service unavailable"):
                await scorer.score(GOOD_DRAFT, make_case())

        assert observer.failed[0].reason == "service unavailable"

    async def test_invalid_readiness_becomes_scoring_error(self) -> None:
        scorer, observer = _make_scorer()
        mock = AsyncMock(
            return_value=_make_acompletion_response(_assessment_json(board_readiness="maybe"))
        )

        with patch("litellm.acompletion", mock):
            with pytest.raises(ScoringError, match="Failed to parse scoring response"):
                await scorer.score(GOOD_DRAFT, make_case())

        assert observer.completed == []
