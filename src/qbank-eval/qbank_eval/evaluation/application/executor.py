"""BatchExecutor — runs one chunk of test cases concurrently and persists each outcome."""

import asyncio
import time
import traceback
from collections.abc import Mapping
from dataclasses import dataclass

from qbank_eval.core.clock import Clock, utc_now
from qbank_eval.evaluation.domain.observer import EvaluationObserver
from qbank_eval.generation.domain.draft import QuestionDraft
from qbank_eval.generation.domain.generator import QuestionGenerator
from qbank_eval.job.domain.case import TestCase
from qbank_eval.job.domain.error_entry import ErrorContext, ErrorDetail, ErrorEntry
from qbank_eval.job.domain.job import EvaluationJob
from qbank_eval.job.domain.live_log import LiveLogEntry, LiveLogType
from qbank_eval.job.domain.result import (
    AiScoresFlat,
    NormalizedQuestion,
    ResultTrace,
    TestResult,
)
from qbank_eval.job.infrastructure.errors import TestResultExistsError
from qbank_eval.job.infrastructure.repository import JobRepository
from qbank_eval.review.domain.item import ReviewItem
from qbank_eval.review.domain.policy import ReviewPolicy
from qbank_eval.review.domain.queue import ReviewQueue
from qbank_eval.scoring.domain.outcome import AiScored, score_optionally
from qbank_eval.scoring.domain.rule_based import (
    calculate_detailed_quality_score,
    calculate_quality_score,
)
from qbank_eval.scoring.domain.scorer import QuestionScorer


@dataclass(frozen=True)
class BatchExecution:
    """What one chunk did: how many succeeded, which indices ran, where to resume."""

    successes: int
    test_indices: list[int]
    end_index: int


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class BatchExecutor:
    """Executes a slice of a job's test cases with settle-all semantics.

    Test cases whose result is already stored are skipped without calling
    any collaborator. Each remaining test case generates a draft, scores it
    with the rule-based scorers and, best effort, the AI scorer, stores
    exactly one TestResult and counts itself once in
    ``progress.completed_tests``. A failure in one
    test case is recorded as data and never aborts its siblings.
    """

    def __init__(
        self,
        repository: JobRepository,
        generator: QuestionGenerator,
        scorer: QuestionScorer | None,
        review_queue: ReviewQueue,
        observer: EvaluationObserver,
        review_policy: ReviewPolicy = ReviewPolicy(),
        pipeline_models: Mapping[str, str] | None = None,
        scoring_model: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._generator = generator
        self._scorer = scorer
        self._review_queue = review_queue
        self._observer = observer
        self._review_policy = review_policy
        self._pipeline_models = pipeline_models or {}
        self._scoring_model = scoring_model
        self._clock = clock

    async def execute_batch(
        self, job: EvaluationJob, start_index: int, batch_size: int
    ) -> BatchExecution:
        """Run ``test_cases[start_index:start_index + batch_size]`` concurrently.

        Per-test-case failures become failed results. Errors raised while
        recording a failure (for example, an unavailable store) are job-level
        and re-raised once every sibling has settled.
        """
        cases = job.test_cases[start_index : start_index + batch_size]
        indices = list(range(start_index, start_index + len(cases)))
        end_index = start_index + len(cases)
        total = job.progress.total_tests

        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.BATCH_TRANSITION,
                timestamp=self._clock(),
                message=f"Starting batch: tests {start_index + 1}-{end_index} of {total}",
                details={"start_index": start_index, "batch_size": len(cases)},
            ),
        )

        outcomes = await asyncio.gather(
            *(
                self._run_test_case(job, index, case)
                for index, case in zip(indices, cases, strict=True)
            ),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        successes = sum(1 for outcome in outcomes if outcome is True)
        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.BATCH_TRANSITION,
                timestamp=self._clock(),
                message=f"Batch complete: {successes}/{len(cases)} succeeded",
                success=successes == len(cases),
                details={
                    "start_index": start_index,
                    "end_index": end_index,
                    "successes": successes,
                },
            ),
        )
        return BatchExecution(
            successes=successes, test_indices=indices, end_index=end_index
        )

    async def _run_test_case(self, job: EvaluationJob, index: int, case: TestCase) -> bool:
        if await self._repository.has_result(job.id, index):
            self._observer.test_skipped(job_id=job.id, test_index=index)
            return False

        difficulty = str(case.difficulty)
        self._observer.test_started(
            job_id=job.id,
            test_index=index,
            pipeline=case.pipeline,
            topic=case.topic,
            difficulty=difficulty,
        )
        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.TEST_START,
                timestamp=self._clock(),
                message=f"Starting test {index + 1}: {case.pipeline} / {case.topic} ({difficulty})",
                test_index=index,
                pipeline=case.pipeline,
                topic=case.topic,
                difficulty=difficulty,
            ),
        )

        started = time.monotonic()
        try:
            draft = await self._generator.generate(
                pipeline=case.pipeline, topic=case.topic, difficulty=difficulty
            )
            quality = calculate_quality_score(draft)
            detailed = calculate_detailed_quality_score(draft)
        except Exception as exc:
            await self._record_failure(job, index, case, exc, _elapsed_ms(started))
            return False

        outcome = await score_optionally(self._scorer, draft, case)
        latency_ms = _elapsed_ms(started)
        ai_score = outcome.score if isinstance(outcome, AiScored) else None
        ai_error = None if isinstance(outcome, AiScored) else outcome.reason
        if ai_score is None and self._scorer is not None:
            self._observer.ai_scoring_degraded(
                job_id=job.id, test_index=index, reason=ai_error or ""
            )

        result = TestResult(
            test_index=index,
            success=True,
            test_case=case,
            latency_ms=latency_ms,
            draft=draft,
            quality=quality,
            detailed_scores=detailed,
            ai_scores=ai_score,
            normalized=NormalizedQuestion.from_draft(draft),
            ai_scores_flat=AiScoresFlat.from_score(ai_score) if ai_score else None,
            trace=ResultTrace(
                generation_model=self._pipeline_models.get(case.pipeline),
                scoring_model=self._scoring_model if ai_score else None,
                latency_ms=latency_ms,
                ai_overall=ai_score.overall if ai_score else None,
                board_readiness=ai_score.board_readiness if ai_score else None,
                ai_scoring_error=ai_error,
            ),
            created_at=self._clock(),
        )
        if not await self._persist(job, result):
            return False

        self._observer.test_completed(
            job_id=job.id,
            test_index=index,
            pipeline=case.pipeline,
            latency_ms=latency_ms,
            quality=quality,
        )
        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.TEST_COMPLETE,
                timestamp=self._clock(),
                message=_completion_message(index, draft, quality, ai_score is not None),
                test_index=index,
                pipeline=case.pipeline,
                topic=case.topic,
                difficulty=difficulty,
                success=True,
                latency_ms=latency_ms,
                details={
                    "quality": quality,
                    "ai_overall": ai_score.overall if ai_score else None,
                },
            ),
        )

        if ai_score is not None and self._review_policy.needs_review(ai_score):
            await self._enqueue_for_review(job.id, result)
        return True

    async def _record_failure(
        self,
        job: EvaluationJob,
        index: int,
        case: TestCase,
        exc: Exception,
        latency_ms: int,
    ) -> None:
        message = _describe(exc)
        difficulty = str(case.difficulty)
        now = self._clock()
        failed = TestResult(
            test_index=index,
            success=False,
            test_case=case,
            latency_ms=latency_ms,
            error=message,
            created_at=now,
        )
        if not await self._persist(job, failed):
            return

        await self._repository.append_error(
            job.id,
            ErrorEntry(
                timestamp=now,
                pipeline=case.pipeline,
                topic=case.topic,
                difficulty=difficulty,
                error=ErrorDetail(
                    message=message,
                    stack="".join(traceback.format_exception(exc)),
                    code=type(exc).__name__,
                ),
                context=ErrorContext(
                    attempt_number=1, partial_result={"test_index": index}
                ),
            ),
        )

        self._observer.test_failed(
            job_id=job.id, test_index=index, pipeline=case.pipeline, reason=message
        )
        await self._repository.add_live_log(
            job.id,
            LiveLogEntry(
                type=LiveLogType.TEST_ERROR,
                timestamp=self._clock(),
                message=f"Test {index + 1} failed: {message}",
                test_index=index,
                pipeline=case.pipeline,
                topic=case.topic,
                difficulty=difficulty,
                success=False,
                latency_ms=latency_ms,
            ),
        )

    async def _persist(self, job: EvaluationJob, result: TestResult) -> bool:
        """Store the result and count it; a duplicate result is not counted again."""
        try:
            await self._repository.store_result(job.id, result)
        except TestResultExistsError as exc:
            self._observer.test_failed(
                job_id=job.id,
                test_index=result.test_index,
                pipeline=result.test_case.pipeline,
                reason=str(exc),
            )
            return False
        await self._repository.increment_completed(job.id, job.progress.total_tests)
        return True

    async def _enqueue_for_review(self, job_id: str, result: TestResult) -> None:
        try:
            item = ReviewItem.from_result(job_id, result, created_at=self._clock())
            await self._review_queue.enqueue(item)
        except Exception as exc:
            self._observer.review_enqueue_failed(
                job_id=job_id, test_index=result.test_index, reason=_describe(exc)
            )


def _completion_message(
    index: int, draft: QuestionDraft, quality: float, ai_scored: bool
) -> str:
    suffix = "" if ai_scored else " (rule-based scores only)"
    return (
        f"Test {index + 1} complete: quality {quality:.0f}%, "
        f"{draft.option_count} options{suffix}"
    )
