"""Aggregation of persisted test results into final job results and analytics."""

import math
import statistics
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from qbank_eval.evaluation.domain.summary import (
    EvaluationSummary,
    PipelineAnalytics,
    ReadinessCounts,
    TopicDifficultyCell,
)
from qbank_eval.job.domain.job import (
    CategoryMetrics,
    CompletedResults,
    OverallMetrics,
    PipelineMetrics,
)
from qbank_eval.job.domain.result import TestResult
from qbank_eval.scoring.domain.score import BoardReadiness

_PASSING_GRADES = (BoardReadiness.READY, BoardReadiness.MINOR_REVISION)


def percentile(values: Sequence[float], q: float) -> float:
    """Linear interpolation between order statistics at position (n - 1) * q."""
    if not values:
        return 0.0
    ordered = sorted(values)
    position = (len(ordered) - 1) * q
    base = math.floor(position)
    rest = position - base
    if base + 1 < len(ordered):
        return ordered[base] + rest * (ordered[base + 1] - ordered[base])
    return ordered[base]


def _mean(values: Iterable[float]) -> float:
    items = list(values)
    return statistics.fmean(items) if items else 0.0


def _rate(part: int, whole: int) -> float:
    return part / whole if whole else 0.0


def _group[K](
    results: Iterable[TestResult], key: Callable[[TestResult], K]
) -> dict[K, list[TestResult]]:
    """Group results preserving first-occurrence order of keys."""
    groups: dict[K, list[TestResult]] = {}
    for result in results:
        groups.setdefault(key(result), []).append(result)
    return groups


def build_final_results(
    results: Sequence[TestResult], total_duration_ms: int
) -> CompletedResults:
    """Overall, per-pipeline and per-category metrics.

    Success rates are fractions in [0, 1]. Latency and quality averages
    cover successful results only.
    """
    successes = [r for r in results if r.success]

    overall = OverallMetrics(
        total_tests=len(results),
        total_successes=len(successes),
        overall_success_rate=_rate(len(successes), len(results)),
        avg_latency_ms=_mean(r.latency_ms for r in successes),
        avg_quality=_mean(r.quality for r in successes),
        total_duration_ms=total_duration_ms,
    )

    by_pipeline: dict[str, PipelineMetrics] = {}
    for pipeline, group in _group(results, lambda r: r.test_case.pipeline).items():
        passed = [r for r in group if r.success]
        by_pipeline[pipeline] = PipelineMetrics(
            pipeline=pipeline,
            success_rate=_rate(len(passed), len(group)),
            avg_latency_ms=_mean(r.latency_ms for r in passed),
            avg_quality=_mean(r.quality for r in passed),
            total_tests=len(group),
            success_count=len(passed),
            failures=[r.error or "unknown error" for r in group if not r.success],
        )

    by_category: dict[str, CategoryMetrics] = {}
    for category, group in _group(results, lambda r: r.test_case.category).items():
        passed = [r for r in group if r.success]
        by_category[category] = CategoryMetrics(
            category=category,
            success_rate=_rate(len(passed), len(group)),
            avg_latency_ms=_mean(r.latency_ms for r in passed),
            avg_quality=_mean(r.quality for r in passed),
            test_count=len(group),
        )

    return CompletedResults(
        overall=overall, by_pipeline=by_pipeline, by_category=by_category
    )


def _readiness_counts(results: Iterable[TestResult]) -> ReadinessCounts:
    grades = [r.board_readiness for r in results]
    return ReadinessCounts(
        ready=grades.count(BoardReadiness.READY),
        minor=grades.count(BoardReadiness.MINOR_REVISION),
        major=grades.count(BoardReadiness.MAJOR_REVISION),
        reject=grades.count(BoardReadiness.REJECT),
    )


def build_summary(
    job_id: str,
    results: Sequence[TestResult],
    overall: OverallMetrics,
    created_at: datetime,
) -> EvaluationSummary:
    """Analytics record: score/latency distributions and topic x difficulty cells.

    Per-pipeline distributions cover successful results; the AI score of a
    result falls back to its rule-based quality when AI scoring was
    unavailable. Topic x difficulty cells cover every result.
    """
    by_pipeline: dict[str, PipelineAnalytics] = {}
    for pipeline, group in _group(results, lambda r: r.test_case.pipeline).items():
        passed = [r for r in group if r.success]
        ai_scores = [r.ai_overall for r in passed]
        latencies = [float(r.latency_ms) for r in passed]
        by_pipeline[pipeline] = PipelineAnalytics(
            pipeline=pipeline,
            test_count=len(passed),
            avg_ai=_mean(ai_scores),
            p50_ai=percentile(ai_scores, 0.5),
            p90_ai=percentile(ai_scores, 0.9),
            avg_latency_ms=_mean(latencies),
            p50_latency_ms=percentile(latencies, 0.5),
            p90_latency_ms=percentile(latencies, 0.9),
            readiness=_readiness_counts(passed),
        )

    cells = [
        TopicDifficultyCell(
            topic=topic,
            difficulty=difficulty,
            success_rate=_rate(
                sum(1 for r in group if r.board_readiness in _PASSING_GRADES),
                len(group),
            ),
            avg_ai=_mean(r.ai_overall for r in group),
            avg_latency_ms=_mean(r.latency_ms for r in group),
            count=len(group),
        )
        for (topic, difficulty), group in _group(
            results, lambda r: (r.test_case.topic, str(r.test_case.difficulty))
        ).items()
    ]

    return EvaluationSummary(
        job_id=job_id,
        overall=overall,
        by_pipeline=by_pipeline,
        by_topic_difficulty=cells,
        created_at=created_at,
    )
