"""EvaluationSummary — the analytics record written when a job completes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from qbank_eval.job.domain.job import OverallMetrics


class ReadinessCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    ready: int = 0
    minor: int = 0
    major: int = 0
    reject: int = 0


class PipelineAnalytics(BaseModel):
    """Distribution of AI score and latency over one pipeline's successes."""

    model_config = ConfigDict(frozen=True)

    pipeline: str
    test_count: int
    avg_ai: float
    p50_ai: float
    p90_ai: float
    avg_latency_ms: float
    p50_latency_ms: float
    p90_latency_ms: float
    readiness: ReadinessCounts = ReadinessCounts()


class TopicDifficultyCell(BaseModel):
    """One heatmap cell; success means a ready or minor-revision grade."""

    model_config = ConfigDict(frozen=True)

    topic: str
    difficulty: str
    success_rate: float
    avg_ai: float
    avg_latency_ms: float
    count: int


class EvaluationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_id: str = Field(min_length=1)
    overall: OverallMetrics
    by_pipeline: dict[str, PipelineAnalytics] = Field(default_factory=dict)
    by_topic_difficulty: list[TopicDifficultyCell] = Field(default_factory=list)
    created_at: datetime
