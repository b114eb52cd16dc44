"""EvaluationJob — one evaluation run, modelled as a union discriminated on status.

Each status variant carries only the fields that are valid for it: only
terminal variants have ``completed_at``, only ``CompletedJob`` is guaranteed
to carry ``results.overall`` and only ``CancelledJob`` is guaranteed a
cancellation reason.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from qbank_eval.config.domain.evaluation import EvaluationConfig
from qbank_eval.job.domain.case import TestCase
from qbank_eval.job.domain.error_entry import ErrorEntry


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (JobStatus.PENDING, JobStatus.RUNNING)
TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


class JobProgress(BaseModel):
    """Authoritative counters plus display-only hints about the current chunk."""

    model_config = ConfigDict(frozen=True)

    total_tests: int = Field(ge=0)
    completed_tests: int = Field(default=0, ge=0)
    current_pipeline: str | None = None
    current_topic: str | None = None
    current_difficulty: str | None = None
    last_processed_index: int | None = None


class OverallMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_tests: int
    total_successes: int
    overall_success_rate: float
    avg_latency_ms: float
    avg_quality: float
    total_duration_ms: int


class PipelineMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    pipeline: str
    success_rate: float
    avg_latency_ms: float
    avg_quality: float
    total_tests: int
    success_count: int
    failures: list[str] = Field(default_factory=list)


class CategoryMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    success_rate: float
    avg_latency_ms: float
    avg_quality: float
    test_count: int


class JobResults(BaseModel):
    model_config = ConfigDict(frozen=True)

    errors: list[ErrorEntry] = Field(default_factory=list)
    by_pipeline: dict[str, PipelineMetrics] = Field(default_factory=dict)
    by_category: dict[str, CategoryMetrics] = Field(default_factory=dict)
    overall: OverallMetrics | None = None


class CompletedResults(JobResults):
    overall: OverallMetrics


class _JobBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    config: EvaluationConfig
    test_cases: list[TestCase]
    progress: JobProgress
    cancel_requested: bool = False
    cancellation_reason: str | None = None
    results: JobResults = JobResults()
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return False


class PendingJob(_JobBase):
    status: Literal[JobStatus.PENDING] = JobStatus.PENDING


class RunningJob(_JobBase):
    status: Literal[JobStatus.RUNNING] = JobStatus.RUNNING


class _TerminalJob(_JobBase):
    completed_at: datetime

    @property
    def is_terminal(self) -> bool:
        return True


class CompletedJob(_TerminalJob):
    status: Literal[JobStatus.COMPLETED] = JobStatus.COMPLETED
    results: CompletedResults


class FailedJob(_TerminalJob):
    status: Literal[JobStatus.FAILED] = JobStatus.FAILED


class CancelledJob(_TerminalJob):
    status: Literal[JobStatus.CANCELLED] = JobStatus.CANCELLED
    cancellation_reason: str


type EvaluationJob = Annotated[
    PendingJob | RunningJob | CompletedJob | FailedJob | CancelledJob,
    Field(discriminator="status"),
]

_JOB_ADAPTER: TypeAdapter[EvaluationJob] = TypeAdapter(EvaluationJob)


def parse_job(document: dict[str, Any]) -> EvaluationJob:
    """Validate a stored job document into its status-specific variant."""
    return _JOB_ADAPTER.validate_python(document)
