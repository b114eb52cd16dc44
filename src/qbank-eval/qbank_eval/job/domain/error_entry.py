"""ErrorEntry — a structured failure record appended to a job's error trail."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel, frozen=True):
    message: str
    stack: str | None = None
    code: str | None = None


class ErrorContext(BaseModel, frozen=True):
    attempt_number: int = 1
    partial_result: dict[str, Any] | None = None
    fatal: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorEntry(BaseModel, frozen=True):
    """One failure; pipeline/topic/difficulty are absent for job-level errors."""

    timestamp: datetime
    pipeline: str | None = None
    topic: str | None = None
    difficulty: str | None = None
    error: ErrorDetail
    context: ErrorContext = ErrorContext()
