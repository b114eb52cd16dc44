"""LiveLogEntry — append-only observability event written for the UI."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class LiveLogType(StrEnum):
    TEST_START = "test_start"
    TEST_COMPLETE = "test_complete"
    TEST_ERROR = "test_error"
    GENERATION_PROGRESS = "generation_progress"
    BATCH_TRANSITION = "batch_transition"
    CANCEL_REQUEST = "evaluation_cancel_request"
    CANCELLED = "evaluation_cancelled"
    COMPLETE = "evaluation_complete"
    FAILED = "evaluation_failed"


class LiveLogEntry(BaseModel, frozen=True):
    type: LiveLogType
    timestamp: datetime
    message: str
    test_index: int | None = None
    pipeline: str | None = None
    topic: str | None = None
    difficulty: str | None = None
    success: bool | None = None
    latency_ms: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)
