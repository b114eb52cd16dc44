"""Batching configuration model."""

from pydantic import BaseModel, Field


class BatchingConfig(BaseModel, frozen=True):
    default_batch_size: int = Field(default=3, ge=1, le=3)
    max_safe_batch_size: int = Field(default=3, ge=1, le=3)
    invocation_budget_seconds: float = Field(default=270.0, gt=0.0)
