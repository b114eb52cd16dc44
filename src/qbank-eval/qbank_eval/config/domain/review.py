"""Review queue thresholds."""

from pydantic import BaseModel, Field


class ReviewConfig(BaseModel, frozen=True):
    score_threshold: int = Field(default=70, ge=0, le=100)
    accuracy_threshold: int = Field(default=80, ge=0, le=100)
