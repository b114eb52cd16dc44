"""TestCase value object — one (pipeline, topic, difficulty) unit of work."""

from enum import StrEnum

from pydantic import BaseModel, Field


class Difficulty(StrEnum):
    BASIC = "Basic"
    ADVANCED = "Advanced"
    VERY_DIFFICULT = "Very Difficult"


class TestCase(BaseModel, frozen=True):
    """Immutable test case; its position in the job's list is its canonical index.

    ``subcategory`` is only present for cases derived from a taxonomy
    selection and switches batch sizing to the taxonomy complexity model.
    """

    pipeline: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    difficulty: Difficulty
    category: str = "general"
    subcategory: str | None = None
