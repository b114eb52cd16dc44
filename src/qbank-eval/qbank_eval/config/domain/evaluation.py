"""EvaluationConfig — the immutable request that defines one evaluation job."""

from pydantic import BaseModel, Field

type PipelineName = str


class EvaluationConfig(BaseModel, frozen=True):
    """Counts per difficulty tier, the pipelines to compare and the topics to cover.

    An empty ``topics`` list means the default topic set is used when test
    cases are generated.
    """

    basic_count: int = Field(default=1, ge=0, le=10)
    advanced_count: int = Field(default=1, ge=0, le=10)
    very_difficult_count: int = Field(default=1, ge=0, le=10)
    pipelines: list[PipelineName] = Field(min_length=1)
    topics: list[str] = Field(default_factory=list)
