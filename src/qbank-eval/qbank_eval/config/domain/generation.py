"""Generation pipeline configuration models."""

from pydantic import BaseModel, Field


class PipelineConfig(BaseModel, frozen=True):
    model: str = Field(min_length=1)
    temperature: float = Field(default=0.7, ge=0.0)
    style: str = ""


class GenerationConfig(BaseModel, frozen=True):
    pipelines: dict[str, PipelineConfig] = Field(min_length=1)
