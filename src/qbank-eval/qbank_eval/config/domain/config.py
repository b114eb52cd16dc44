"""Top-level AppConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field

from qbank_eval.config.domain.batching import BatchingConfig
from qbank_eval.config.domain.evaluation import EvaluationConfig
from qbank_eval.config.domain.generation import GenerationConfig
from qbank_eval.config.domain.review import ReviewConfig
from qbank_eval.config.domain.scoring import ScoringConfig
from qbank_eval.config.domain.store import StoreConfig


class AppConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a qbank-eval deployment."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    store: StoreConfig = StoreConfig()
    batching: BatchingConfig = BatchingConfig()
    generation: GenerationConfig
    scoring: ScoringConfig
    review: ReviewConfig = ReviewConfig()
    evaluation: EvaluationConfig
