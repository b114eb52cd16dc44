"""Test case generation — expands an EvaluationConfig into the job's index space.

The order produced here is the canonical index space that resumed chunks
rely on, so generation is a pure, deterministic function of the config.
"""

import math

from qbank_eval.config.domain.evaluation import EvaluationConfig
from qbank_eval.job.domain.case import Difficulty, TestCase

DEFAULT_CATEGORY = "general"
DEFAULT_TOPIC_COUNT = 5

TOPIC_CATEGORIES: dict[str, str] = {
    "Psoriasis": "inflammatory",
    "Melanoma diagnosis": "neoplastic",
    "Atopic dermatitis": "inflammatory",
    "Drug eruptions": "reactive",
    "Pemphigus vulgaris": "vesiculobullous",
    "Acne vulgaris": "inflammatory",
    "Basal cell carcinoma": "neoplastic",
    "Contact dermatitis": "reactive",
    "Vitiligo": "pigmentary",
    "Alopecia areata": "hair",
}

PIPELINE_LATENCY_SECONDS: dict[str, float] = {
    "boardStyle": 8.5,
    "optimizedOrchestrator": 24.0,
    "hybridRouter": 15.0,
}
DEFAULT_PIPELINE_LATENCY_SECONDS = 20.0
OVERHEAD_SECONDS = 10.0


def default_topics() -> list[str]:
    return list(TOPIC_CATEGORIES)[:DEFAULT_TOPIC_COUNT]


def category_for(topic: str) -> str:
    return TOPIC_CATEGORIES.get(topic, DEFAULT_CATEGORY)


def _tier_counts(config: EvaluationConfig) -> list[tuple[Difficulty, int]]:
    return [
        (Difficulty.BASIC, config.basic_count),
        (Difficulty.ADVANCED, config.advanced_count),
        (Difficulty.VERY_DIFFICULT, config.very_difficult_count),
    ]


def generate_test_cases(config: EvaluationConfig) -> list[TestCase]:
    """Return the ordered test cases for a config.

    Pipelines are the outer loop, then topics, then difficulty tiers in
    Basic, Advanced, Very Difficult order, each repeated ``count`` times.
    """
    topics = config.topics or default_topics()
    return [
        TestCase(
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
            category=category_for(topic),
        )
        for pipeline in config.pipelines
        for topic in topics
        for difficulty, count in _tier_counts(config)
        for _ in range(count)
    ]


def questions_per_pipeline(config: EvaluationConfig) -> int:
    topics = config.topics or default_topics()
    return len(topics) * sum(count for _, count in _tier_counts(config))


def estimate_duration_seconds(config: EvaluationConfig) -> int:
    """Rough wall-clock estimate used to set caller expectations."""
    per_pipeline = questions_per_pipeline(config)
    total = sum(
        PIPELINE_LATENCY_SECONDS.get(pipeline, DEFAULT_PIPELINE_LATENCY_SECONDS)
        * per_pipeline
        for pipeline in config.pipelines
    )
    return math.ceil(total + OVERHEAD_SECONDS)
