"""Structlog implementation of the GenerationObserver port."""

import structlog


class StructlogGenerationObserver:
    """Delegates generation domain events to structlog.

    Satisfies the GenerationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def generation_started(
        self, pipeline: str, topic: str, difficulty: str, model: str
    ) -> None:
        self._log.info(
            "generation.started",
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
            model=model,
        )

    def generation_completed(
        self, pipeline: str, topic: str, difficulty: str, duration_ms: int
    ) -> None:
        self._log.info(
            "generation.completed",
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
            duration_ms=duration_ms,
        )

    def generation_failed(
        self, pipeline: str, topic: str, difficulty: str, reason: str
    ) -> None:
        self._log.error(
            "generation.failed",
            pipeline=pipeline,
            topic=topic,
            difficulty=difficulty,
            reason=reason,
        )
