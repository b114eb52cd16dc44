"""Structlog implementation of the ScoringObserver port."""

import structlog


class StructlogScoringObserver:
    """Delegates AI scoring events to structlog.

    Satisfies the ScoringObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def scoring_started(self, topic: str, difficulty: str, model: str) -> None:
        self._log.info(
            "scoring.started", topic=topic, difficulty=difficulty, model=model
        )

    def scoring_completed(
        self, topic: str, difficulty: str, overall: int, duration_ms: int
    ) -> None:
        self._log.info(
            "scoring.completed",
            topic=topic,
            difficulty=difficulty,
            overall=overall,
            duration_ms=duration_ms,
        )

    def scoring_failed(self, topic: str, difficulty: str, reason: str) -> None:
        self._log.warning(
            "scoring.failed", topic=topic, difficulty=difficulty, reason=reason
        )
