"""ScoringObserver port — domain events emitted during AI quality scoring."""

from typing import Protocol


class ScoringObserver(Protocol):
    """Observer port for AI scoring domain events."""

    def scoring_started(self, topic: str, difficulty: str, model: str) -> None: ...

    def scoring_completed(
        self, topic: str, difficulty: str, overall: int, duration_ms: int
    ) -> None: ...

    def scoring_failed(self, topic: str, difficulty: str, reason: str) -> None: ...
