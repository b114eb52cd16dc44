"""GenerationObserver port — domain events emitted while drafting questions."""

from typing import Protocol


class GenerationObserver(Protocol):
    """Observer port for generation domain events."""

    def generation_started(
        self, pipeline: str, topic: str, difficulty: str, model: str
    ) -> None: ...

    def generation_completed(
        self, pipeline: str, topic: str, difficulty: str, duration_ms: int
    ) -> None: ...

    def generation_failed(
        self, pipeline: str, topic: str, difficulty: str, reason: str
    ) -> None: ...
