"""Structlog implementation of the BatchingObserver port."""

import structlog


class StructlogBatchingObserver:
    """Delegates batch sizing events to structlog.

    Satisfies the BatchingObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def batch_sized(
        self,
        requested: int | None,
        complexity_ceiling: int,
        load: float,
        batch_size: int,
    ) -> None:
        self._log.debug(
            "batching.sized",
            requested=requested,
            complexity_ceiling=complexity_ceiling,
            load=round(load, 3),
            batch_size=batch_size,
        )

    def load_sample_failed(self, reason: str, assumed_load: float) -> None:
        self._log.warning(
            "batching.load_sample_failed",
            reason=reason,
            assumed_load=assumed_load,
        )
