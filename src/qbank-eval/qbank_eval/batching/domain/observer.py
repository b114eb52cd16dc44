"""BatchingObserver port — domain events emitted while sizing batches."""

from typing import Protocol


class BatchingObserver(Protocol):
    """Observer port for batch sizing events."""

    def batch_sized(
        self,
        requested: int | None,
        complexity_ceiling: int,
        load: float,
        batch_size: int,
    ) -> None: ...

    def load_sample_failed(self, reason: str, assumed_load: float) -> None: ...
