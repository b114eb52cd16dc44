"""SystemLoadProbe Protocol — a live load sample used to shrink batches."""

from typing import Protocol


class SystemLoadProbe(Protocol):
    """Structural interface for load samplers.

    ``current`` returns a value in [0, 1] and may raise; callers treat a
    failed sample as high load.
    """

    async def current(self) -> float: ...
