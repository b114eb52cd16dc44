"""BatchSizer — decides how many test cases the next chunk runs concurrently.

The size is the caller's request clamped to [MIN_BATCH_SIZE, max_safe],
capped by a complexity ceiling and then by a load ceiling. A failed load
sample is treated as ``FAILED_SAMPLE_LOAD`` so that sizing never fails a job.
"""

from collections.abc import Sequence

from qbank_eval.batching.domain.complexity import TaxonomyComplexity
from qbank_eval.batching.domain.load import SystemLoadProbe
from qbank_eval.batching.domain.observer import BatchingObserver
from qbank_eval.job.domain.case import Difficulty, TestCase

MIN_BATCH_SIZE = 1
MAX_SAFE_BATCH_SIZE = 3
DEFAULT_BATCH_SIZE = 1
FAILED_SAMPLE_LOAD = 0.9


def clamp_requested(
    requested: int | None,
    max_safe: int = MAX_SAFE_BATCH_SIZE,
    default: int = DEFAULT_BATCH_SIZE,
) -> int:
    size = requested or default
    return max(MIN_BATCH_SIZE, min(size, max_safe))


def difficulty_ceiling(test_cases: Sequence[TestCase]) -> int:
    """Ceiling from the mix of difficulty tiers among the remaining cases."""
    if not test_cases:
        return 1
    hardest = [case.difficulty is Difficulty.VERY_DIFFICULT for case in test_cases]
    if all(hardest):
        return 1
    if any(hardest):
        return 2
    return 3


def load_ceiling(load: float, current: int) -> int:
    if load > 0.8:
        return 1
    if load > 0.6:
        return min(2, current)
    if load > 0.4:
        return min(3, current)
    return current


class BatchSizer:
    """Combines requested size, complexity and live load into a batch size."""

    def __init__(
        self,
        load_probe: SystemLoadProbe,
        taxonomy: TaxonomyComplexity,
        observer: BatchingObserver,
        max_safe: int = MAX_SAFE_BATCH_SIZE,
        default: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._load_probe = load_probe
        self._taxonomy = taxonomy
        self._observer = observer
        self._max_safe = max(MIN_BATCH_SIZE, min(max_safe, MAX_SAFE_BATCH_SIZE))
        self._default = default

    async def size(self, requested: int | None, remaining: Sequence[TestCase]) -> int:
        size = clamp_requested(requested, max_safe=self._max_safe, default=self._default)
        ceiling = self.complexity_ceiling(remaining)
        size = min(size, ceiling)

        load = await self._sample_load()
        size = max(MIN_BATCH_SIZE, load_ceiling(load, size))

        self._observer.batch_sized(
            requested=requested,
            complexity_ceiling=ceiling,
            load=load,
            batch_size=size,
        )
        return size

    def complexity_ceiling(self, remaining: Sequence[TestCase]) -> int:
        """Use the taxonomy model when any case carries a subcategory."""
        if any(case.subcategory is not None for case in remaining):
            return self._taxonomy.batch_size_ceiling(remaining, self._max_safe)
        return difficulty_ceiling(remaining)

    async def _sample_load(self) -> float:
        try:
            load = await self._load_probe.current()
        except Exception as exc:
            self._observer.load_sample_failed(
                reason=str(exc) or type(exc).__name__,
                assumed_load=FAILED_SAMPLE_LOAD,
            )
            return FAILED_SAMPLE_LOAD
        return min(max(load, 0.0), 1.0)
