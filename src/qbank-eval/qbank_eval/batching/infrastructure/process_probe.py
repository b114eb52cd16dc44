"""ProcessLoadProbe — samples host, process and evaluation pressure into one load value."""

import asyncio
import os
import resource
import sys
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import structlog

MAX_CONCURRENT_EVALUATIONS = 5
API_CALLS_PER_MINUTE = 50
MAX_RSS_BYTES = 2048 * 1024 * 1024
MAX_CONCURRENT_TASKS = 10
CACHE_TTL_SECONDS = 30.0
API_CALL_WINDOW_SECONDS = 60.0
STATM_PATH = Path("/proc/self/statm")


@dataclass(frozen=True)
class LoadWeights:
    cpu: float = 0.25
    memory: float = 0.20
    evaluations: float = 0.30
    api_rate: float = 0.20
    task_pressure: float = 0.05


@dataclass(frozen=True)
class SystemMetrics:
    """Each metric is normalized into [0, 1]."""

    cpu: float
    memory: float
    evaluations: float
    api_rate: float
    task_pressure: float

    def load(self, weights: LoadWeights) -> float:
        value = (
            self.cpu * weights.cpu
            + self.memory * weights.memory
            + self.evaluations * weights.evaluations
            + self.api_rate * weights.api_rate
            + self.task_pressure * weights.task_pressure
        )
        return min(max(value, 0.0), 1.0)


class ProcessLoadProbe:
    """Load sampler backed by the OS, this process and the job store.

    ``active_jobs`` counts pending and running evaluation jobs. AI API calls
    are reported through ``record_api_call`` by the generation and scoring
    adapters. Samples are cached for ``CACHE_TTL_SECONDS``.

    Does NOT inherit from SystemLoadProbe (structural typing via Protocol).
    """

    def __init__(
        self,
        active_jobs: Callable[[], Awaitable[int]],
        weights: LoadWeights = LoadWeights(),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._active_jobs = active_jobs
        self._weights = weights
        self._clock = clock
        self._api_calls: deque[float] = deque()
        self._cached: SystemMetrics | None = None
        self._cached_at = 0.0
        self._log = structlog.get_logger()

    def record_api_call(self) -> None:
        self._api_calls.append(self._clock())

    def clear_cache(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    async def current(self) -> float:
        metrics = await self.metrics()
        return metrics.load(self._weights)

    async def metrics(self) -> SystemMetrics:
        now = self._clock()
        if self._cached is not None and now - self._cached_at < CACHE_TTL_SECONDS:
            return self._cached

        metrics = SystemMetrics(
            cpu=_cpu_pressure(),
            memory=_memory_pressure(),
            evaluations=await self._evaluation_pressure(),
            api_rate=self._api_rate(now),
            task_pressure=min(len(asyncio.all_tasks()) / MAX_CONCURRENT_TASKS, 1.0),
        )
        self._cached = metrics
        self._cached_at = now
        self._log.debug(
            "batching.load_sampled",
            cpu=round(metrics.cpu, 2),
            memory=round(metrics.memory, 2),
            evaluations=round(metrics.evaluations, 2),
            api_rate=round(metrics.api_rate, 2),
            task_pressure=round(metrics.task_pressure, 2),
        )
        return metrics

    async def _evaluation_pressure(self) -> float:
        active = await self._active_jobs()
        return min(active / MAX_CONCURRENT_EVALUATIONS, 1.0)

    def _api_rate(self, now: float) -> float:
        while self._api_calls and self._api_calls[0] <= now - API_CALL_WINDOW_SECONDS:
            self._api_calls.popleft()
        return min(len(self._api_calls) / API_CALLS_PER_MINUTE, 1.0)


def _cpu_pressure() -> float:
    one_minute, _, _ = os.getloadavg()
    return min(one_minute / (os.cpu_count() or 1), 1.0)


def current_rss_bytes(statm_path: Path = STATM_PATH) -> int:
    """Resident set size of this process right now.

    Reads the resident page count from procfs. Where procfs is unavailable
    the peak RSS is the closest figure the platform offers.
    """
    try:
        resident_pages = int(statm_path.read_text().split()[1])
    except (OSError, ValueError, IndexError):
        return _peak_rss_bytes()
    return resident_pages * os.sysconf("SC_PAGE_SIZE")


def _peak_rss_bytes() -> int:
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is reported in bytes on macOS and kilobytes elsewhere.
    return peak if sys.platform == "darwin" else peak * 1024


def _memory_pressure() -> float:
    return min(current_rss_bytes() / MAX_RSS_BYTES, 1.0)
