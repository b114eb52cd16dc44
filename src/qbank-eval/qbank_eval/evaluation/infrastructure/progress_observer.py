"""ProgressEvaluationObserver — renders a Rich progress bar for the running job to stderr."""

from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


class _CountsColumn(ProgressColumn):
    """Renders done+inflight/total with colors matching the bar segments."""

    def render(self, task: Task) -> Text:
        done = int(task.fields.get("done", 0))
        inflight = int(task.fields.get("inflight", 0))
        failed = int(task.fields.get("failed", 0))
        total = int(task.total or 0)
        text = Text.assemble(
            (str(done), "bright_green"),
            ("+", "dim white"),
            (str(inflight), "grey50"),
            ("/", "dim white"),
            (str(total), "default"),
        )
        if failed:
            text.append(f"  {failed} failed", style="red")
        return text


class _ThreeSegmentBarColumn(ProgressColumn):
    """ProgressColumn that renders three segments: done, in-flight, remaining."""

    def __init__(self, bar_width: int = 40) -> None:
        super().__init__()
        self.bar_width = bar_width

    def render(self, task: Task) -> Text:
        bar_width = self.bar_width or 40
        total = task.total or 0
        if total > 0:
            done_cells = min(int(task.completed / total * bar_width), bar_width)
            inflight = int(task.fields.get("inflight", 0))
            inflight_cells = min(
                int(inflight / total * bar_width),
                bar_width - done_cells,
            )
        else:
            done_cells = 0
            inflight_cells = 0
        remaining_cells = bar_width - done_cells - inflight_cells

        result = Text()
        result.append("█" * done_cells, style="bright_green")
        result.append("▒" * inflight_cells, style="grey50")
        result.append("░" * remaining_cells, style="dim white")
        return result


def _make_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("{task.description}"),
        _ThreeSegmentBarColumn(bar_width=40),
        _CountsColumn(),
        TimeElapsedColumn(),
        TextColumn("{task.fields[rate]}"),
        console=console,
        refresh_per_second=10,
        transient=False,
    )


class ProgressEvaluationObserver:
    """Renders one Rich progress row for the job being processed on stderr.

    The row appears on the first batch_started of a job, seeded with the
    job's stored completed_tests so resumed jobs start where they left off.
    It is torn down when the job completes, fails or is cancelled. Events
    that carry no progress information are no-ops.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._job_id: str | None = None
        self._total = 0
        self._done = 0
        self._inflight = 0
        self._failed = 0
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._live: Live | None = None

    @property
    def done(self) -> int:
        return self._done

    @property
    def inflight(self) -> int:
        return self._inflight

    @property
    def failed(self) -> int:
        return self._failed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self, job_id: str, completed_tests: int, total_tests: int) -> None:
        self._job_id = job_id
        self._total = total_tests
        self._done = completed_tests
        self._inflight = 0
        self._failed = 0

        if self._disabled:
            return

        console = Console(stderr=True)
        legend = Text.assemble(
            "  Legend:  ",
            ("█", "bright_green"),
            " done  ",
            ("▒", "grey50"),
            " in-flight  ",
            ("░", "dim white"),
            " remaining",
        )
        self._progress = _make_progress(console=console)
        self._task_id = self._progress.add_task(
            description=f"[bold]{job_id[:8]}[/bold]",
            total=float(total_tests),
            completed=float(completed_tests),
            inflight=0,
            done=completed_tests,
            failed=0,
            rate="--s/test",
        )
        self._live = Live(
            Group(self._progress, Text(""), legend),
            console=console,
            refresh_per_second=10,
        )
        self._live.start()

    def _stop(self) -> None:
        if self._live is not None:
            self._live.stop()
        self._job_id = None
        self._progress = None
        self._task_id = None
        self._live = None

    def _rate_str(self) -> str:
        if self._progress is None or self._task_id is None:
            return "--s/test"
        task = self._progress.tasks[self._task_id]
        elapsed = task.elapsed
        if elapsed is not None and elapsed > 0 and task.completed > 0:
            return f"{elapsed / task.completed:.1f}s/test"
        return "--s/test"

    def _update(self) -> None:
        if self._disabled or self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            completed=self._done,
            inflight=self._inflight,
            done=self._done,
            failed=self._failed,
            rate=self._rate_str(),
        )

    def _settle(self, job_id: str) -> None:
        if job_id != self._job_id:
            return
        self._done = min(self._done + 1, self._total)
        self._inflight = max(0, self._inflight - 1)
        self._update()

    # ------------------------------------------------------------------
    # Observer events
    # ------------------------------------------------------------------

    def job_created(
        self, job_id: str, user_id: str, total_tests: int, estimated_seconds: int
    ) -> None:
        pass

    def batch_started(
        self,
        job_id: str,
        start_index: int,
        batch_size: int,
        completed_tests: int,
        total_tests: int,
    ) -> None:
        if job_id != self._job_id:
            self._stop()
            self._start(job_id, completed_tests, total_tests)

    def batch_completed(
        self,
        job_id: str,
        start_index: int,
        end_index: int,
        successes: int,
        elapsed_seconds: float,
    ) -> None:
        pass

    def test_started(
        self, job_id: str, test_index: int, pipeline: str, topic: str, difficulty: str
    ) -> None:
        if job_id != self._job_id:
            return
        self._inflight += 1
        self._update()

    def test_completed(
        self, job_id: str, test_index: int, pipeline: str, latency_ms: int, quality: float
    ) -> None:
        self._settle(job_id)

    def test_failed(
        self, job_id: str, test_index: int, pipeline: str, reason: str
    ) -> None:
        if job_id == self._job_id:
            self._failed += 1
        self._settle(job_id)

    def test_skipped(self, job_id: str, test_index: int) -> None:
        pass

    def ai_scoring_degraded(self, job_id: str, test_index: int, reason: str) -> None:
        pass

    def review_enqueue_failed(self, job_id: str, test_index: int, reason: str) -> None:
        pass

    def continuation_enqueued(self, job_id: str, next_start_index: int) -> None:
        pass

    def cancellation_requested(self, job_id: str, requester: str, reason: str) -> None:
        pass

    def job_cancelled(self, job_id: str, reason: str) -> None:
        if job_id == self._job_id:
            self._stop()

    def job_completed(
        self, job_id: str, total_tests: int, total_successes: int, success_rate: float
    ) -> None:
        if job_id == self._job_id:
            self._stop()

    def job_failed(self, job_id: str, reason: str) -> None:
        if job_id == self._job_id:
            self._stop()

    def summary_write_failed(self, job_id: str, reason: str) -> None:
        pass
