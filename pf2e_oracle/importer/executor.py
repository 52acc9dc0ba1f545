"""
Bounded Parallel Executor

Runs a callable over many items on a thread pool while never letting
more than `max_parallel` of them run at once. One item's exception is
logged and counted; it never cancels its siblings.

Usage:
    executor = BoundedExecutor(max_parallel=10)
    stats = executor.run(files, import_one, on_progress=report)
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar

from pf2e_oracle.configs.constants import PROGRESS_INTERVAL
from pf2e_oracle.configs.logging import get_logger

logger = get_logger("executor")

T = TypeVar("T")


# =============================================================================
# Counters and Progress
# =============================================================================


class AtomicCounter:
    """Integer counter safe for concurrent increments."""

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time progress of a run."""

    processed: int
    total: int
    percent: int
    eta_seconds: Optional[float]
    failed: int = 0


def format_eta(seconds: Optional[float]) -> str:
    """Render an ETA as "1h 5m", "3m 20s", "42s" or "< 1s"."""
    if seconds is None or seconds < 1:
        return "< 1s"
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class ProgressTracker:
    """
    Counts processed work and reports snapshots at a fixed interval.

    A snapshot is emitted whenever the processed count crosses a multiple
    of `interval`, and always when it reaches `total`. Snapshots are
    produced under the tracker's lock, so callbacks observe `processed`
    in non-decreasing order and never above `total`.
    """

    def __init__(
        self,
        total: int,
        interval: int = PROGRESS_INTERVAL,
        on_progress: Optional[Callable[[ProgressSnapshot], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.total = max(total, 0)
        self.interval = max(interval, 1)
        self._on_progress = on_progress
        self._clock = clock
        self._started = clock()
        self._processed = 0
        self._failed = 0
        self._lock = threading.Lock()

    @property
    def processed(self) -> int:
        with self._lock:
            return self._processed

    def _snapshot(self) -> ProgressSnapshot:
        processed, total = self._processed, self.total
        percent = 100 if total == 0 else int(processed * 100 / total)
        eta = None
        if 0 < processed < total:
            elapsed = self._clock() - self._started
            eta = elapsed / processed * (total - processed)
        return ProgressSnapshot(
            processed=processed,
            total=total,
            percent=percent,
            eta_seconds=eta,
            failed=self._failed,
        )

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot()

    def advance(self, amount: int = 1, failed: int = 0) -> Optional[ProgressSnapshot]:
        """Add completed work (failed counts units that errored); returns the snapshot if one was emitted."""
        with self._lock:
            self._failed += failed
            before = self._processed
            self._processed = min(before + amount, self.total)
            crossed = self._processed // self.interval > before // self.interval
            if not (crossed or (self._processed == self.total and before < self.total)):
                return None

            snapshot = self._snapshot()
            if self._on_progress is not None:
                try:
                    self._on_progress(snapshot)
                except Exception as e:
                    logger.warning(f"Progress callback failed: {e}")
            return snapshot


# =============================================================================
# Executor
# =============================================================================


@dataclass
class ExecutionStats:
    """Outcome counts of one run."""

    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    duration_seconds: float = 0.0

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed


class BoundedExecutor:
    """
    Fan items out over worker threads, at most `max_parallel` at a time.

    The permit semaphore belongs to the executor instance, so concurrent
    runs on the same executor share one limit.
    """

    def __init__(self, max_parallel: int, progress_interval: int = PROGRESS_INTERVAL, name: str = "worker"):
        if max_parallel < 1:
            raise ValueError(f"max_parallel must be at least 1, got {max_parallel}")
        self.max_parallel = max_parallel
        self.progress_interval = progress_interval
        self.name = name
        self._permits = threading.BoundedSemaphore(max_parallel)

    def run(
        self,
        items: Iterable[T],
        task: Callable[[T], Any],
        on_progress: Optional[Callable[[ProgressSnapshot], None]] = None,
        weight: Optional[Callable[[T], int]] = None,
        stop_event: Optional[threading.Event] = None,
        describe: Callable[[T], str] = str,
    ) -> ExecutionStats:
        """
        Run task(item) for every item and wait for all of them.

        Args:
            items: Work items (order is not preserved)
            task: Callable applied to each item; exceptions count as failures
            on_progress: Receives ProgressSnapshots at the progress interval
            weight: Units of progress an item represents (default 1)
            stop_event: When set, items that have not started are skipped
            describe: Renders an item for log messages

        Returns:
            ExecutionStats
        """
        work = list(items)
        weights = [weight(item) if weight else 1 for item in work]
        tracker = ProgressTracker(sum(weights), self.progress_interval, on_progress)

        succeeded = AtomicCounter()
        failed = AtomicCounter()
        cancelled = AtomicCounter()
        started = time.monotonic()

        def run_one(item: T, units: int) -> None:
            if stop_event is not None and stop_event.is_set():
                cancelled.increment()
                return
            with self._permits:
                failed_units = 0
                try:
                    task(item)
                    succeeded.increment()
                except Exception as e:
                    failed.increment()
                    failed_units = units
                    logger.error(f"Failed to process {describe(item)}: {e}")
                finally:
                    tracker.advance(units, failed_units)

        if work:
            with ThreadPoolExecutor(
                max_workers=self.max_parallel,
                thread_name_prefix=self.name,
            ) as pool:
                futures = [pool.submit(run_one, item, units) for item, units in zip(work, weights)]
                wait(futures)

        stats = ExecutionStats(
            succeeded=succeeded.value,
            failed=failed.value,
            cancelled=cancelled.value,
            duration_seconds=time.monotonic() - started,
        )
        if stats.cancelled:
            logger.warning(f"Run stopped early: {stats.cancelled} items not started")
        return stats
