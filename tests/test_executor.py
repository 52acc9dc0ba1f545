"""
Tests for the bounded parallel executor and progress tracking.
"""

import threading
import time

import pytest

from pf2e_oracle.importer.executor import (
    AtomicCounter,
    BoundedExecutor,
    ProgressTracker,
    format_eta,
)


class TestBoundedExecutor:
    """Tests for BoundedExecutor.run()."""

    def test_never_exceeds_max_parallel(self):
        """Instrumented tasks never see more than N running at once."""
        lock = threading.Lock()
        active = 0
        peak = 0

        def task(item):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.002)
            with lock:
                active -= 1

        stats = BoundedExecutor(max_parallel=2, progress_interval=10).run(range(100), task)

        assert stats.succeeded == 100
        assert stats.failed == 0
        assert 1 <= peak <= 2

    def test_permits_shared_between_concurrent_runs(self):
        executor = BoundedExecutor(max_parallel=2)
        lock = threading.Lock()
        active = 0
        peak = 0

        def task(item):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.002)
            with lock:
                active -= 1

        runs = [threading.Thread(target=executor.run, args=(range(30), task)) for _ in range(3)]
        for run in runs:
            run.start()
        for run in runs:
            run.join()

        assert peak <= 2

    def test_failures_isolated(self):
        def task(item):
            if item % 10 == 0:
                raise RuntimeError(f"bad item {item}")

        stats = BoundedExecutor(max_parallel=4).run(range(50), task)

        assert stats.failed == 5
        assert stats.succeeded == 45
        assert stats.processed == 50

    def test_progress_snapshots_monotonic_and_bounded(self):
        snapshots = []

        BoundedExecutor(max_parallel=4, progress_interval=7).run(
            range(100), lambda item: None, on_progress=snapshots.append
        )

        processed = [s.processed for s in snapshots]
        assert processed == sorted(processed)
        assert all(0 <= s.processed <= s.total == 100 for s in snapshots)
        assert processed[-1] == 100
        assert snapshots[-1].percent == 100
        assert snapshots[-1].eta_seconds is None

    def test_weighted_progress(self):
        snapshots = []

        BoundedExecutor(max_parallel=2, progress_interval=10).run(
            [[1] * 10, [1] * 10, [1] * 5], lambda batch: None, on_progress=snapshots.append, weight=len
        )

        assert snapshots[-1].total == 25
        assert snapshots[-1].processed == 25

    def test_stop_event_skips_unstarted_items(self):
        stop = threading.Event()
        stop.set()
        calls = []

        stats = BoundedExecutor(max_parallel=2).run(range(10), calls.append, stop_event=stop)

        assert calls == []
        assert stats.cancelled == 10

    def test_empty_input(self):
        stats = BoundedExecutor(max_parallel=2).run([], lambda item: None)
        assert stats.processed == 0

    def test_invalid_max_parallel(self):
        with pytest.raises(ValueError):
            BoundedExecutor(max_parallel=0)


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_emits_at_interval_and_completion(self):
        snapshots = []
        tracker = ProgressTracker(total=12, interval=5, on_progress=snapshots.append)

        for _ in range(12):
            tracker.advance()

        assert [s.processed for s in snapshots] == [5, 10, 12]

    def test_eta_from_elapsed_time(self):
        now = [0.0]
        tracker = ProgressTracker(total=4, interval=1, clock=lambda: now[0])

        now[0] = 10.0
        snapshot = tracker.advance()

        assert snapshot.processed == 1
        assert snapshot.eta_seconds == pytest.approx(30.0)

    def test_processed_clamped_to_total(self):
        tracker = ProgressTracker(total=3, interval=1)
        tracker.advance(5)
        assert tracker.processed == 3

    def test_failing_callback_does_not_break_tracking(self):
        def explode(snapshot):
            raise RuntimeError("callback failed")

        tracker = ProgressTracker(total=2, interval=1, on_progress=explode)
        tracker.advance()
        tracker.advance()

        assert tracker.processed == 2

    def test_failed_units_reported(self):
        tracker = ProgressTracker(total=3, interval=10)
        tracker.advance(1, failed=1)
        snapshot = tracker.advance(2)

        assert snapshot.failed == 1


class TestHelpers:
    def test_atomic_counter_concurrent_increments(self):
        counter = AtomicCounter()

        def bump():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert counter.value == 8000

    @pytest.mark.parametrize(
        "seconds, expected",
        [(None, "< 1s"), (0.4, "< 1s"), (42, "42s"), (200, "3m 20s"), (3900, "1h 5m")],
    )
    def test_format_eta(self, seconds, expected):
        assert format_eta(seconds) == expected
