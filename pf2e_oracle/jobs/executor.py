"""
Async Job Executor

Background execution for import and ingestion jobs. HTTP handlers create
a job, hand it to the executor and return immediately; the job's state
is then polled through its JobStore.

Each job is isolated: an exception ends that job as failed and never
touches its siblings. On shutdown, queued jobs are cancelled and marked
failed, and running jobs see the stop event and stop picking up new
items.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Optional

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import JobError, JobStateError
from pf2e_oracle.jobs.models import Job
from pf2e_oracle.jobs.store import JobStore

logger = get_logger("jobs.executor")

DEFAULT_MAX_CONCURRENT_JOBS = 4
SHUTDOWN_MESSAGE = "Cancelled: application shutdown"


@dataclass
class JobContext:
    """Handle a running job uses to report progress and observe shutdown."""

    job_id: str
    store: JobStore
    stop_event: threading.Event

    @property
    def stopping(self) -> bool:
        return self.stop_event.is_set()

    def start(self, total: int) -> None:
        self.store.start(self.job_id, total)

    def report(self, processed: int, skipped: Optional[int] = None, errors: Optional[int] = None) -> None:
        self.store.update_progress(self.job_id, processed, skipped=skipped, errors=errors)


def _result_to_dict(result: Any) -> dict:
    if result is None:
        return {}
    if hasattr(result, "to_dict"):
        return result.to_dict()
    if is_dataclass(result):
        return asdict(result)
    if isinstance(result, dict):
        return result
    return {"value": result}


class AsyncJobExecutor:
    """Runs job callables on a private thread pool."""

    def __init__(self, max_workers: int = DEFAULT_MAX_CONCURRENT_JOBS):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="job")
        self._stop_event = threading.Event()
        self._pending: dict[str, tuple[Future, JobStore]] = {}
        self._lock = threading.Lock()

    @property
    def is_shutdown(self) -> bool:
        return self._stop_event.is_set()

    def submit(self, store: JobStore, job: Job, fn: Callable[[JobContext], Any]) -> Future:
        """
        Launch fn(context) for a pending job.

        The job completes with fn's return value as its result, or fails
        with str(exception) if fn raises.

        Raises:
            JobError: If the executor has been shut down
        """
        if self.is_shutdown:
            store.fail(job.id, SHUTDOWN_MESSAGE)
            raise JobError("Job executor is shut down")

        context = JobContext(job_id=job.id, store=store, stop_event=self._stop_event)

        def run() -> None:
            try:
                result = fn(context)
                if context.stopping:
                    store.fail(job.id, "Interrupted: application shutdown")
                    return
                store.complete(job.id, _result_to_dict(result))
            except Exception as e:
                logger.error(f"Async job {job.id} failed: {e}")
                self._fail_quietly(store, job.id, str(e) or type(e).__name__)

        with self._lock:
            future = self._pool.submit(run)
            self._pending[job.id] = (future, store)
        future.add_done_callback(lambda _: self._forget(job.id))
        return future

    def _forget(self, job_id: str) -> None:
        with self._lock:
            self._pending.pop(job_id, None)

    @staticmethod
    def _fail_quietly(store: JobStore, job_id: str, message: str) -> None:
        try:
            store.fail(job_id, message)
        except JobStateError as e:
            logger.warning(f"Could not mark job {job_id} failed: {e}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs, cancel queued ones and signal running ones."""
        logger.info("Shutting down job executor, cancelling queued jobs")
        self._stop_event.set()

        with self._lock:
            pending = list(self._pending.items())

        for job_id, (future, store) in pending:
            if future.cancel():
                self._fail_quietly(store, job_id, SHUTDOWN_MESSAGE)

        self._pool.shutdown(wait=wait)
