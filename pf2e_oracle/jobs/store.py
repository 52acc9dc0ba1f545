"""
Job Store

Thread-safe in-memory registry of jobs of one kind. Every update is an
atomic read-modify-write that swaps in a new immutable Job, so readers
always see a consistent snapshot. Jobs live for the process lifetime
only.
"""

import threading
from dataclasses import replace
from typing import Callable, Optional

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import JobNotFoundError, JobStateError
from pf2e_oracle.jobs.models import Job, JobKind, JobProgress, JobStatus, utcnow

logger = get_logger("jobs")

_STARTABLE = frozenset({JobStatus.PENDING})
_ACTIVE = frozenset({JobStatus.RUNNING})
_FAILABLE = frozenset({JobStatus.PENDING, JobStatus.RUNNING})


class JobStore:
    """Registry of jobs keyed by id."""

    def __init__(self, kind: JobKind):
        self.kind = kind
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self, target: str) -> Job:
        job = Job(kind=self.kind, target=target)
        with self._lock:
            self._jobs[job.id] = job
        logger.info(f"Created {self.kind.value} job {job.id} for {target}")
        return job

    def find(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def get(self, job_id: str) -> Job:
        """
        Raises:
            JobNotFoundError: If no job has this id
        """
        job = self.find(job_id)
        if job is None:
            raise JobNotFoundError(f"{self.kind.value.capitalize()} job not found: {job_id}")
        return job

    def list_jobs(self) -> list[Job]:
        """All jobs, newest first."""
        with self._lock:
            jobs = list(self._jobs.values())
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._jobs.clear()

    def _update(
        self,
        job_id: str,
        allowed: frozenset[JobStatus],
        change: Callable[[Job], Job],
    ) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(f"{self.kind.value.capitalize()} job not found: {job_id}")
            if job.status not in allowed:
                raise JobStateError(
                    f"Job {job_id} is {job.status.value}",
                    {"allowed": sorted(status.value for status in allowed)},
                )
            updated = change(job)
            self._jobs[job_id] = updated
            return updated

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start(self, job_id: str, total: int) -> Job:
        return self._update(
            job_id,
            _STARTABLE,
            lambda job: replace(
                job,
                status=JobStatus.RUNNING,
                started_at=utcnow(),
                progress=replace(job.progress, total=total),
            ),
        )

    def update_progress(
        self,
        job_id: str,
        processed: int,
        skipped: Optional[int] = None,
        errors: Optional[int] = None,
    ) -> Job:
        def change(job: Job) -> Job:
            progress = job.progress
            return replace(
                job,
                progress=JobProgress(
                    total=progress.total,
                    processed=max(progress.processed, min(processed, progress.total)),
                    skipped=progress.skipped if skipped is None else skipped,
                    errors=progress.errors if errors is None else errors,
                ),
            )

        return self._update(job_id, _ACTIVE, change)

    def complete(self, job_id: str, result: dict) -> Job:
        job = self._update(
            job_id,
            _ACTIVE,
            lambda job: replace(
                job,
                status=JobStatus.COMPLETED,
                completed_at=utcnow(),
                result=result,
                progress=replace(
                    job.progress,
                    processed=job.progress.total,
                    skipped=result.get("skipped", job.progress.skipped),
                    errors=result.get("errors", job.progress.errors),
                ),
            ),
        )
        logger.info(f"{self.kind.value.capitalize()} job {job_id} completed")
        return job

    def fail(self, job_id: str, error_message: str) -> Job:
        job = self._update(
            job_id,
            _FAILABLE,
            lambda job: replace(
                job,
                status=JobStatus.FAILED,
                completed_at=utcnow(),
                error_message=error_message,
            ),
        )
        logger.error(f"{self.kind.value.capitalize()} job {job_id} failed: {error_message}")
        return job
