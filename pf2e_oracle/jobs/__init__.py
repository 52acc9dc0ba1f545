"""
Async Jobs

In-memory job tracking and background execution.
"""

from pf2e_oracle.jobs.executor import AsyncJobExecutor, JobContext
from pf2e_oracle.jobs.models import ALL_TARGET, Job, JobKind, JobProgress, JobStatus
from pf2e_oracle.jobs.store import JobStore

__all__ = [
    "ALL_TARGET",
    "AsyncJobExecutor",
    "Job",
    "JobContext",
    "JobKind",
    "JobProgress",
    "JobStatus",
    "JobStore",
]
