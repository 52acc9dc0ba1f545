"""
Job Models

Immutable snapshots of async import and ingestion jobs.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobKind(str, Enum):
    IMPORT = "import"
    INGESTION = "ingestion"


# Target of a job that covers every category
ALL_TARGET = "ALL"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class JobProgress:
    total: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def percent(self) -> int:
        return int(self.processed * 100 / self.total) if self.total > 0 else 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "processed": self.processed,
            "skipped": self.skipped,
            "errors": self.errors,
            "percent": self.percent,
        }


@dataclass(frozen=True)
class Job:
    """
    State of one async job.

    Transitions: pending -> running -> completed | failed, and
    pending -> failed for a job that dies before it starts.
    """

    kind: JobKind
    target: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    progress: JobProgress = field(default_factory=JobProgress)
    result: Optional[dict[str, Any]] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "target": self.target,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "progress": self.progress.to_dict(),
            "result": self.result,
            "error_message": self.error_message,
        }
