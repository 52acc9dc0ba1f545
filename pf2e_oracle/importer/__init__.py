"""
Compendium Import

Change detection, bounded parallel download and storage of remote files.
"""

from pf2e_oracle.importer.changeset import ChangeSet, resolve_changeset
from pf2e_oracle.importer.executor import (
    AtomicCounter,
    BoundedExecutor,
    ExecutionStats,
    ProgressSnapshot,
    ProgressTracker,
    format_eta,
)
from pf2e_oracle.importer.service import FoundryImportService, ImportResult

__all__ = [
    "AtomicCounter",
    "BoundedExecutor",
    "ChangeSet",
    "ExecutionStats",
    "FoundryImportService",
    "ImportResult",
    "ProgressSnapshot",
    "ProgressTracker",
    "format_eta",
    "resolve_changeset",
]
