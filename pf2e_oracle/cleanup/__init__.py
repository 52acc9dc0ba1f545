"""
Orphan Cleanup

Removal of entries that disappeared from the remote repository.
"""

from pf2e_oracle.cleanup.orphans import CleanupResult, OrphanCleanupService, OrphanInfo

__all__ = ["CleanupResult", "OrphanCleanupService", "OrphanInfo"]
