"""
Orphaned Entry Cleanup

Find and remove stored entries whose source file no longer exists in the
remote repository.

Deletion order: the vector index first, then the database. A failed index
delete is logged and reported as zero; the database delete still runs.
"""

import time
from dataclasses import asdict, dataclass, field

from pf2e_oracle.configs.constants import PATH_PREFIX
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.github.client import GitHubClient
from pf2e_oracle.importer.service import category_of
from pf2e_oracle.storage.entries import EntryStore
from pf2e_oracle.storage.vector_index import VectorIndex

logger = get_logger("cleanup.orphans")


@dataclass(frozen=True)
class OrphanInfo:
    id: str
    source_path: str
    category: str

    @classmethod
    def from_id_and_path(cls, entry_id: str, path: str, path_prefix: str = PATH_PREFIX) -> "OrphanInfo":
        return cls(id=entry_id, source_path=path, category=category_of(path, path_prefix))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CleanupResult:
    deleted_from_database: int = 0
    deleted_from_vector_store: int = 0
    orphan_paths: list[str] = field(default_factory=list)
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class OrphanCleanupService:
    """Detects and removes entries missing from the remote tree."""

    def __init__(
        self,
        github: GitHubClient,
        entries: EntryStore,
        vector_index: VectorIndex,
        path_prefix: str = PATH_PREFIX,
    ):
        self.github = github
        self.entries = entries
        self.vector_index = vector_index
        self.path_prefix = path_prefix.rstrip("/")

    def _remote_paths(self) -> set[str]:
        listing = self.github.fetch_tree()
        if listing.truncated:
            logger.warning("GitHub tree was truncated - orphan detection may be incomplete")
        return {remote.path for remote in self.github.filter_relevant(listing, f"{self.path_prefix}/")}

    def detect_orphans(self) -> list[OrphanInfo]:
        """
        List stored entries whose path is absent remotely. Read-only.

        Returns:
            OrphanInfo per orphaned entry
        """
        logger.info("Detecting orphans...")
        remote_paths = self._remote_paths()
        stored = self.entries.find_all_ids_and_paths()

        orphans = [
            OrphanInfo.from_id_and_path(entry_id, path, self.path_prefix)
            for entry_id, path in stored
            if path not in remote_paths
        ]
        logger.info(f"Detected {len(orphans)} orphans out of {len(stored)} stored entries")
        return orphans

    def _delete_from_index(self, ids: list[str]) -> int:
        try:
            return self.vector_index.delete(ids)
        except Exception as e:
            logger.error(f"Failed to delete from vector store: {e}")
            return 0

    def cleanup_orphans(self) -> CleanupResult:
        """
        Remove orphans from the vector index and the database.

        Returns:
            CleanupResult with per-store counts and the removed paths
        """
        started = time.monotonic()
        logger.info("Starting orphan cleanup...")

        orphans = self.detect_orphans()
        if not orphans:
            logger.info("No orphans found, nothing to clean up")
            return CleanupResult(duration_ms=int((time.monotonic() - started) * 1000))

        ids = [orphan.id for orphan in orphans]
        from_index = self._delete_from_index(ids)
        from_database = self.entries.delete_by_ids(ids)

        result = CleanupResult(
            deleted_from_database=from_database,
            deleted_from_vector_store=from_index,
            orphan_paths=[orphan.source_path for orphan in orphans],
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            f"Orphan cleanup completed: {from_database} DB entries, "
            f"{from_index} vector store entries in {result.duration_ms}ms"
        )
        return result
