"""
Entry Store

Repository of imported compendium entries, keyed by remote source path.
Each call opens its own session, so writes for distinct paths from
concurrent workers never share state.
"""

from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import StorageError
from pf2e_oracle.storage.database import session_scope
from pf2e_oracle.storage.models import StoredEntry

logger = get_logger("storage")

# Keeps IN (...) clauses below SQLite's bound parameter limit
ID_CHUNK_SIZE = 500


def _chunks(ids: list[str], size: int = ID_CHUNK_SIZE) -> Iterable[list[str]]:
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


def _pending_clause():
    return or_(
        StoredEntry.indexed_hash.is_(None),
        StoredEntry.indexed_hash != StoredEntry.content_hash,
    )


class EntryStore:
    """SQLAlchemy-backed storage for StoredEntry rows."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _session(self):
        return session_scope(self._session_factory)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_by_source_path(self, source_path: str) -> Optional[StoredEntry]:
        with self._session() as session:
            return session.execute(
                select(StoredEntry).where(StoredEntry.source_path == source_path)
            ).scalar_one_or_none()

    def load_hash_index(self, path_prefix: str = "") -> dict[str, str]:
        """Map source_path -> content_hash for every entry under path_prefix."""
        stmt = select(StoredEntry.source_path, StoredEntry.content_hash)
        if path_prefix:
            stmt = stmt.where(StoredEntry.source_path.startswith(path_prefix, autoescape=True))
        with self._session() as session:
            return {path: content_hash for path, content_hash in session.execute(stmt)}

    def find_all_ids_and_paths(self) -> list[tuple[str, str]]:
        """Lightweight (id, source_path) projection of every entry."""
        with self._session() as session:
            rows = session.execute(select(StoredEntry.id, StoredEntry.source_path))
            return [(entry_id, path) for entry_id, path in rows]

    def find_by_ids(self, ids: list[str]) -> list[StoredEntry]:
        found: list[StoredEntry] = []
        with self._session() as session:
            for chunk in _chunks(list(ids)):
                found.extend(
                    session.execute(select(StoredEntry).where(StoredEntry.id.in_(chunk))).scalars()
                )
        return found

    def find_by_category(self, category: str) -> list[StoredEntry]:
        with self._session() as session:
            return list(
                session.execute(
                    select(StoredEntry)
                    .where(StoredEntry.category == category)
                    .order_by(StoredEntry.name)
                ).scalars()
            )

    def find_all(self) -> list[StoredEntry]:
        with self._session() as session:
            return list(session.execute(select(StoredEntry)).scalars())

    def find_pending_indexing(self, category: Optional[str] = None) -> list[StoredEntry]:
        """Entries never indexed, or whose content changed since the last indexing."""
        stmt = select(StoredEntry).where(_pending_clause())
        if category:
            stmt = stmt.where(StoredEntry.category == category)
        with self._session() as session:
            return list(session.execute(stmt).scalars())

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------

    def count(self) -> int:
        with self._session() as session:
            return session.execute(select(func.count(StoredEntry.id))).scalar_one()

    def count_by_category(self) -> dict[str, int]:
        with self._session() as session:
            rows = session.execute(
                select(StoredEntry.category, func.count(StoredEntry.id))
                .group_by(StoredEntry.category)
                .order_by(StoredEntry.category)
            )
            return {category: total for category, total in rows}

    def count_pending_indexing(self) -> int:
        with self._session() as session:
            return session.execute(
                select(func.count(StoredEntry.id)).where(_pending_clause())
            ).scalar_one()

    def list_distinct_categories(self) -> list[str]:
        with self._session() as session:
            return list(
                session.execute(
                    select(StoredEntry.category).distinct().order_by(StoredEntry.category)
                ).scalars()
            )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save(
        self,
        source_path: str,
        content_hash: str,
        source_id: str,
        category: str,
        name: str,
        raw_content: str,
    ) -> StoredEntry:
        """
        Insert or update the entry stored under source_path.

        An existing row keeps its id and indexed_hash; only the imported
        fields and last_synced_at change.

        Raises:
            StorageError: If the write fails
        """
        try:
            with self._session() as session:
                entry = session.execute(
                    select(StoredEntry).where(StoredEntry.source_path == source_path)
                ).scalar_one_or_none()
                if entry is None:
                    entry = StoredEntry(source_path=source_path)
                    session.add(entry)

                entry.content_hash = content_hash
                entry.source_id = source_id
                entry.category = category
                entry.name = name
                entry.raw_content = raw_content
                entry.last_synced_at = datetime.now(timezone.utc)
                session.flush()
                return entry
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save entry: {source_path}", {"error": str(e)}) from e

    def delete_by_ids(self, ids: list[str]) -> int:
        """
        Delete entries by id in a single transaction.

        Returns:
            Number of rows deleted
        """
        if not ids:
            return 0
        try:
            deleted = 0
            with self._session() as session:
                for chunk in _chunks(list(ids)):
                    result = session.execute(
                        delete(StoredEntry)
                        .where(StoredEntry.id.in_(chunk))
                        .execution_options(synchronize_session=False)
                    )
                    deleted += result.rowcount or 0
            logger.info(f"Deleted {deleted} entries from database")
            return deleted
        except SQLAlchemyError as e:
            raise StorageError("Failed to delete entries", {"error": str(e)}) from e

    def mark_indexed(self, ids: list[str], indexed_hashes: Optional[Mapping[str, str]] = None) -> int:
        """
        Record entries as indexed.

        Without indexed_hashes, each entry's current content_hash is
        recorded. With it, an entry is only marked when its content_hash
        still equals the hash that was indexed, so content re-imported
        while indexing ran stays pending.

        Returns:
            Number of rows updated
        """
        if not ids:
            return 0
        updated = 0
        with self._session() as session:
            if indexed_hashes is not None:
                for entry_id in ids:
                    result = session.execute(
                        update(StoredEntry)
                        .where(
                            StoredEntry.id == entry_id,
                            StoredEntry.content_hash == indexed_hashes[entry_id],
                        )
                        .values(indexed_hash=indexed_hashes[entry_id])
                        .execution_options(synchronize_session=False)
                    )
                    updated += result.rowcount or 0
                return updated

            for chunk in _chunks(list(ids)):
                result = session.execute(
                    update(StoredEntry)
                    .where(StoredEntry.id.in_(chunk))
                    .values(indexed_hash=StoredEntry.content_hash)
                    .execution_options(synchronize_session=False)
                )
                updated += result.rowcount or 0
        return updated
