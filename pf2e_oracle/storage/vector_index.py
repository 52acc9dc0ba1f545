"""
Vector Index

Thin wrapper over a ChromaDB collection holding one record per indexed
entry (or per journal page). Every record carries the owning entry's id
in its `entry_id` metadata so all records of an entry can be removed
together.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import chromadb

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import VectorIndexError

logger = get_logger("storage.vector_index")

# Metadata value types ChromaDB accepts
_SCALAR_TYPES = (str, int, float, bool)


@dataclass
class IndexRecord:
    """A document ready to be embedded."""

    id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchHit:
    """One similarity search result."""

    id: str
    text: str
    metadata: dict[str, Any]
    score: float


def _clean_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in metadata.items() if isinstance(v, _SCALAR_TYPES)}


class VectorIndex:
    """Add, delete and query index records in a ChromaDB collection."""

    def __init__(self, collection: chromadb.Collection):
        self.collection = collection

    def add(self, records: list[IndexRecord]) -> int:
        """
        Embed and store records, replacing any with the same id.

        Raises:
            VectorIndexError: If ChromaDB rejects the batch
        """
        if not records:
            return 0
        try:
            self.collection.upsert(
                ids=[r.id for r in records],
                documents=[r.text for r in records],
                metadatas=[_clean_metadata(r.metadata) for r in records],
            )
        except Exception as e:
            raise VectorIndexError(f"Failed to add {len(records)} records", {"error": str(e)}) from e
        logger.debug(f"Indexed {len(records)} records")
        return len(records)

    def delete(self, ids: list[str]) -> int:
        """
        Delete records by id, along with every record whose entry_id is one of ids.

        Returns:
            Number of records removed

        Raises:
            VectorIndexError: If the lookup or delete fails
        """
        if not ids:
            return 0
        try:
            direct = self.collection.get(ids=list(ids), include=[])
            derived = self.collection.get(where={"entry_id": {"$in": list(ids)}}, include=[])
            to_delete = sorted(set(direct["ids"]) | set(derived["ids"]))
            if to_delete:
                self.collection.delete(ids=to_delete)
        except Exception as e:
            raise VectorIndexError("Failed to delete records", {"error": str(e)}) from e
        logger.info(f"Deleted {len(to_delete)} records from vector index")
        return len(to_delete)

    def record_ids_by_entry(self, entry_ids: list[str]) -> dict[str, set[str]]:
        """Map each entry id to the ids of the records it currently owns."""
        owned: dict[str, set[str]] = {entry_id: set() for entry_id in entry_ids}
        if not entry_ids:
            return owned
        try:
            found = self.collection.get(where={"entry_id": {"$in": list(entry_ids)}}, include=["metadatas"])
        except Exception as e:
            raise VectorIndexError("Failed to look up entry records", {"error": str(e)}) from e
        for record_id, metadata in zip(found["ids"], found["metadatas"] or []):
            entry_id = (metadata or {}).get("entry_id")
            if entry_id in owned:
                owned[entry_id].add(record_id)
        return owned

    def delete_records(self, record_ids: list[str]) -> int:
        """Delete exactly the given record ids."""
        if not record_ids:
            return 0
        try:
            self.collection.delete(ids=list(record_ids))
        except Exception as e:
            raise VectorIndexError("Failed to delete records", {"error": str(e)}) from e
        logger.debug(f"Removed {len(record_ids)} stale records")
        return len(record_ids)

    def similarity_search(
        self,
        query: str,
        top_k: int = 5,
        where: Optional[dict[str, Any]] = None,
    ) -> list[SearchHit]:
        """
        Return the top_k records closest to query, optionally filtered.

        Scores are cosine similarities (1 - distance).
        """
        if self.collection.count() == 0:
            return []
        try:
            results = self.collection.query(
                query_texts=[query],
                n_results=top_k,
                where=where or None,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise VectorIndexError("Similarity search failed", {"error": str(e)}) from e

        hits = []
        ids = results["ids"][0] if results["ids"] else []
        for i, doc_id in enumerate(ids):
            distance = results["distances"][0][i]
            hits.append(
                SearchHit(
                    id=doc_id,
                    text=results["documents"][0][i] or "",
                    metadata=results["metadatas"][0][i] or {},
                    score=round(1.0 - distance, 4),
                )
            )
        return hits

    def count(self) -> int:
        return self.collection.count()
