"""
Rules Retrieval

Filtered similarity search over the vector index, one method per kind
of question (spells, feats, actions, equipment, conditions). Filters use
the metadata written at ingestion time, so a missing key never matches.
"""

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.storage.vector_index import SearchHit, VectorIndex

logger = get_logger("search.rag")

DEFAULT_TOP_K = 5
MAX_TOP_K = 50

# Foundry item types that count as gear
EQUIPMENT_CATEGORIES = [
    "equipment",
    "weapon",
    "armor",
    "shield",
    "consumable",
    "treasure",
    "backpack",
    "kit",
]


@dataclass
class RagResult:
    name: str
    category: str
    level: Optional[int]
    traits: list[str]
    content: str
    source: Optional[str]
    similarity: float


@dataclass
class SearchResults:
    query: str
    result_count: int
    results: list[RagResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def build_where(*conditions: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Combine ChromaDB filter conditions, ignoring None."""
    active = [c for c in conditions if c]
    if not active:
        return None
    if len(active) == 1:
        return active[0]
    return {"$and": active}


def parse_traits(traits: Any) -> list[str]:
    if not traits:
        return []
    return [t.strip() for t in str(traits).split(",") if t.strip()]


def to_rag_result(hit: SearchHit) -> RagResult:
    meta = hit.metadata
    level = meta.get("level")
    return RagResult(
        name=str(meta.get("name") or "Unknown"),
        category=str(meta.get("category") or "Unknown"),
        level=int(level) if isinstance(level, (int, float)) and not isinstance(level, bool) else None,
        traits=parse_traits(meta.get("traits")),
        content=hit.text,
        source=meta.get("source"),
        similarity=hit.score,
    )


def _top_k(max_results: Optional[int]) -> int:
    if max_results is None:
        return DEFAULT_TOP_K
    return max(1, min(int(max_results), MAX_TOP_K))


class RagService:
    """Search entry points used by the API and the chat assistant."""

    def __init__(self, vector_index: VectorIndex):
        self.vector_index = vector_index

    def _search(self, query: str, top_k: int, where: Optional[dict[str, Any]] = None) -> SearchResults:
        logger.info(f"RAG search: query='{query[:50]}', top_k={top_k}, filter={where}")
        start = time.time()
        hits = self.vector_index.similarity_search(query, top_k=top_k, where=where)
        logger.info(f"RAG search completed in {(time.time() - start) * 1000:.0f}ms, results: {len(hits)}")
        results = [to_rag_result(hit) for hit in hits]
        return SearchResults(query=query, result_count=len(results), results=results)

    def search(
        self,
        query: str,
        category: Optional[str] = None,
        level: Optional[int] = None,
        max_level: Optional[int] = None,
        rarity: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> SearchResults:
        """General search with any combination of filters."""
        where = build_where(
            {"category": category.lower()} if category else None,
            {"level": level} if level is not None else None,
            {"level": {"$lte": max_level}} if max_level is not None else None,
            {"rarity": rarity.lower()} if rarity else None,
        )
        return self._search(query, _top_k(max_results), where)

    def search_rules(self, query: str, max_results: Optional[int] = None) -> SearchResults:
        """Broad rules search without filters."""
        return self._search(query, _top_k(max_results))

    def search_spells(
        self,
        query: str,
        level: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> SearchResults:
        where = build_where(
            {"category": "spell"},
            {"level": level} if level is not None else None,
        )
        return self._search(query, _top_k(max_results), where)

    def search_feats(
        self,
        query: str,
        max_level: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> SearchResults:
        where = build_where(
            {"category": "feat"},
            {"level": {"$lte": max_level}} if max_level is not None else None,
        )
        return self._search(query, _top_k(max_results), where)

    def search_actions(self, query: str, max_results: Optional[int] = None) -> SearchResults:
        return self._search(query, _top_k(max_results), {"category": "action"})

    def search_equipment(
        self,
        query: str,
        max_level: Optional[int] = None,
        rarity: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> SearchResults:
        where = build_where(
            {"category": {"$in": EQUIPMENT_CATEGORIES}},
            {"level": {"$lte": max_level}} if max_level is not None else None,
            {"rarity": rarity.lower()} if rarity else None,
        )
        return self._search(query, _top_k(max_results), where)

    def search_conditions(self, query: str, max_results: Optional[int] = None) -> SearchResults:
        return self._search(query, _top_k(max_results), {"category": "condition"})

    def get_entry(self, name: str, category: Optional[str] = None) -> SearchResults:
        """Exact-name lookup, optionally restricted to one category."""
        where = build_where(
            {"name": name},
            {"category": category.lower()} if category else None,
        )
        return self._search(name, 1, where)
