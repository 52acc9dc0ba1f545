"""
Tests for rules retrieval.
"""

from unittest.mock import MagicMock

import pytest

from pf2e_oracle.search import RagService
from pf2e_oracle.search.rag import (
    DEFAULT_TOP_K,
    EQUIPMENT_CATEGORIES,
    MAX_TOP_K,
    build_where,
    parse_traits,
    to_rag_result,
)
from pf2e_oracle.storage import IndexRecord, SearchHit


def rec(record_id, text, **metadata):
    return IndexRecord(id=record_id, text=text, metadata={"name": record_id.title(), **metadata})


@pytest.fixture
def populated(vector_index):
    vector_index.add(
        [
            rec("fireball", "fireball fire blast", category="spell", level=3, traits="fire,evocation", rarity="common"),
            rec("ignition", "ignition fire cantrip", category="spell", level=0, traits="fire,cantrip", rarity="common"),
            rec("power attack", "power attack strike", category="feat", level=1, rarity="common"),
            rec("flaming rune", "flaming fire rune", category="equipment", level=8, rarity="uncommon"),
            rec("flame sword", "fire sword weapon", category="weapon", level=2, rarity="common"),
            rec("stride", "stride move speed", category="action"),
            rec("blinded", "blinded cannot see", category="condition"),
        ]
    )
    return vector_index


@pytest.fixture
def rag(populated):
    return RagService(populated)


class TestSearch:
    def test_unfiltered(self, rag):
        results = rag.search_rules("fire blast")

        assert results.query == "fire blast"
        assert results.result_count == len(results.results) == DEFAULT_TOP_K
        assert results.results[0].name == "Fireball"

    def test_category_is_lowercased(self, rag):
        results = rag.search("fire", category="SPELL", max_results=10)
        assert {r.category for r in results.results} == {"spell"}

    def test_level_zero_filter(self, rag):
        results = rag.search_spells("fire", level=0, max_results=10)
        assert [r.name for r in results.results] == ["Ignition"]
        assert results.results[0].level == 0

    def test_max_level_inclusive(self, rag):
        results = rag.search("fire", category="spell", max_level=3, max_results=10)
        assert {r.name for r in results.results} == {"Fireball", "Ignition"}

    def test_rarity_filter(self, rag):
        results = rag.search("fire", rarity="Uncommon", max_results=10)
        assert [r.name for r in results.results] == ["Flaming Rune"]

    def test_feats_by_max_level(self, rag):
        assert [r.name for r in rag.search_feats("attack", max_level=1).results] == ["Power Attack"]
        assert rag.search_feats("attack", max_level=0).results == []

    def test_equipment_spans_gear_types(self, rag):
        results = rag.search_equipment("fire", max_results=10)
        assert {r.name for r in results.results} == {"Flaming Rune", "Flame Sword"}

    def test_actions_and_conditions(self, rag):
        assert [r.name for r in rag.search_actions("move").results] == ["Stride"]
        assert [r.name for r in rag.search_conditions("see").results] == ["Blinded"]

    def test_get_entry_exact_name(self, rag):
        results = rag.get_entry("Fireball")

        assert results.result_count == 1
        assert results.results[0].traits == ["fire", "evocation"]

    def test_empty_index(self, vector_index):
        results = RagService(vector_index).search_rules("anything")
        assert results.result_count == 0
        assert results.results == []

    def test_to_dict(self, rag):
        data = rag.get_entry("Fireball").to_dict()

        assert data["query"] == "Fireball"
        assert data["results"][0]["name"] == "Fireball"
        assert data["results"][0]["level"] == 3


class TestTopK:
    @pytest.mark.parametrize("requested, expected", [(None, DEFAULT_TOP_K), (0, 1), (3, 3), (500, MAX_TOP_K)])
    def test_clamped(self, requested, expected):
        index = MagicMock()
        index.similarity_search.return_value = []

        RagService(index).search_rules("q", max_results=requested)

        assert index.similarity_search.call_args.kwargs["top_k"] == expected


class TestHelpers:
    def test_build_where(self):
        assert build_where(None, None) is None
        assert build_where({"a": 1}, None) == {"a": 1}
        assert build_where({"a": 1}, {"b": 2}) == {"$and": [{"a": 1}, {"b": 2}]}

    def test_equipment_filter(self):
        index = MagicMock()
        index.similarity_search.return_value = []

        RagService(index).search_equipment("q", max_level=4)

        assert index.similarity_search.call_args.kwargs["where"] == {
            "$and": [{"category": {"$in": EQUIPMENT_CATEGORIES}}, {"level": {"$lte": 4}}]
        }

    def test_parse_traits(self):
        assert parse_traits("fire, evocation,,") == ["fire", "evocation"]
        assert parse_traits(None) == []

    def test_missing_metadata_defaults(self):
        result = to_rag_result(SearchHit(id="x", text="t", metadata={}, score=0.5))

        assert result.name == "Unknown"
        assert result.category == "Unknown"
        assert result.level is None
        assert result.source is None
