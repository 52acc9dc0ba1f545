"""
Tests for index record building.
"""

import pytest
from factories import make_document, make_journal

from pf2e_oracle.exceptions import ContentParseError
from pf2e_oracle.ingestion.documents import DocumentBuilder, page_record_id


@pytest.fixture
def builder():
    return DocumentBuilder()


class TestBuildRecord:
    """Tests for regular (non-journal) entries."""

    def test_header_and_cleaned_description(self, builder, save_entry):
        entry = save_entry("packs/pf2e/spells/fireball.json", make_document())

        records = builder.build_records(entry)

        assert len(records) == 1
        record = records[0]
        assert record.id == entry.id
        assert record.text == (
            "Name: Fireball\n"
            "Type: Spell (Level 3)\n"
            "Traits: fire,evocation\n"
            "Traditions: arcane,primal\n"
            "\n"
            "A roaring blast of fire deals 6d6 fire damage with a basic Reflex DC 20 save."
        )

    def test_metadata_carries_entry_id(self, builder, save_entry):
        entry = save_entry("packs/pf2e/spells/fireball.json", make_document())

        metadata = builder.build_records(entry)[0].metadata

        assert metadata["entry_id"] == entry.id
        assert metadata["category"] == "spell"
        assert metadata["level"] == 3

    def test_uncommon_rarity_listed(self, builder, save_entry):
        entry = save_entry(
            "packs/pf2e/feats/rare.json",
            make_document(name="Rare Feat", doc_type="feat", level=1, rarity="uncommon", traditions=()),
        )

        text = builder.build_records(entry)[0].text

        assert "Rarity: uncommon" in text
        assert "Traditions" not in text
        assert "Type: Feat (Level 1)" in text

    def test_level_zero_in_type_line(self, builder, save_entry):
        entry = save_entry("packs/pf2e/spells/arc.json", make_document(name="Electric Arc", level=0))
        assert "Type: Spell (Level 0)" in builder.build_records(entry)[0].text

    def test_no_level_no_suffix(self, builder, save_entry):
        entry = save_entry(
            "packs/pf2e/conditions/blinded.json",
            make_document(name="Blinded", doc_type="condition", level=None, traits=(), traditions=()),
        )
        text = builder.build_records(entry)[0].text
        assert text.splitlines()[1] == "Type: Condition"

    def test_invalid_json_raises(self, builder, entry_store):
        entry = entry_store.save(
            source_path="packs/pf2e/broken.json",
            content_hash="h1",
            source_id="",
            category="unknown",
            name="broken",
            raw_content="{not json",
        )
        with pytest.raises(ContentParseError):
            builder.build_records(entry)


class TestJournalRecords:
    """Tests for journal entries, which produce one record per page."""

    def test_one_record_per_page(self, builder, save_entry):
        entry = save_entry("packs/pf2e/journals/conditions.json", make_journal())

        records = builder.build_records(entry)

        assert [r.id for r in records] == [page_record_id(entry.id, 0), page_record_id(entry.id, 1)]
        assert records[0].text == "Name: Conditions - Blinded\nType: Game Rules (Journal)\n\nYou can't see."
        assert records[1].metadata == {
            "category": "journal",
            "source_id": "journal01",
            "name": "Conditions - Dazzled",
            "journal_name": "Conditions",
            "page_name": "Dazzled",
            "entry_id": entry.id,
        }

    def test_blank_pages_skipped(self, builder, save_entry):
        journal = make_journal(
            pages=[
                {"name": "Empty", "text": {"content": "   "}},
                {"name": "Image", "src": "image.webp"},
                {"name": "Real", "text": {"content": "<p>Text</p>"}},
            ]
        )
        entry = save_entry("packs/pf2e/journals/mixed.json", journal)

        records = builder.build_records(entry)

        assert len(records) == 1
        assert records[0].id == page_record_id(entry.id, 2)
