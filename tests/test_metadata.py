"""
Tests for index metadata projection.
"""

from factories import make_document

from pf2e_oracle.ingestion.metadata import extract_level, extract_metadata, get_path


class TestExtractMetadata:
    """Tests for extract_metadata()."""

    def test_full_document(self):
        metadata = extract_metadata(make_document(), "spell")

        assert metadata == {
            "category": "spell",
            "source_id": "abc123",
            "name": "Fireball",
            "level": 3,
            "traits": "fire,evocation",
            "rarity": "common",
            "traditions": "arcane,primal",
            "source": "Pathfinder Player Core",
        }

    def test_level_zero_is_kept(self):
        """Cantrips have level 0, which is a real value."""
        metadata = extract_metadata(make_document(name="Electric Arc", level=0), "spell")
        assert metadata["level"] == 0

    def test_missing_level_is_omitted(self):
        metadata = extract_metadata(make_document(level=None), "spell")
        assert "level" not in metadata

    def test_empty_optional_fields_are_omitted(self):
        document = make_document(traits=(), rarity="  ", traditions=(), source="")
        metadata = extract_metadata(document, "feat")

        for key in ("traits", "rarity", "traditions", "source"):
            assert key not in metadata

    def test_minimal_document(self):
        metadata = extract_metadata({"name": "Bare"}, "unknown")
        assert metadata == {"category": "unknown", "source_id": "", "name": "Bare"}

    def test_blank_trait_members_skipped(self):
        metadata = extract_metadata(make_document(traits=("fire", "", " ", "attack")), "spell")
        assert metadata["traits"] == "fire,attack"


class TestExtractLevel:
    """Tests for level parsing edge cases."""

    def _doc(self, value):
        return {"system": {"level": {"value": value}}}

    def test_negative_level_rejected(self):
        assert extract_level(self._doc(-1)) is None

    def test_whole_float_accepted(self):
        assert extract_level(self._doc(2.0)) == 2

    def test_fractional_float_rejected(self):
        assert extract_level(self._doc(2.5)) is None

    def test_digit_string_accepted(self):
        assert extract_level(self._doc("4")) == 4

    def test_bool_rejected(self):
        assert extract_level(self._doc(True)) is None

    def test_non_dict_system(self):
        assert extract_level({"system": "broken"}) is None


class TestGetPath:
    def test_nested_lookup(self):
        assert get_path({"a": {"b": {"c": 1}}}, "a", "b", "c") == 1

    def test_missing_key_returns_none(self):
        assert get_path({"a": {}}, "a", "b", "c") is None
