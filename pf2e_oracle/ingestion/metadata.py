"""
Index Metadata Projection

Projects a compendium document onto the flat metadata map stored with
its index record. The map drives hard filters in retrieval
("spells of level 3", "uncommon equipment up to level 5"), so optional
fields are omitted entirely when absent, never stored as null or "".
"""

from typing import Any, Optional


def get_path(document: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a key is missing."""
    node = document
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _joined(values: Any) -> Optional[str]:
    """Comma-join the non-blank members of a list."""
    if not isinstance(values, list):
        return None
    members = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return ",".join(members) or None


def extract_level(document: dict) -> Optional[int]:
    """
    Read system.level.value.

    Zero is a real level (cantrips, level-0 items) and is returned as 0.
    Missing, negative or non-numeric values yield None.
    """
    raw = get_path(document, "system", "level", "value")
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, float):
        if not raw.is_integer():
            return None
        raw = int(raw)
    elif isinstance(raw, str):
        if not raw.strip().lstrip("-").isdigit():
            return None
        raw = int(raw.strip())
    elif not isinstance(raw, int):
        return None
    return raw if raw >= 0 else None


def extract_metadata(document: dict, category: str) -> dict[str, Any]:
    """
    Build the filterable metadata map for a document.

    Args:
        document: Parsed compendium JSON
        category: Entry category (the document's type)

    Returns:
        Map with category, source_id and name, plus level, traits,
        rarity, traditions and source when present
    """
    metadata: dict[str, Any] = {
        "category": category,
        "source_id": _text(document.get("_id")) or "",
        "name": _text(document.get("name")) or "",
    }

    level = extract_level(document)
    if level is not None:
        metadata["level"] = level

    traits = _joined(get_path(document, "system", "traits", "value"))
    if traits:
        metadata["traits"] = traits

    rarity = _text(get_path(document, "system", "traits", "rarity"))
    if rarity:
        metadata["rarity"] = rarity

    traditions = _joined(get_path(document, "system", "traits", "traditions"))
    if traditions:
        metadata["traditions"] = traditions

    source = _text(get_path(document, "system", "publication", "title"))
    if source:
        metadata["source"] = source

    return metadata
