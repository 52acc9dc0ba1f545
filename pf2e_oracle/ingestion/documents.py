"""
Index Record Builder

Turns stored entries into the text + metadata records that get embedded.
The text leads with a short structured header (name, type, level,
traits) followed by the cleaned description, which keeps retrieval
anchored on the entry's identity.
"""

import json
from typing import Any, Optional

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import ContentParseError
from pf2e_oracle.ingestion.metadata import extract_metadata, get_path
from pf2e_oracle.parser.content import clean_content
from pf2e_oracle.storage.models import StoredEntry
from pf2e_oracle.storage.vector_index import IndexRecord

logger = get_logger("ingestion.documents")

JOURNAL_CATEGORY = "journal"


def parse_document(entry: StoredEntry) -> dict[str, Any]:
    """
    Parse an entry's raw JSON.

    Raises:
        ContentParseError: If the content is not a JSON object
    """
    try:
        document = json.loads(entry.raw_content)
    except (TypeError, ValueError) as e:
        raise ContentParseError(f"Invalid JSON content in: {entry.source_path}", entry.source_path) from e
    if not isinstance(document, dict):
        raise ContentParseError(f"Expected a JSON object in: {entry.source_path}", entry.source_path)
    return document


def is_journal(document: dict[str, Any]) -> bool:
    """Journals carry a non-empty list of pages."""
    pages = document.get("pages")
    return isinstance(pages, list) and len(pages) > 0


def page_record_id(entry_id: str, index: int) -> str:
    return f"{entry_id}-page-{index}"


class DocumentBuilder:
    """Builds IndexRecords for stored entries."""

    def build_records(self, entry: StoredEntry) -> list[IndexRecord]:
        """
        Build every record for an entry: one per non-blank journal page,
        otherwise exactly one.

        Raises:
            ContentParseError: If the entry's raw content cannot be parsed
        """
        document = parse_document(entry)
        if is_journal(document):
            return self.build_journal_records(entry, document)
        metadata = extract_metadata(document, entry.category)
        return [self.build_record(entry, metadata, document)]

    def build_record(
        self,
        entry: StoredEntry,
        metadata: dict[str, Any],
        document: Optional[dict[str, Any]] = None,
    ) -> IndexRecord:
        if document is None:
            document = parse_document(entry)

        lines = [f"Name: {entry.name}"]
        type_line = f"Type: {entry.category[:1].upper()}{entry.category[1:]}"
        if "level" in metadata:
            type_line += f" (Level {metadata['level']})"
        lines.append(type_line)

        if "traits" in metadata:
            lines.append(f"Traits: {metadata['traits']}")
        if "traditions" in metadata:
            lines.append(f"Traditions: {metadata['traditions']}")
        rarity = metadata.get("rarity")
        if rarity and rarity != "common":
            lines.append(f"Rarity: {rarity}")

        lines.append("")

        description = get_path(document, "system", "description", "value")
        if isinstance(description, str) and description.strip():
            lines.append(clean_content(description))

        record_metadata = dict(metadata)
        record_metadata["entry_id"] = entry.id
        return IndexRecord(id=entry.id, text="\n".join(lines).strip(), metadata=record_metadata)

    def build_journal_records(self, entry: StoredEntry, document: dict[str, Any]) -> list[IndexRecord]:
        records = []
        for index, page in enumerate(document.get("pages") or []):
            if not isinstance(page, dict):
                continue
            page_name = str(page.get("name") or "")
            page_content = get_path(page, "text", "content")
            if not isinstance(page_content, str) or not page_content.strip():
                continue

            text = "\n".join(
                [
                    f"Name: {entry.name} - {page_name}",
                    "Type: Game Rules (Journal)",
                    "",
                    clean_content(page_content),
                ]
            ).strip()
            records.append(
                IndexRecord(
                    id=page_record_id(entry.id, index),
                    text=text,
                    metadata={
                        "category": JOURNAL_CATEGORY,
                        "source_id": entry.source_id,
                        "name": f"{entry.name} - {page_name}",
                        "journal_name": entry.name,
                        "page_name": page_name,
                        "entry_id": entry.id,
                    },
                )
            )

        if not records:
            logger.debug(f"Journal without content pages: {entry.source_path}")
        return records
