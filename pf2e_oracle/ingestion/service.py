"""
Ingestion Service

Embeds stored entries into the vector index. Entries are grouped into
batches and batches run in parallel; each batch is one index call.

An entry is marked indexed only after the index call for its batch
returned. A failed index call counts the whole batch as errors and
leaves every entry in it pending, so the next incremental run retries
them. Records an entry no longer produces (dropped journal pages, for
instance) are removed only after its new records were written.
"""

import time
from dataclasses import asdict, dataclass
from typing import Optional

from pf2e_oracle.configs.constants import EMBEDDING_BATCH_SIZE, MAX_PARALLEL_EMBEDDINGS, PROGRESS_INTERVAL
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.importer.executor import AtomicCounter, BoundedExecutor, ProgressSnapshot, format_eta
from pf2e_oracle.ingestion.documents import DocumentBuilder
from pf2e_oracle.jobs.executor import JobContext
from pf2e_oracle.storage.entries import EntryStore
from pf2e_oracle.storage.models import StoredEntry
from pf2e_oracle.storage.vector_index import IndexRecord, VectorIndex

logger = get_logger("ingestion")


@dataclass
class IngestionResult:
    processed: int
    errors: int
    total: int
    duration_seconds: float

    def to_dict(self) -> dict:
        return asdict(self)


def chunked(items: list, size: int) -> list[list]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class IngestionService:
    """Builds index records for stored entries and adds them to the index."""

    def __init__(
        self,
        entries: EntryStore,
        vector_index: VectorIndex,
        builder: Optional[DocumentBuilder] = None,
        max_parallel_embeddings: int = MAX_PARALLEL_EMBEDDINGS,
        batch_size: int = EMBEDDING_BATCH_SIZE,
        progress_interval: int = PROGRESS_INTERVAL,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.entries = entries
        self.vector_index = vector_index
        self.builder = builder or DocumentBuilder()
        self.batch_size = batch_size
        self.executor = BoundedExecutor(max_parallel_embeddings, progress_interval, name="ingest")

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def ingest_all(self, context: Optional[JobContext] = None) -> IngestionResult:
        """Re-index every stored entry."""
        logger.info("Starting full ingestion of all entries")
        return self._ingest(self.entries.find_all(), "all", context)

    def ingest_category(self, category: str, context: Optional[JobContext] = None) -> IngestionResult:
        """Re-index every entry of one category."""
        logger.info(f"Starting ingestion for category: {category}")
        return self._ingest(self.entries.find_by_category(category), f"category={category}", context)

    def ingest_pending(self, context: Optional[JobContext] = None) -> IngestionResult:
        """Index only new or changed entries."""
        logger.info("Starting incremental ingestion")
        return self._ingest(self.entries.find_pending_indexing(), "pending", context)

    def ingest_pending_category(self, category: str, context: Optional[JobContext] = None) -> IngestionResult:
        logger.info(f"Starting incremental ingestion for category: {category}")
        return self._ingest(
            self.entries.find_pending_indexing(category),
            f"pending category={category}",
            context,
        )

    def ingest(
        self,
        category: Optional[str] = None,
        force: bool = False,
        context: Optional[JobContext] = None,
    ) -> IngestionResult:
        """Dispatch to the full or incremental variant for one category or all."""
        if category is None:
            return self.ingest_all(context) if force else self.ingest_pending(context)
        if force:
            return self.ingest_category(category, context)
        return self.ingest_pending_category(category, context)

    def ingest_entry(self, entry: StoredEntry) -> list[IndexRecord]:
        """Index a single entry synchronously."""
        records = self.builder.build_records(entry)
        self._replace_records({entry.id: records})
        self.entries.mark_indexed([entry.id], {entry.id: entry.content_hash})
        logger.debug(f"Ingested single entry: {entry.name} ({entry.category})")
        return records

    # -------------------------------------------------------------------------
    # Batch processing
    # -------------------------------------------------------------------------

    def _replace_records(self, records_by_entry: dict[str, list[IndexRecord]]) -> None:
        """
        Write each entry's new records, then drop the records it no longer owns.

        Old records are only removed once the new ones are stored, so a
        failed write leaves the previous index state untouched.

        Raises:
            VectorIndexError: If the lookup, write or removal fails
        """
        previous = self.vector_index.record_ids_by_entry(list(records_by_entry))
        self.vector_index.add([record for records in records_by_entry.values() for record in records])

        stale = []
        for entry_id, records in records_by_entry.items():
            current = {record.id for record in records}
            stale.extend(sorted(previous.get(entry_id, set()) - current))
        self.vector_index.delete_records(stale)

    def _index_batch(
        self,
        batch: list[StoredEntry],
        processed: AtomicCounter,
        errors: AtomicCounter,
    ) -> None:
        records_by_entry: dict[str, list[IndexRecord]] = {}
        built: dict[str, str] = {}

        for entry in batch:
            try:
                records_by_entry[entry.id] = self.builder.build_records(entry)
            except Exception as e:
                logger.warning(f"Failed to build document for {entry.name} ({entry.source_path}): {e}")
                errors.increment()
                continue
            built[entry.id] = entry.content_hash

        if not built:
            return

        try:
            self._replace_records(records_by_entry)
        except Exception as e:
            logger.error(f"Batch ingestion failed ({len(built)} entries): {e}")
            errors.increment(len(built))
            return

        ids = list(built)
        try:
            self.entries.mark_indexed(ids, built)
        except Exception as e:
            logger.error(f"Failed to mark {len(ids)} entries as indexed: {e}")
            errors.increment(len(ids))
            return
        processed.increment(len(ids))

    def _ingest(
        self,
        entries: list[StoredEntry],
        label: str,
        context: Optional[JobContext],
    ) -> IngestionResult:
        started = time.monotonic()
        total = len(entries)
        logger.info(f"Found {total} entries to ingest ({label})")

        if context is not None:
            context.start(total)

        processed = AtomicCounter()
        errors = AtomicCounter()

        def on_progress(snapshot: ProgressSnapshot) -> None:
            logger.info(
                f"Ingestion progress: {snapshot.processed}/{snapshot.total} ({snapshot.percent}%)"
                f" - ETA: {format_eta(snapshot.eta_seconds)}"
            )
            if context is not None:
                context.report(snapshot.processed, errors=errors.value)

        self.executor.run(
            chunked(entries, self.batch_size),
            lambda batch: self._index_batch(batch, processed, errors),
            on_progress=on_progress,
            weight=len,
            stop_event=context.stop_event if context is not None else None,
            describe=lambda batch: f"batch of {len(batch)} entries",
        )

        result = IngestionResult(
            processed=processed.value,
            errors=errors.value,
            total=total,
            duration_seconds=round(time.monotonic() - started, 3),
        )
        logger.info(
            f"Ingestion completed: {result.processed} processed, {result.errors} errors "
            f"in {format_eta(result.duration_seconds)}"
        )
        return result
