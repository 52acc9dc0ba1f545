"""
Foundry Import Service

Synchronizes compendium JSON files from the remote repository into the
entry store. A run lists the remote tree once, skips files whose stored
hash matches, and downloads the rest in parallel.

Only a failure to list the tree aborts a run. Every per-file problem
(download error, malformed JSON, storage error) is logged and counted.
"""

import json
import time
from dataclasses import asdict, dataclass
from typing import Optional

from pf2e_oracle.configs.constants import MAX_PARALLEL_DOWNLOADS, PATH_PREFIX, PROGRESS_INTERVAL
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import ContentParseError, ImportFailedError
from pf2e_oracle.github.client import GitHubClient
from pf2e_oracle.github.models import RemoteFile
from pf2e_oracle.importer.changeset import resolve_changeset
from pf2e_oracle.importer.executor import BoundedExecutor, ProgressSnapshot, format_eta
from pf2e_oracle.jobs.executor import JobContext
from pf2e_oracle.storage.entries import EntryStore
from pf2e_oracle.storage.models import StoredEntry

logger = get_logger("import")

UNKNOWN_CATEGORY = "unknown"


@dataclass
class ImportResult:
    imported: int
    skipped: int
    errors: int
    total_files: int
    duration_seconds: float

    def to_dict(self) -> dict:
        return asdict(self)


def category_of(path: str, path_prefix: str = PATH_PREFIX) -> str:
    """packs/pf2e/feats/a.json -> feats"""
    prefix = path_prefix.rstrip("/") + "/"
    relative = path[len(prefix):] if path.startswith(prefix) else path
    return relative.split("/", 1)[0]


def validate_category(category: str) -> str:
    """
    Raises:
        ValueError: If category is blank or not a single path segment
    """
    cleaned = (category or "").strip()
    if not cleaned or "/" in cleaned or cleaned in (".", ".."):
        raise ValueError(f"Invalid category: {category!r}")
    return cleaned


def parse_entry_fields(raw_json: str, path: str) -> tuple[str, str, str]:
    """
    Read (source_id, category, name) from a compendium document.

    Missing fields fall back to "", "unknown" and the filename stem.

    Raises:
        ContentParseError: If raw_json is not a JSON object
    """
    try:
        document = json.loads(raw_json)
    except ValueError as e:
        raise ContentParseError(f"Invalid JSON in: {path}", path) from e
    if not isinstance(document, dict):
        raise ContentParseError(f"Expected a JSON object in: {path}", path)

    filename = path.rsplit("/", 1)[-1]
    stem = filename[: -len(".json")] if filename.endswith(".json") else filename

    source_id = str(document.get("_id") or "")
    category = str(document.get("type") or UNKNOWN_CATEGORY)
    name = str(document.get("name") or stem)
    return source_id, category, name


class FoundryImportService:
    """Imports remote compendium files into the entry store."""

    def __init__(
        self,
        github: GitHubClient,
        entries: EntryStore,
        max_parallel_downloads: int = MAX_PARALLEL_DOWNLOADS,
        path_prefix: str = PATH_PREFIX,
        progress_interval: int = PROGRESS_INTERVAL,
    ):
        self.github = github
        self.entries = entries
        self.path_prefix = path_prefix.rstrip("/")
        self.executor = BoundedExecutor(max_parallel_downloads, progress_interval, name="import")

    def available_categories(self) -> list[str]:
        """Categories (directories) present under the path prefix remotely."""
        return self.github.list_categories(self.path_prefix)

    def import_all(self, context: Optional[JobContext] = None) -> ImportResult:
        return self._import_from_path(f"{self.path_prefix}/", context)

    def import_category(self, category: str, context: Optional[JobContext] = None) -> ImportResult:
        category = validate_category(category)
        return self._import_from_path(f"{self.path_prefix}/{category}/", context)

    def import_file(self, remote: RemoteFile) -> StoredEntry:
        """
        Download one file and store it under its path.

        Raises:
            ImportFailedError: If the download or parse fails
            StorageError: If the write fails
        """
        try:
            raw_json = self.github.fetch_raw(remote.path)
        except Exception as e:
            raise ImportFailedError.download_failed(remote.path) from e

        source_id, category, name = parse_entry_fields(raw_json, remote.path)
        entry = self.entries.save(
            source_path=remote.path,
            content_hash=remote.content_hash,
            source_id=source_id,
            category=category,
            name=name,
            raw_content=raw_json,
        )
        logger.debug(f"Imported: {name} ({remote.path}) - type: {category}")
        return entry

    def _import_from_path(self, path_prefix: str, context: Optional[JobContext]) -> ImportResult:
        started = time.monotonic()
        logger.info(f"Starting import from path: {path_prefix}")

        listing = self.github.fetch_tree()
        if listing.truncated:
            logger.warning("Tree was truncated - some files may be missing")

        remote_files = self.github.filter_relevant(listing, path_prefix)
        logger.info(f"Found: {len(remote_files)} JSON files under {path_prefix}")

        changeset = resolve_changeset(remote_files, self.entries.load_hash_index(path_prefix))
        skipped = changeset.skipped_count
        logger.info(f"To import: {len(changeset.to_import)} (skipped: {skipped} unchanged)")

        if context is not None:
            context.start(len(changeset.to_import))

        def on_progress(snapshot: ProgressSnapshot) -> None:
            if snapshot.processed == snapshot.total:
                logger.info(f"Progress: {snapshot.processed}/{snapshot.total} ({snapshot.percent}%) - done")
            else:
                logger.info(
                    f"Progress: {snapshot.processed}/{snapshot.total} ({snapshot.percent}%)"
                    f" - ETA: {format_eta(snapshot.eta_seconds)}"
                )
            if context is not None:
                context.report(snapshot.processed, skipped=skipped, errors=snapshot.failed)

        stats = self.executor.run(
            changeset.to_import,
            self.import_file,
            on_progress=on_progress,
            stop_event=context.stop_event if context is not None else None,
            describe=lambda remote: remote.path,
        )

        result = ImportResult(
            imported=stats.succeeded,
            skipped=skipped,
            errors=stats.failed,
            total_files=len(remote_files),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        logger.info(
            f"Import completed: {result.imported} imported, {result.skipped} skipped, "
            f"{result.errors} errors in {result.duration_seconds:.1f}s"
        )
        return result
