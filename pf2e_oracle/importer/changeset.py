"""
Change Detection

Partitions remote files into those that need importing and those whose
stored copy is already current.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from pf2e_oracle.github.models import RemoteFile


@dataclass
class ChangeSet:
    """Remote files to import, plus how many were already up to date."""

    to_import: list[RemoteFile] = field(default_factory=list)
    skipped_count: int = 0

    @property
    def total(self) -> int:
        return len(self.to_import) + self.skipped_count


def resolve_changeset(
    remote_files: Iterable[RemoteFile],
    stored_hashes: Mapping[str, str],
) -> ChangeSet:
    """
    Classify each remote file against the stored content hashes.

    A file is imported when no entry exists for its path or the stored
    hash differs from the remote one; otherwise it is skipped.

    Args:
        remote_files: Relevant files from the remote tree
        stored_hashes: Preloaded source_path -> content_hash map

    Returns:
        ChangeSet
    """
    changeset = ChangeSet()
    for remote in remote_files:
        if stored_hashes.get(remote.path) == remote.content_hash:
            changeset.skipped_count += 1
        else:
            changeset.to_import.append(remote)
    return changeset
