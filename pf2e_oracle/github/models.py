"""
GitHub Tree Models

Typed views over the git trees API response.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class RemoteFile:
    """One entry of a recursive tree listing."""

    path: str
    content_hash: str
    is_file: bool
    size: Optional[int] = None

    @property
    def is_directory(self) -> bool:
        return not self.is_file

    @property
    def filename(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteFile":
        """Build from a git trees API entry ("blob" = file, "tree" = directory)."""
        return cls(
            path=data["path"],
            content_hash=data.get("sha", ""),
            is_file=data.get("type") == "blob",
            size=data.get("size"),
        )


@dataclass
class TreeListing:
    """Result of a recursive tree listing."""

    entries: list[RemoteFile] = field(default_factory=list)
    truncated: bool = False
    sha: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TreeListing":
        return cls(
            entries=[RemoteFile.from_api(item) for item in data.get("tree", [])],
            truncated=bool(data.get("truncated", False)),
            sha=data.get("sha", ""),
        )
