"""Data models for Dropbox API responses."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class RemoteEntry:
    """A file or folder returned by a remote folder listing."""

    name: str
    """Entry name (last path component)"""

    path_display: str
    """Path with the casing chosen by the user"""

    path_lower: str
    """Lower-cased path, used by the API for case-insensitive lookups"""

    is_folder: bool
    """True for folders"""

    content_hash: Optional[str] = None
    """Chunked SHA-256 content hash (files only)"""

    size: int = 0
    """File size in bytes (0 for folders)"""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteEntry":
        """Create a RemoteEntry from a list_folder metadata dictionary.

        Args:
            data: Metadata dict with ``.tag``, ``name``, ``path_display`` etc.

        Returns:
            RemoteEntry instance
        """
        name = data["name"]
        return cls(
            name=name,
            path_display=data.get("path_display", name),
            path_lower=data.get("path_lower", name.lower()),
            is_folder=data.get(".tag") == "folder",
            content_hash=data.get("content_hash"),
            size=int(data.get("size", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to API metadata form."""
        data: dict[str, Any] = {
            ".tag": "folder" if self.is_folder else "file",
            "name": self.name,
            "path_display": self.path_display,
            "path_lower": self.path_lower,
        }
        if not self.is_folder:
            data["size"] = self.size
            if self.content_hash is not None:
                data["content_hash"] = self.content_hash
        return data
