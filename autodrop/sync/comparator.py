"""File comparison logic for sync operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import RemoteEntry
from .modes import SyncMethod
from .state import FileSnapshot


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    DOWNLOAD = "download"
    """Download remote file to local"""

    DELETE_LOCAL = "delete_local"
    """Delete local file"""

    DELETE_REMOTE = "delete_remote"
    """Delete remote file"""

    SKIP = "skip"
    """Skip file (no action needed)"""

    CONFLICT = "conflict"
    """File changed on both sides"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Path relative to the sync pair root"""

    local_hash: Optional[str] = None
    remote_hash: Optional[str] = None


class FileComparator:
    """Decides the action for a single file under a sync method.

    Only content hashes are compared; sizes and timestamps are ignored.
    """

    def __init__(self, method: SyncMethod):
        """Initialize file comparator.

        Args:
            method: Sync method of the pair being synced
        """
        self.method = method

    def compare_push(
        self,
        path: str,
        local_hash: Optional[str],
        remote_entry: Optional[RemoteEntry],
    ) -> SyncDecision:
        """Decide whether a local file must be uploaded.

        Args:
            path: Relative path of the file
            local_hash: Local content hash (None if unknown)
            remote_entry: Remote counterpart (None if absent)

        Returns:
            UPLOAD or SKIP decision
        """
        if remote_entry is None:
            return SyncDecision(SyncAction.UPLOAD, "New local file", path, local_hash)

        remote_hash = remote_entry.content_hash
        if remote_hash is None:
            reason = "Remote hash unavailable"
        elif local_hash is None:
            reason = "Local hash unavailable"
        elif local_hash != remote_hash:
            reason = "Local content differs"
        else:
            return SyncDecision(
                SyncAction.SKIP, "Files are identical", path, local_hash, remote_hash
            )
        return SyncDecision(SyncAction.UPLOAD, reason, path, local_hash, remote_hash)

    def compare_pull(
        self,
        path: str,
        local_exists: bool,
        local_hash: Optional[str],
        remote_entry: RemoteEntry,
    ) -> SyncDecision:
        """Decide whether a remote file must be downloaded.

        Args:
            path: Relative path of the file
            local_exists: Whether a local file exists at the path
            local_hash: Local content hash (None if unknown or absent)
            remote_entry: Remote file

        Returns:
            DOWNLOAD or SKIP decision
        """
        remote_hash = remote_entry.content_hash
        if not local_exists:
            return SyncDecision(
                SyncAction.DOWNLOAD, "New remote file", path, None, remote_hash
            )
        if local_hash is None:
            reason = "Local hash unavailable"
        elif local_hash != remote_hash:
            reason = "Remote content differs"
        else:
            return SyncDecision(
                SyncAction.SKIP, "Files are identical", path, local_hash, remote_hash
            )
        return SyncDecision(SyncAction.DOWNLOAD, reason, path, local_hash, remote_hash)

    def compare_two_way(
        self,
        path: str,
        local_exists: bool,
        local_hash: Optional[str],
        remote_entry: Optional[RemoteEntry],
        snapshot: Optional[FileSnapshot],
    ) -> SyncDecision:
        """Three-way comparison against the last synchronized snapshot.

        A path missing from the snapshot has never been synced, so it is
        treated as new on every side where it exists.

        Args:
            path: Relative path of the file
            local_exists: Whether a local file exists at the path
            local_hash: Local content hash (None if unknown or absent)
            remote_entry: Remote file (None if absent)
            snapshot: Snapshot entry from the previous run (None if never synced)

        Returns:
            SyncDecision for this file
        """
        remote_hash = remote_entry.content_hash if remote_entry else None

        if local_exists and remote_entry is not None:
            return self._compare_existing_files(
                path, local_hash, remote_hash, snapshot
            )

        if local_exists:
            if snapshot is not None:
                return SyncDecision(
                    SyncAction.DELETE_LOCAL, "File deleted remotely", path, local_hash
                )
            return SyncDecision(SyncAction.UPLOAD, "New local file", path, local_hash)

        if remote_entry is not None:
            if snapshot is not None:
                return SyncDecision(
                    SyncAction.DELETE_REMOTE,
                    "File deleted locally",
                    path,
                    None,
                    remote_hash,
                )
            return SyncDecision(
                SyncAction.DOWNLOAD, "New remote file", path, None, remote_hash
            )

        # Should never happen
        return SyncDecision(SyncAction.SKIP, "No file found", path)

    def _compare_existing_files(
        self,
        path: str,
        local_hash: Optional[str],
        remote_hash: Optional[str],
        snapshot: Optional[FileSnapshot],
    ) -> SyncDecision:
        """Compare files that exist in both locations."""
        if local_hash is not None and local_hash == remote_hash:
            return SyncDecision(
                SyncAction.SKIP, "Files are identical", path, local_hash, remote_hash
            )

        snapshot_hash = snapshot.hash if snapshot else None
        local_changed = snapshot is None or local_hash != snapshot_hash
        remote_changed = snapshot is None or remote_hash != snapshot_hash

        if local_changed and not remote_changed:
            return SyncDecision(
                SyncAction.UPLOAD, "Local file changed", path, local_hash, remote_hash
            )
        if remote_changed and not local_changed:
            return SyncDecision(
                SyncAction.DOWNLOAD,
                "Remote file changed",
                path,
                local_hash,
                remote_hash,
            )

        reason = (
            "Changed on both sides"
            if snapshot is not None
            else "New on both sides with different content"
        )
        return SyncDecision(SyncAction.CONFLICT, reason, path, local_hash, remote_hash)
