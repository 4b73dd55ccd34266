"""Snapshot persistence for two-way sync.

The snapshot remembers, per sync pair, which files were in sync after the
last run and with which content hash. Two-way sync uses it as the common
ancestor to tell a deletion on one side from a creation on the other.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import config

logger = logging.getLogger(__name__)


@dataclass
class FileSnapshot:
    """Last synchronized state of a single file."""

    path: str
    """Path relative to the sync pair root (forward slashes)"""

    hash: Optional[str]
    """Content hash observed on both sides after the last sync"""

    def to_dict(self) -> dict:
        return {"path": self.path, "hash": self.hash}

    @classmethod
    def from_dict(cls, data: dict) -> "FileSnapshot":
        return cls(path=data["path"], hash=data.get("hash"))


class SnapshotStore:
    """Loads and saves snapshots, one JSON file per sync pair.

    Not thread-safe: callers must serialize access for a given pair.
    """

    def __init__(self, state_dir: Optional[Path] = None):
        """Initialize snapshot store.

        Args:
            state_dir: Directory to store snapshot files. Defaults to
                      ~/.config/autodrop/sync_state/
        """
        self.state_dir = state_dir if state_dir is not None else config.state_dir

    def _get_snapshot_file(self, pair_id: str) -> Path:
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in pair_id)
        return self.state_dir / f"snapshot_{safe_id}.json"

    def load(self, pair_id: str) -> dict[str, FileSnapshot]:
        """Load the snapshot of a sync pair.

        Missing or unreadable snapshots yield an empty mapping, so a damaged
        file never blocks a sync.

        Args:
            pair_id: Sync pair identifier

        Returns:
            Mapping of relative path to FileSnapshot
        """
        snapshot_file = self._get_snapshot_file(pair_id)

        if not snapshot_file.exists():
            logger.debug(f"No snapshot found at {snapshot_file}")
            return {}

        try:
            with open(snapshot_file, encoding="utf-8") as f:
                data = json.load(f)
            snapshots = {
                path: FileSnapshot.from_dict(item) for path, item in data.items()
            }
            logger.debug(f"Loaded snapshot with {len(snapshots)} files")
            return snapshots
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable snapshot {snapshot_file}: {e}")
            return {}

    def save(self, pair_id: str, snapshots: dict[str, FileSnapshot]) -> None:
        """Replace the persisted snapshot of a sync pair.

        The file is written to a temporary name first and then renamed over
        the previous snapshot.

        Args:
            pair_id: Sync pair identifier
            snapshots: Mapping of relative path to FileSnapshot
        """
        self.state_dir.mkdir(parents=True, exist_ok=True)
        snapshot_file = self._get_snapshot_file(pair_id)
        data = {path: snap.to_dict() for path, snap in sorted(snapshots.items())}

        fd, tmp_name = tempfile.mkstemp(
            dir=self.state_dir, prefix=".snapshot_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, snapshot_file)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved snapshot with {len(snapshots)} files to {snapshot_file}")

    def clear(self, pair_id: str) -> bool:
        """Delete the snapshot of a sync pair.

        Args:
            pair_id: Sync pair identifier

        Returns:
            True if a snapshot was removed, False if none existed
        """
        snapshot_file = self._get_snapshot_file(pair_id)
        if snapshot_file.exists():
            snapshot_file.unlink()
            logger.debug(f"Cleared snapshot at {snapshot_file}")
            return True
        return False
