"""Conflict resolution for two-way sync.

A conflict keeps both versions of a file: the local copy is renamed with a
``(conflict)`` marker and the remote content is downloaded under the
original name.
"""

import logging
from pathlib import Path

from .operations import SyncOperations

logger = logging.getLogger(__name__)

CONFLICT_MARKER = "conflict"


def conflict_name(name: str, counter: int = 1) -> str:
    """Build the name a conflicting local file is renamed to.

    The marker goes before the last extension, or at the end when the name
    has none.

    Args:
        name: Original file name
        counter: Disambiguation counter, only shown when greater than 1

    Returns:
        New file name

    Examples:
        >>> conflict_name("report.txt")
        'report (conflict).txt'
        >>> conflict_name("Makefile")
        'Makefile (conflict)'
        >>> conflict_name("archive.tar.gz", 2)
        'archive.tar (conflict 2).gz'
    """
    marker = CONFLICT_MARKER if counter <= 1 else f"{CONFLICT_MARKER} {counter}"
    dot = name.rfind(".")
    if dot > 0:
        return f"{name[:dot]} ({marker}){name[dot:]}"
    return f"{name} ({marker})"


class ConflictResolver:
    """Materializes both versions of a file changed on both sides."""

    def __init__(self, operations: SyncOperations):
        self.operations = operations

    def _free_conflict_path(self, local_path: Path) -> Path:
        counter = 1
        candidate = local_path.with_name(conflict_name(local_path.name, counter))
        while candidate.exists():
            counter += 1
            candidate = local_path.with_name(conflict_name(local_path.name, counter))
        return candidate

    def set_aside(self, local_path: Path) -> Path:
        """Rename the local file out of the way, keeping its bytes.

        Args:
            local_path: Conflicting local file

        Returns:
            New path of the local version
        """
        target = self._free_conflict_path(local_path)
        local_path.rename(target)
        logger.debug(f"Renamed conflicting {local_path} -> {target}")
        return target

    def fetch_remote(self, remote_path: str, local_path: Path) -> Path:
        """Download the remote version into the original local name."""
        return self.operations.download_file(remote_path, local_path)
