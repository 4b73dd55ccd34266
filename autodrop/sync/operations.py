"""Sync operations wrapper for unified upload/download interface."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..models import RemoteEntry
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class SyncOperations:
    """File transfers and deletions on both sides of a sync pair.

    Every method raises on failure (``DropboxAPIError`` for remote calls,
    ``OSError`` for local ones); the engine decides how to report it.
    """

    def __init__(self, store: RemoteStore):
        """Initialize sync operations.

        Args:
            store: Remote storage backend
        """
        self.store = store

    def upload_file(self, local_path: Path, remote_path: str) -> Any:
        """Upload a local file, overwriting the remote content.

        Args:
            local_path: Local file to upload
            remote_path: Destination path

        Returns:
            Upload response from the store
        """
        logger.debug(f"Uploading {local_path} -> {remote_path}")
        with open(local_path, "rb") as f:
            return self.store.upload_file(remote_path, f)

    def download_file(self, remote_path: str, local_path: Path) -> Path:
        """Download a remote file to a local path.

        Content is written to a temporary file in the destination directory
        and moved into place once complete, so a failed download never
        leaves a truncated file behind.

        Args:
            remote_path: Remote file path
            local_path: Local destination

        Returns:
            Path where the file was saved
        """
        logger.debug(f"Downloading {remote_path} -> {local_path}")
        local_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=local_path.parent, prefix=f".{local_path.name}.", suffix=".part"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                self.store.download_file(remote_path, f)
            os.replace(tmp_name, local_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return local_path

    def delete_remote(self, remote_path: str) -> Any:
        """Delete a remote file or folder.

        Args:
            remote_path: Path to delete

        Returns:
            Delete response from the store
        """
        logger.debug(f"Deleting remote {remote_path}")
        return self.store.delete_file(remote_path)

    def delete_local(self, local_path: Path) -> None:
        """Delete a local file or directory tree.

        Args:
            local_path: Path to delete
        """
        logger.debug(f"Deleting local {local_path}")
        if local_path.is_dir() and not local_path.is_symlink():
            shutil.rmtree(local_path)
        else:
            local_path.unlink()

    def create_remote_folder(self, remote_path: str) -> Optional[RemoteEntry]:
        """Create a remote folder (an existing folder is not an error)."""
        logger.debug(f"Creating remote folder {remote_path}")
        return self.store.create_folder(remote_path)

    def create_local_folder(self, local_path: Path) -> None:
        """Create a local directory (an existing directory is not an error)."""
        logger.debug(f"Creating local folder {local_path}")
        local_path.mkdir(parents=True, exist_ok=True)
