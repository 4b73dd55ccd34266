"""Interface of the remote storage consumed by the sync engine."""

from typing import Any, BinaryIO, Optional, Protocol, Union

from ..models import RemoteEntry


class RemoteStore(Protocol):
    """Operations the engine needs from a remote folder tree.

    Paths are absolute remote paths ("/a/b.txt"); "" denotes the root
    folder. Failures are reported by raising ``DropboxAPIError`` subclasses;
    a missing folder raises ``DropboxNotFoundError``.
    ``DropboxClient`` is the HTTP implementation.
    """

    def list_folder(self, path: str = "") -> list[RemoteEntry]:
        """Return every direct child of a folder."""
        ...

    def upload_file(self, path: str, data: Union[bytes, BinaryIO]) -> Any:
        """Write content to a path, overwriting and creating parent folders."""
        ...

    def download_file(self, path: str, sink: BinaryIO) -> Any:
        """Write the content of a remote file into a binary stream."""
        ...

    def delete_file(self, path: str) -> Any:
        """Delete a file or folder."""
        ...

    def create_folder(self, path: str) -> Optional[RemoteEntry]:
        """Create a folder; returns None when it already exists."""
        ...
