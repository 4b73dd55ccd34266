"""autodrop - keep local folders in sync with Dropbox."""

from .api import DropboxClient
from .exceptions import (
    DropboxAPIError,
    DropboxAuthenticationError,
    DropboxConfigError,
    DropboxDownloadError,
    DropboxInvalidResponseError,
    DropboxNetworkError,
    DropboxNotFoundError,
    DropboxPermissionError,
    DropboxRateLimitError,
    DropboxUploadError,
)
from .models import RemoteEntry
from .utils import calculate_content_hash, hash_file

__all__ = [
    "DropboxClient",
    "DropboxAPIError",
    "DropboxAuthenticationError",
    "DropboxConfigError",
    "DropboxDownloadError",
    "DropboxInvalidResponseError",
    "DropboxNetworkError",
    "DropboxNotFoundError",
    "DropboxPermissionError",
    "DropboxRateLimitError",
    "DropboxUploadError",
    "RemoteEntry",
    "calculate_content_hash",
    "hash_file",
]
