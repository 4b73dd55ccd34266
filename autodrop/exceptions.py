"""Exceptions raised by the Dropbox client and the sync engine."""


class DropboxAPIError(Exception):
    """Base exception for Dropbox API errors."""


class DropboxConfigError(DropboxAPIError):
    """Raised when configuration is missing or invalid."""


class DropboxAuthenticationError(DropboxAPIError):
    """Raised when the access token is missing, expired or rejected."""


class DropboxPermissionError(DropboxAPIError):
    """Raised when access to a resource is forbidden."""


class DropboxNotFoundError(DropboxAPIError):
    """Raised when a remote path does not exist."""


class DropboxRateLimitError(DropboxAPIError):
    """Raised when the API rate limit is exceeded."""


class DropboxNetworkError(DropboxAPIError):
    """Raised on transport level failures (DNS, connection reset, timeout)."""


class DropboxInvalidResponseError(DropboxAPIError):
    """Raised when the server returns an unexpected payload."""


class DropboxUploadError(DropboxAPIError):
    """Raised when uploading a file fails."""


class DropboxDownloadError(DropboxAPIError):
    """Raised when downloading a file fails."""
