"""API client for Dropbox."""

from __future__ import annotations

import json
import random
import time
from typing import Any, BinaryIO

import httpx

from .config import config
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
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY


class DropboxClient:
    """Client for the Dropbox HTTP API (v2).

    Implements the ``RemoteStore`` interface consumed by the sync engine.
    """

    def __init__(
        self,
        access_token: str | None = None,
        api_url: str | None = None,
        content_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
    ):
        """Initialize Dropbox API client.

        Args:
            access_token: Optional access token (uses config if not provided)
            api_url: Optional RPC endpoint base URL (uses config if not provided)
            content_url: Optional content endpoint base URL
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.access_token = access_token or config.access_token
        self.api_url = api_url or config.api_url
        self.content_url = content_url or config.content_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.access_token:
            raise DropboxConfigError(
                "Access token not configured. "
                "Please set DROPBOX_ACCESS_TOKEN or run 'autodrop init'."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> DropboxClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    @staticmethod
    def _error_summary(response: httpx.Response) -> str:
        """Extract the ``error_summary`` field of an API error body."""
        try:
            if response.content:
                data = response.json()
                if isinstance(data, dict):
                    return str(data.get("error_summary") or data.get("error") or "")
        except ValueError:
            pass
        return response.text

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Handle HTTP errors and determine if retry should occur.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code
        summary = self._error_summary(e.response)

        if status_code == 401:
            raise DropboxAuthenticationError(
                "Invalid or expired access token"
            ) from e
        elif status_code == 403:
            raise DropboxPermissionError(
                "Access forbidden - check your app permissions"
            ) from e
        elif status_code == 409 and "not_found" in summary:
            raise DropboxNotFoundError(f"Path not found: {summary}") from e
        elif status_code == 429:
            error = DropboxRateLimitError(
                "Rate limit exceeded - please try again later"
            )
            return (error, attempt < self.max_retries)
        else:
            error_msg = f"API request failed with status {status_code}"
            if summary:
                error_msg = f"{error_msg}: {summary}"
            error = DropboxAPIError(error_msg)
            # Retry on 5xx server errors
            should_retry = 500 <= status_code < 600 and attempt < self.max_retries
            return (error, should_retry)

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request with retry logic and return the raw response.

        Args:
            method: HTTP method
            url: Absolute URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            Successful httpx response

        Raises:
            DropboxAPIError: If the request fails after all retries
        """
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    # Special handling for rate limits: use Retry-After header
                    retry_after = e.response.headers.get("Retry-After")
                    if (
                        isinstance(error, DropboxRateLimitError)
                        and retry_after
                        and retry_after.isdigit()
                    ):
                        delay = float(retry_after)
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    time.sleep(delay)
                    continue
                raise error from e
            except httpx.RequestError as e:
                error = DropboxNetworkError(f"Network error: {e}")
                last_exception = error
                if attempt < self.max_retries:
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise DropboxAPIError("Request failed after all retry attempts")

    def _request(self, endpoint: str, data: dict[str, Any] | None = None) -> Any:
        """Call an RPC endpoint with a JSON body.

        Args:
            endpoint: Endpoint path relative to the API URL
            data: JSON body (``None`` sends the request without a body)

        Returns:
            Response JSON data
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        response = self._send("POST", url, json=data)

        if not response.content:
            return {}
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise DropboxInvalidResponseError(
                f"Unexpected response type: {content_type}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise DropboxInvalidResponseError(
                "Invalid JSON response from server"
            ) from e

    # =========================
    # Account Operations
    # =========================

    def get_current_account(self) -> Any:
        """Get information about the account owning the access token."""
        return self._request("users/get_current_account")

    # =========================
    # Folder Operations
    # =========================

    def list_folder(self, path: str = "") -> list[RemoteEntry]:
        """List the direct children of a remote folder.

        Follows the listing cursor until the server reports no more
        results, so the returned list is always complete.

        Args:
            path: Folder path ("" or "/" for the root)

        Returns:
            Entries sorted folders first, then by lower-cased name

        Raises:
            DropboxNotFoundError: If the folder does not exist
        """
        api_path = "" if path == "/" else path
        result = self._request(
            "files/list_folder", {"path": api_path, "recursive": False}
        )
        raw_entries = list(result.get("entries", []))

        while result.get("has_more"):
            result = self._request(
                "files/list_folder/continue", {"cursor": result["cursor"]}
            )
            raw_entries.extend(result.get("entries", []))

        entries = [
            RemoteEntry.from_dict(item)
            for item in raw_entries
            if item.get(".tag") in ("file", "folder")
        ]
        return sorted(entries, key=lambda e: (not e.is_folder, e.name.lower()))

    def create_folder(self, path: str) -> RemoteEntry | None:
        """Create a remote folder.

        Args:
            path: Folder path to create

        Returns:
            The created folder, or None if it already existed
        """
        try:
            result = self._request(
                "files/create_folder_v2", {"path": path, "autorename": False}
            )
        except DropboxAPIError as e:
            if "conflict" in str(e):
                return None
            raise
        metadata = dict(result.get("metadata", {}))
        metadata[".tag"] = "folder"
        return RemoteEntry.from_dict(metadata)

    def delete_file(self, path: str) -> Any:
        """Delete a remote file or folder (folders are deleted recursively).

        Args:
            path: Path to delete

        Returns:
            Delete response from API
        """
        return self._request("files/delete_v2", {"path": path})

    # =========================
    # Content Operations
    # =========================

    def upload_file(self, path: str, data: bytes | BinaryIO) -> RemoteEntry:
        """Upload content to a remote path, overwriting existing content.

        Missing parent folders are created by the server.

        Args:
            path: Destination path
            data: File content as bytes or a binary stream

        Returns:
            Metadata of the uploaded file

        Raises:
            DropboxUploadError: If the upload fails
        """
        content = data if isinstance(data, bytes) else data.read()
        arg = {
            "path": path,
            "mode": "overwrite",
            "autorename": False,
            "mute": False,
            "strict_conflict": False,
        }
        url = f"{self.content_url}/files/upload"
        try:
            response = self._send(
                "POST",
                url,
                content=content,
                headers={
                    "Dropbox-API-Arg": json.dumps(arg),
                    "Content-Type": "application/octet-stream",
                },
            )
        except (DropboxAuthenticationError, DropboxNetworkError):
            raise
        except DropboxAPIError as e:
            raise DropboxUploadError(f"Upload of {path} failed: {e}") from e

        try:
            metadata = dict(response.json())
        except ValueError as e:
            raise DropboxInvalidResponseError(
                "Invalid JSON response from upload"
            ) from e
        metadata.setdefault(".tag", "file")
        return RemoteEntry.from_dict(metadata)

    def download_file(
        self,
        path: str,
        sink: BinaryIO,
    ) -> int:
        """Download a remote file into a writable binary stream.

        Args:
            path: Remote file path
            sink: Writable binary stream

        Returns:
            Number of bytes written

        Raises:
            DropboxDownloadError: If download fails
        """
        url = f"{self.content_url}/files/download"
        client = self._get_client()
        headers = {"Dropbox-API-Arg": json.dumps({"path": path})}

        try:
            with client.stream("POST", url, headers=headers) as response:
                if response.status_code == 401:
                    raise DropboxAuthenticationError("Invalid or expired access token")
                if response.status_code == 409:
                    response.read()
                    summary = self._error_summary(response)
                    if "not_found" in summary:
                        raise DropboxNotFoundError(f"Path not found: {path}")
                response.raise_for_status()

                bytes_downloaded = 0
                for chunk in response.iter_bytes(chunk_size=8192):
                    if chunk:
                        sink.write(chunk)
                        bytes_downloaded += len(chunk)
                return bytes_downloaded

        except httpx.HTTPStatusError as e:
            raise DropboxDownloadError(f"Download failed: {e}") from e
        except httpx.RequestError as e:
            raise DropboxNetworkError(f"Network error during download: {e}") from e
        except OSError as e:
            raise DropboxDownloadError(f"Failed to write file: {e}") from e
