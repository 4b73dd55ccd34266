"""Utility functions for autodrop."""

import hashlib
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Block size of the Dropbox content hash (4 MiB)
CONTENT_HASH_BLOCK_SIZE: int = 4 * 1024 * 1024

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_content_hash(stream: BinaryIO) -> Optional[str]:
    """Calculate the Dropbox content hash of a byte stream.

    The stream is split into 4 MiB blocks, each block is hashed with
    SHA-256, and the concatenation of the block digests is hashed again.
    This matches the ``content_hash`` the API reports for remote files.

    Args:
        stream: Binary stream opened for reading

    Returns:
        Lowercase hex digest, or None if reading the stream failed

    Examples:
        >>> import io
        >>> calculate_content_hash(io.BytesIO(b""))
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    block_digests = bytearray()
    try:
        while True:
            block = stream.read(CONTENT_HASH_BLOCK_SIZE)
            if not block:
                break
            block_digests += hashlib.sha256(block).digest()
    except OSError as e:
        logger.debug(f"Failed to read stream for hashing: {e}")
        return None
    return hashlib.sha256(bytes(block_digests)).hexdigest()


def hash_file(path: Union[str, Path]) -> Optional[str]:
    """Calculate the content hash of a local file.

    Args:
        path: Path to the file

    Returns:
        Lowercase hex digest, or None if the file cannot be read
    """
    try:
        with open(path, "rb") as f:
            return calculate_content_hash(f)
    except OSError as e:
        logger.debug(f"Failed to open {path} for hashing: {e}")
        return None


# =============================================================================
# Path utilities
# =============================================================================


def normalize_remote_path(path: Optional[str]) -> str:
    """Normalize a remote folder path.

    The root folder is represented by an empty string, everything else by
    a path with a single leading slash and no trailing slash.

    Examples:
        >>> normalize_remote_path("/")
        ''
        >>> normalize_remote_path("Documents/")
        '/Documents'
    """
    if not path:
        return ""
    stripped = path.strip("/")
    if not stripped:
        return ""
    return f"/{stripped}"


def join_remote_path(base: str, name: str) -> str:
    """Join a remote folder path and a child name.

    Examples:
        >>> join_remote_path("", "notes.txt")
        '/notes.txt'
        >>> join_remote_path("/Docs", "notes.txt")
        '/Docs/notes.txt'
    """
    if base in ("", "/"):
        return f"/{name}"
    return f"{base.rstrip('/')}/{name}"


def join_relative_path(parent: str, name: str) -> str:
    """Join a pair-relative POSIX path and a child name."""
    return name if not parent else f"{parent}/{name}"


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
