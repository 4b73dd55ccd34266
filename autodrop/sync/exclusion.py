"""Exclusion matching for sync pairs."""

import logging
from collections.abc import Iterable
from urllib.parse import unquote

logger = logging.getLogger(__name__)


def _matches(candidate: str, entry: str) -> bool:
    if not entry:
        return False
    candidate = candidate.lower()
    entry = entry.lower()
    return candidate == entry or candidate.startswith(f"{entry}/")


def is_excluded(relative_path: str, excluded_paths: Iterable[str]) -> bool:
    """Check whether a pair-relative path is excluded from sync.

    A path is excluded when it equals an excluded entry or lies below it,
    compared case-insensitively. Each entry is checked both as written and
    percent-decoded, since names coming from different sources are not
    encoded consistently.

    Args:
        relative_path: POSIX path relative to the sync pair root
        excluded_paths: Excluded entries, relative to the same root

    Returns:
        True if the path must not be synced

    Examples:
        >>> is_excluded("Photos/2024/a.jpg", ["photos"])
        True
        >>> is_excluded("My Docs/x.txt", ["My%20Docs/"])
        True
        >>> is_excluded("Photos2/a.jpg", ["Photos"])
        False
    """
    candidate = relative_path.strip("/")
    for raw_entry in excluded_paths:
        entry = raw_entry.strip("/")
        if _matches(candidate, entry) or _matches(candidate, unquote(entry)):
            logger.debug(f"Excluded '{relative_path}' (matched '{raw_entry}')")
            return True
    return False
