"""Sync methods supported by the engine."""

from enum import Enum


class SyncMethod(str, Enum):
    """How a sync pair reconciles its local and remote trees."""

    PUSH_ONLY = "pushOnly"
    """Upload new and changed local files, never delete"""

    PUSH_MIRROR = "pushMirror"
    """Upload local changes and delete remote files missing locally"""

    PULL_ONLY = "pullOnly"
    """Download new and changed remote files, never delete"""

    PULL_MIRROR = "pullMirror"
    """Download remote changes and delete local files missing remotely"""

    TWO_WAY = "twoWay"
    """Propagate changes and deletions in both directions"""

    @classmethod
    def from_string(cls, value: str) -> "SyncMethod":
        """Parse a method from its name or abbreviation.

        Args:
            value: Method name (e.g. "twoWay") or abbreviation (e.g. "tw")

        Returns:
            SyncMethod

        Raises:
            ValueError: If the value is not a known method

        Examples:
            >>> SyncMethod.from_string("pm")
            <SyncMethod.PUSH_MIRROR: 'pushMirror'>
        """
        normalized = value.strip()
        for method in cls:
            if normalized.lower() == method.value.lower():
                return method
        abbreviation = _ABBREVIATIONS.get(normalized.lower())
        if abbreviation is not None:
            return abbreviation
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Invalid sync method: {value}. Valid methods: {valid}")

    @property
    def is_push(self) -> bool:
        return self in (SyncMethod.PUSH_ONLY, SyncMethod.PUSH_MIRROR)

    @property
    def is_pull(self) -> bool:
        return self in (SyncMethod.PULL_ONLY, SyncMethod.PULL_MIRROR)

    @property
    def is_mirror(self) -> bool:
        """Whether destination-only entries are deleted."""
        return self in (SyncMethod.PUSH_MIRROR, SyncMethod.PULL_MIRROR)

    @property
    def uses_snapshot(self) -> bool:
        """Whether the method relies on the last synchronized snapshot."""
        return self == SyncMethod.TWO_WAY


_ABBREVIATIONS = {
    "po": SyncMethod.PUSH_ONLY,
    "push": SyncMethod.PUSH_ONLY,
    "pm": SyncMethod.PUSH_MIRROR,
    "plo": SyncMethod.PULL_ONLY,
    "pull": SyncMethod.PULL_ONLY,
    "plm": SyncMethod.PULL_MIRROR,
    "tw": SyncMethod.TWO_WAY,
}
