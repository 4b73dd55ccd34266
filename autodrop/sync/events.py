"""Log events and run outcomes reported by the sync engine."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class LogKind(str, Enum):
    """Kind of a sync log event."""

    START = "start"
    INFO = "info"
    ERROR = "error"
    CONFLICT = "conflict"
    END = "end"


@dataclass
class LogEvent:
    """A single entry of the sync log."""

    message: str
    kind: LogKind = LogKind.INFO
    details: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "kind": self.kind.value,
            "details": self.details,
            "timestamp": self.timestamp,
        }


LogSink = Callable[[LogEvent], None]
"""Callback receiving every event emitted during a run"""


@dataclass
class SyncOutcome:
    """Counters and log events of one sync run."""

    uploaded: int = 0
    downloaded: int = 0
    deleted: int = 0
    errors: int = 0
    conflicts: int = 0
    events: list[LogEvent] = field(default_factory=list)

    def __add__(self, other: "SyncOutcome") -> "SyncOutcome":
        return SyncOutcome(
            uploaded=self.uploaded + other.uploaded,
            downloaded=self.downloaded + other.downloaded,
            deleted=self.deleted + other.deleted,
            errors=self.errors + other.errors,
            conflicts=self.conflicts + other.conflicts,
            events=self.events + other.events,
        )

    def total_changes(self) -> int:
        """Number of files transferred or deleted."""
        return self.uploaded + self.downloaded + self.deleted

    def summary(self) -> str:
        """One line summary of the transferred files.

        Examples:
            >>> SyncOutcome(uploaded=2, deleted=1).summary()
            '3 files sync done (Up: 2, Del: 1)'
        """
        total = self.total_changes()
        if total == 0:
            return "No changes detected."
        parts = []
        if self.uploaded:
            parts.append(f"Up: {self.uploaded}")
        if self.downloaded:
            parts.append(f"Down: {self.downloaded}")
        if self.deleted:
            parts.append(f"Del: {self.deleted}")
        return f"{total} files sync done ({', '.join(parts)})"

    def to_dict(self) -> dict[str, Any]:
        """Counters as a plain dictionary (events excluded)."""
        return {
            "uploaded": self.uploaded,
            "downloaded": self.downloaded,
            "deleted": self.deleted,
            "errors": self.errors,
            "conflicts": self.conflicts,
        }
