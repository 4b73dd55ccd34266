"""Persistence of configured sync pairs and the sync history log."""

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..config import config
from .config import SyncConfigError, load_sync_pairs_from_json
from .events import LogEvent, LogKind
from .pair import SyncPair

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 100

GLOBAL_PAIR_ID = "GLOBAL"


@dataclass
class SyncHistoryLog:
    """A persisted history entry."""

    message: str
    kind: LogKind = LogKind.INFO
    details: Optional[str] = None
    pair_id: str = GLOBAL_PAIR_ID
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_event(
        cls, event: LogEvent, pair_id: str = GLOBAL_PAIR_ID
    ) -> "SyncHistoryLog":
        return cls(
            message=event.message,
            kind=event.kind,
            details=event.details,
            pair_id=pair_id,
            timestamp=event.timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "pairId": self.pair_id,
            "message": self.message,
            "kind": self.kind.value,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncHistoryLog":
        return cls(
            message=data["message"],
            kind=LogKind(data.get("kind", LogKind.INFO.value)),
            details=data.get("details"),
            pair_id=data.get("pairId", GLOBAL_PAIR_ID),
            timestamp=float(data.get("timestamp", 0.0)),
            id=data.get("id") or str(uuid.uuid4()),
        )


class SyncRepository:
    """Stores sync pairs and history as JSON files in the config directory."""

    def __init__(
        self,
        pairs_file: Optional[Path] = None,
        history_file: Optional[Path] = None,
    ):
        self.pairs_file = pairs_file if pairs_file is not None else config.pairs_file
        self.history_file = (
            history_file if history_file is not None else config.history_file
        )

    def _write_json(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(path)

    # =========================
    # Pairs
    # =========================

    def get_sync_pairs(self) -> list[SyncPair]:
        """Return all configured pairs (empty if none are stored).

        Raises:
            SyncConfigError: If the pairs file is malformed
        """
        if not self.pairs_file.exists():
            return []
        return load_sync_pairs_from_json(self.pairs_file)

    def get_sync_pair(self, pair_id: str) -> Optional[SyncPair]:
        for pair in self.get_sync_pairs():
            if pair.id == pair_id or (pair.alias and pair.alias == pair_id):
                return pair
        return None

    def save_pairs(self, pairs: list[SyncPair]) -> None:
        self._write_json(self.pairs_file, [pair.to_dict() for pair in pairs])

    def add_sync_pair(self, pair: SyncPair) -> None:
        pairs = self.get_sync_pairs()
        if any(existing.id == pair.id for existing in pairs):
            raise SyncConfigError(f"Sync pair {pair.id} already exists")
        pairs.append(pair)
        self.save_pairs(pairs)

    def remove_sync_pair(self, pair_id: str) -> bool:
        """Remove a pair by id or alias.

        Returns:
            True if a pair was removed
        """
        pairs = self.get_sync_pairs()
        remaining = [
            p for p in pairs if p.id != pair_id and not (p.alias and p.alias == pair_id)
        ]
        if len(remaining) == len(pairs):
            return False
        self.save_pairs(remaining)
        return True

    def update_sync_status(self, pair_id: str, status: str) -> None:
        self.update_sync_statuses({pair_id: status})

    def update_sync_statuses(self, statuses: dict[str, str]) -> None:
        """Set the last status of several pairs with a single write."""
        if not statuses:
            return
        pairs = self.get_sync_pairs()
        updated = False
        for pair in pairs:
            if pair.id in statuses:
                pair.last_status = statuses[pair.id]
                updated = True
        if updated:
            self.save_pairs(pairs)

    # =========================
    # History
    # =========================

    def get_history_logs(self) -> list[SyncHistoryLog]:
        """Return history entries, newest first."""
        if not self.history_file.exists():
            return []
        try:
            with open(self.history_file, encoding="utf-8") as f:
                data = json.load(f)
            return [SyncHistoryLog.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable history {self.history_file}: {e}")
            return []

    def add_log(self, log: SyncHistoryLog) -> None:
        self.add_logs([log])

    def add_logs(self, logs: list[SyncHistoryLog]) -> None:
        """Prepend entries (given oldest first), keeping the newest ones.

        At most MAX_HISTORY_ENTRIES are kept.
        """
        if not logs:
            return
        logs = list(reversed(logs)) + self.get_history_logs()
        self._write_json(
            self.history_file, [item.to_dict() for item in logs[:MAX_HISTORY_ENTRIES]]
        )

    def clear_history(self) -> None:
        if self.history_file.exists():
            self.history_file.unlink()
