"""Sync engine for autodrop - push, pull, mirror and two-way sync."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .config import SyncConfigError, load_sync_pairs_from_json
from .conflict import ConflictResolver, conflict_name
from .engine import SyncEngine, run_sync
from .events import LogEvent, LogKind, LogSink, SyncOutcome
from .exclusion import is_excluded
from .manager import SyncManager
from .modes import SyncMethod
from .operations import SyncOperations
from .pair import SyncPair
from .remote import RemoteStore
from .repository import SyncHistoryLog, SyncRepository
from .state import FileSnapshot, SnapshotStore

__all__ = [
    "SyncEngine",
    "SyncManager",
    "SyncMethod",
    "SyncPair",
    "SyncOperations",
    "SyncOutcome",
    "LogEvent",
    "LogKind",
    "LogSink",
    "RemoteStore",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "ConflictResolver",
    "conflict_name",
    "is_excluded",
    "FileSnapshot",
    "SnapshotStore",
    "SyncRepository",
    "SyncHistoryLog",
    "SyncConfigError",
    "load_sync_pairs_from_json",
    "run_sync",
]
