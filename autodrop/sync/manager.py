"""Runs every configured sync pair, one after another."""

import logging
from typing import Any, Callable, Optional

from ..config import config
from ..exceptions import DropboxAPIError, DropboxAuthenticationError
from .config import SyncConfigError
from .engine import SyncEngine
from .events import LogEvent, LogKind, LogSink, SyncOutcome
from .pair import SyncPair
from .remote import RemoteStore
from .repository import GLOBAL_PAIR_ID, SyncHistoryLog, SyncRepository
from .state import SnapshotStore

logger = logging.getLogger(__name__)


def _default_store_factory(access_token: str) -> RemoteStore:
    from ..api import DropboxClient

    return DropboxClient(access_token=access_token)


class SyncManager:
    """Syncs all enabled pairs sequentially and records status and history.

    Pair statuses and history entries are collected during the run and
    written once at the end. A rejected credential stops the run; any other
    failure of a pair is recorded against that pair and the next pair runs.
    Nothing raised by the engine escapes :meth:`sync_all`.
    """

    def __init__(
        self,
        repository: Optional[SyncRepository] = None,
        snapshot_store: Optional[SnapshotStore] = None,
        access_token: Optional[str] = None,
        store_factory: Callable[[str], RemoteStore] = _default_store_factory,
        log_sink: Optional[LogSink] = None,
        status_callback: Optional[Callable[[str], None]] = None,
    ):
        """Initialize sync manager.

        Args:
            repository: Pair and history persistence
            snapshot_store: Snapshot persistence for two-way pairs
            access_token: Access token (uses config if not provided)
            store_factory: Builds the remote store from the access token
            log_sink: Optional callback receiving every log event
            status_callback: Optional callback receiving status line updates
        """
        self.repository = repository or SyncRepository()
        self.snapshot_store = snapshot_store or SnapshotStore()
        self.access_token = access_token
        self.store_factory = store_factory
        self.log_sink = log_sink
        self.status_callback = status_callback
        self.status = "Idle"

    def _set_status(self, status: str) -> None:
        self.status = status
        if self.status_callback is not None:
            self.status_callback(status)

    def sync_all(self, pairs: Optional[list[SyncPair]] = None) -> SyncOutcome:
        """Sync every enabled pair.

        Args:
            pairs: Pairs to sync (defaults to the pairs in the repository)

        Returns:
            Combined outcome of all pairs
        """
        history: list[SyncHistoryLog] = []
        statuses: dict[str, str] = {}

        def record(event: LogEvent, pair_id: str = GLOBAL_PAIR_ID) -> None:
            history.append(SyncHistoryLog.from_event(event, pair_id))
            if self.log_sink is not None:
                self.log_sink(event)

        try:
            return self._sync_all(pairs, record, statuses)
        finally:
            self._persist(history, statuses)

    def _persist(
        self, history: list[SyncHistoryLog], statuses: dict[str, str]
    ) -> None:
        try:
            self.repository.add_logs(history)
        except OSError as e:
            logger.warning(f"Failed to write sync history: {e}")
        try:
            self.repository.update_sync_statuses(statuses)
        except (SyncConfigError, OSError) as e:
            logger.warning(f"Failed to update pair statuses: {e}")

    def _sync_all(
        self,
        pairs: Optional[list[SyncPair]],
        record: Callable[..., None],
        statuses: dict[str, str],
    ) -> SyncOutcome:
        total = SyncOutcome()
        self._set_status("Starting Sync...")

        token = self.access_token or config.access_token
        if not token:
            self._set_status("Error: Not Logged In")
            record(LogEvent("Sync Failed: No access token configured", LogKind.ERROR))
            total.errors += 1
            return total

        if pairs is None:
            try:
                pairs = self.repository.get_sync_pairs()
            except SyncConfigError as e:
                self._set_status(f"Error: {e}")
                record(LogEvent(f"Sync Failed: {e}", LogKind.ERROR))
                total.errors += 1
                return total

        if not pairs:
            self._set_status("No folders configured.")
            record(LogEvent("Sync Skipped: No folder pairs configured"))
            return total

        try:
            store = self.store_factory(token)
            self._verify_access(store)
        except DropboxAPIError as e:
            self._set_status(f"Error: {e}")
            record(LogEvent(f"Sync Failed: {e}", LogKind.ERROR))
            total.errors += 1
            return total

        engine = SyncEngine(store, self.snapshot_store)
        try:
            for pair in pairs:
                if not pair.enabled:
                    logger.debug(f"Skipping disabled pair {pair}")
                    continue
                outcome, keep_going = self._sync_one(engine, pair, record, statuses)
                total += outcome
                if not keep_going:
                    break
        finally:
            close = getattr(store, "close", None)
            if callable(close):
                close()

        changes = total.total_changes()
        self._set_status(f"Complete. Processed {changes} items.")
        record(LogEvent(f"Sync Cycle Complete. Total: {changes}"))
        return total

    def _verify_access(self, store: Any) -> None:
        """Fail fast when the credential is rejected before touching any pair."""
        get_account = getattr(store, "get_current_account", None)
        if callable(get_account):
            get_account()

    def _sync_one(
        self,
        engine: SyncEngine,
        pair: SyncPair,
        record: Callable[..., None],
        statuses: dict[str, str],
    ) -> tuple[SyncOutcome, bool]:
        """Sync one pair.

        Returns:
            The pair's outcome and whether the run may go on with the next pair
        """
        self._set_status(f"Syncing {pair.remote or '/'}...")

        def sink(event: LogEvent) -> None:
            record(event, pair.id)
            self._set_status(event.message)

        try:
            outcome = engine.run_sync(pair, sink)
        except DropboxAuthenticationError as e:
            statuses[pair.id] = f"Error: {e}"
            record(LogEvent(f"Sync Error: {e}", LogKind.ERROR), pair.id)
            self._set_status(f"Error: {e}")
            return SyncOutcome(errors=1), False
        except Exception as e:
            logger.exception(f"Sync of {pair} failed")
            statuses[pair.id] = f"Error: {e}"
            record(LogEvent(f"Sync Error: {e}", LogKind.ERROR), pair.id)
            return SyncOutcome(errors=1), True

        changes = outcome.total_changes()
        if outcome.errors:
            statuses[pair.id] = f"Error: {outcome.errors} error(s)"
        else:
            statuses[pair.id] = f"Synced: {changes} change(s)"

        if changes > 0:
            record(LogEvent(f"Sync Success: Processed {changes} changes"), pair.id)
        else:
            record(
                LogEvent(f"Sync Completed: No changes for {pair.remote or '/'}"),
                pair.id,
            )
        return outcome, True
