"""Core sync engine for executing sync operations."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import (
    DropboxAPIError,
    DropboxAuthenticationError,
    DropboxNotFoundError,
)
from ..models import RemoteEntry
from ..utils import hash_file, join_relative_path, join_remote_path
from .comparator import FileComparator, SyncAction, SyncDecision
from .conflict import ConflictResolver
from .events import LogEvent, LogKind, LogSink, SyncOutcome
from .exclusion import is_excluded
from .operations import SyncOperations
from .pair import SyncPair
from .remote import RemoteStore
from .state import FileSnapshot, SnapshotStore

logger = logging.getLogger(__name__)

Snapshots = dict[str, FileSnapshot]


@dataclass
class _SyncRun:
    """State owned by a single run of a sync pair."""

    pair: SyncPair
    comparator: FileComparator
    outcome: SyncOutcome
    log_sink: Optional[LogSink] = None


class SyncEngine:
    """Reconciles a local directory tree with a remote folder tree.

    Every directory level is handled the same way: list the local children,
    list the remote folder once, pair the entries by name and act on each
    name, then recurse into matching directories depth first. Names are
    paired case-insensitively, the way Dropbox compares paths.

    Per-item failures are logged and counted without stopping the run.
    ``DropboxAuthenticationError`` is never caught: a rejected credential
    ends the run.
    """

    def __init__(
        self,
        store: RemoteStore,
        snapshot_store: Optional[SnapshotStore] = None,
    ):
        """Initialize sync engine.

        Args:
            store: Remote storage backend
            snapshot_store: Snapshot persistence used by two-way sync
        """
        self.store = store
        self.snapshot_store = snapshot_store or SnapshotStore()
        self.operations = SyncOperations(store)
        self.conflicts = ConflictResolver(self.operations)

    def run_sync(
        self, pair: SyncPair, log_sink: Optional[LogSink] = None
    ) -> SyncOutcome:
        """Sync a single sync pair.

        Args:
            pair: Sync pair to synchronize
            log_sink: Optional callback receiving every log event

        Returns:
            Outcome with counters and the emitted log events

        Raises:
            DropboxAuthenticationError: If the remote rejects the credential

        Examples:
            >>> engine = SyncEngine(client)
            >>> pair = SyncPair(Path("/local"), "/remote", SyncMethod.PUSH_ONLY)
            >>> outcome = engine.run_sync(pair)
            >>> print(f"Uploaded {outcome.uploaded} files")
        """
        run = _SyncRun(
            pair=pair,
            comparator=FileComparator(pair.method),
            outcome=SyncOutcome(),
            log_sink=log_sink,
        )
        self._log(run, f"=== Sync started ({pair.remote or '/'}) ===", LogKind.START)
        logger.debug(f"Syncing {pair} excluded={pair.excluded_paths}")

        if not pair.local.is_dir():
            self._error(run, f"Local folder missing: {pair.local}")
            self._log(run, "=== Sync completed ===", LogKind.END)
            return run.outcome

        if pair.method.uses_snapshot:
            self._sync_two_way(run)
        elif pair.method.is_push:
            self._sync_push(run, pair.local, pair.remote, "")
        else:
            self._sync_pull(run, pair.local, pair.remote, "")

        outcome = run.outcome
        if outcome.total_changes() > 0 or outcome.errors == 0:
            self._log(run, outcome.summary())
        self._log(run, "=== Sync completed ===", LogKind.END)
        return outcome

    # =========================
    # Logging helpers
    # =========================

    def _log(
        self,
        run: _SyncRun,
        message: str,
        kind: LogKind = LogKind.INFO,
        details: Optional[str] = None,
    ) -> None:
        event = LogEvent(message=message, kind=kind, details=details)
        run.outcome.events.append(event)
        if run.log_sink is not None:
            run.log_sink(event)

    def _error(self, run: _SyncRun, message: str) -> None:
        logger.debug(message)
        run.outcome.errors += 1
        self._log(run, f"ERROR: {message}", LogKind.ERROR)

    # =========================
    # Listing helpers
    # =========================

    def _list_local(
        self, run: _SyncRun, directory: Path
    ) -> Optional[dict[str, Path]]:
        """List a local directory by child name, or None if unreadable."""
        try:
            return {child.name: child for child in directory.iterdir()}
        except OSError as e:
            self._error(run, f"Failed to list local folder {directory}: {e}")
            return None

    def _list_remote(
        self, run: _SyncRun, remote_path: str
    ) -> Optional[dict[str, RemoteEntry]]:
        """List a remote folder keyed by lower-cased child name.

        A folder that does not exist yet lists as empty. Any other failure
        returns None so the caller skips the subtree instead of acting on
        an unknown listing.
        """
        try:
            entries = self.store.list_folder(remote_path)
        except DropboxNotFoundError:
            logger.debug(f"Remote folder {remote_path or '/'} not found")
            return {}
        except DropboxAuthenticationError:
            raise
        except DropboxAPIError as e:
            self._error(
                run, f"Failed to list remote folder {remote_path or '/'}: {e}"
            )
            return None
        return {entry.name.lower(): entry for entry in entries}

    def _excluded(self, run: _SyncRun, relative_path: str) -> bool:
        return is_excluded(relative_path, run.pair.excluded_paths)

    # =========================
    # Item operations
    # =========================

    def _upload(
        self, run: _SyncRun, local_path: Path, remote_path: str, relative_path: str
    ) -> bool:
        try:
            self.operations.upload_file(local_path, remote_path)
        except DropboxAuthenticationError:
            raise
        except (DropboxAPIError, OSError) as e:
            self._error(run, f"Failed to upload {relative_path}: {e}")
            return False
        run.outcome.uploaded += 1
        return True

    def _download(
        self, run: _SyncRun, remote_path: str, local_path: Path, relative_path: str
    ) -> bool:
        try:
            self.operations.download_file(remote_path, local_path)
        except DropboxAuthenticationError:
            raise
        except (DropboxAPIError, OSError) as e:
            self._error(run, f"Failed to download {relative_path}: {e}")
            return False
        run.outcome.downloaded += 1
        return True

    def _delete_remote(
        self, run: _SyncRun, remote_path: str, relative_path: str
    ) -> bool:
        try:
            self.operations.delete_remote(remote_path)
        except DropboxAuthenticationError:
            raise
        except DropboxAPIError as e:
            self._error(run, f"Failed to delete remote {relative_path}: {e}")
            return False
        run.outcome.deleted += 1
        return True

    def _delete_local(
        self, run: _SyncRun, local_path: Path, relative_path: str
    ) -> bool:
        try:
            self.operations.delete_local(local_path)
        except OSError as e:
            self._error(run, f"Failed to delete local {relative_path}: {e}")
            return False
        run.outcome.deleted += 1
        return True

    def _type_mismatch(self, run: _SyncRun, relative_path: str) -> None:
        self._error(
            run,
            f"Cannot sync {relative_path}: folder on one side, file on the other",
        )

    # =========================
    # Push (local -> remote)
    # =========================

    def _sync_push(
        self,
        run: _SyncRun,
        local_dir: Path,
        remote_path: str,
        relative_path: str,
        remote_missing: bool = False,
    ) -> None:
        """Upload new and changed local files of one directory level.

        Args:
            run: Current run
            local_dir: Local directory to process
            remote_path: Corresponding remote folder
            relative_path: Path of local_dir relative to the pair root
            remote_missing: True when the remote folder is known not to
                exist, in which case it is not listed
        """
        local_items = self._list_local(run, local_dir)
        if local_items is None:
            return
        remote_items = {} if remote_missing else self._list_remote(run, remote_path)
        if remote_items is None:
            return

        for name, local_path in sorted(local_items.items()):
            item_path = join_relative_path(relative_path, name)
            if self._excluded(run, item_path):
                continue

            remote_entry = remote_items.get(name.lower())
            item_remote = (
                remote_entry.path_display
                if remote_entry is not None
                else join_remote_path(remote_path, name)
            )

            if local_path.is_dir():
                if remote_entry is not None and not remote_entry.is_folder:
                    self._type_mismatch(run, item_path)
                    continue
                self._sync_push(
                    run,
                    local_path,
                    item_remote,
                    item_path,
                    remote_missing=remote_entry is None,
                )
                continue

            if remote_entry is not None and remote_entry.is_folder:
                self._type_mismatch(run, item_path)
                continue

            local_hash = None
            if remote_entry is not None and remote_entry.content_hash is not None:
                local_hash = hash_file(local_path)

            decision = run.comparator.compare_push(item_path, local_hash, remote_entry)
            logger.debug(f"{item_path}: {decision.action.value} ({decision.reason})")
            if decision.action == SyncAction.UPLOAD:
                self._upload(run, local_path, item_remote, item_path)

        if run.pair.method.is_mirror:
            local_keys = {name.lower() for name in local_items}
            for key, remote_entry in sorted(remote_items.items()):
                item_path = join_relative_path(relative_path, remote_entry.name)
                if key in local_keys or self._excluded(run, item_path):
                    continue
                self._delete_remote(run, remote_entry.path_display, item_path)

    # =========================
    # Pull (remote -> local)
    # =========================

    def _sync_pull(
        self,
        run: _SyncRun,
        local_dir: Path,
        remote_path: str,
        relative_path: str,
    ) -> None:
        """Download new and changed remote files of one folder level.

        Args:
            run: Current run
            local_dir: Corresponding local directory (must exist)
            remote_path: Remote folder to process
            relative_path: Path of local_dir relative to the pair root
        """
        remote_items = self._list_remote(run, remote_path)
        if remote_items is None:
            return
        local_items = self._list_local(run, local_dir)
        if local_items is None:
            return

        local_by_key = {name.lower(): path for name, path in local_items.items()}
        for key, remote_entry in sorted(remote_items.items()):
            name = remote_entry.name
            item_path = join_relative_path(relative_path, name)
            if self._excluded(run, item_path):
                continue

            local_path = local_by_key.get(key)
            target = local_path if local_path is not None else local_dir / name

            if remote_entry.is_folder:
                if local_path is not None and not local_path.is_dir():
                    self._type_mismatch(run, item_path)
                    continue
                if local_path is None:
                    try:
                        self.operations.create_local_folder(target)
                    except OSError as e:
                        self._error(
                            run, f"Failed to create local folder {item_path}: {e}"
                        )
                        continue
                self._sync_pull(run, target, remote_entry.path_display, item_path)
                continue

            if local_path is not None and local_path.is_dir():
                self._type_mismatch(run, item_path)
                continue

            local_hash = hash_file(local_path) if local_path is not None else None
            decision = run.comparator.compare_pull(
                item_path, local_path is not None, local_hash, remote_entry
            )
            logger.debug(f"{item_path}: {decision.action.value} ({decision.reason})")
            if decision.action == SyncAction.DOWNLOAD:
                self._download(run, remote_entry.path_display, target, item_path)

        if run.pair.method.is_mirror:
            for name, local_path in sorted(local_items.items()):
                item_path = join_relative_path(relative_path, name)
                if name.lower() in remote_items or self._excluded(run, item_path):
                    continue
                self._delete_local(run, local_path, item_path)

    # =========================
    # Two-way
    # =========================

    def _sync_two_way(self, run: _SyncRun) -> None:
        """Run a two-way sync against the stored snapshot of the pair."""
        pair = run.pair
        old_snapshot = self.snapshot_store.load(pair.id)
        new_snapshot: Snapshots = {}

        self._sync_two_way_recursive(
            run, pair.local, pair.remote, "", old_snapshot, new_snapshot
        )

        try:
            self.snapshot_store.save(pair.id, new_snapshot)
        except OSError as e:
            self._error(run, f"Failed to save sync snapshot: {e}")

    def _carry_over(
        self,
        run: _SyncRun,
        old_snapshot: Snapshots,
        new_snapshot: Snapshots,
        relative_path: str,
    ) -> None:
        """Keep prior snapshot entries of a path or subtree that was not synced."""
        prefix = f"{relative_path}/" if relative_path else ""
        for path, snapshot in old_snapshot.items():
            if path != relative_path and not path.startswith(prefix):
                continue
            if not self._excluded(run, path):
                new_snapshot[path] = snapshot

    def _sync_two_way_recursive(
        self,
        run: _SyncRun,
        local_dir: Path,
        remote_path: str,
        relative_path: str,
        old_snapshot: Snapshots,
        new_snapshot: Snapshots,
        remote_missing: bool = False,
    ) -> None:
        """Reconcile one directory level in both directions.

        Args:
            run: Current run
            local_dir: Local directory (must exist)
            remote_path: Corresponding remote folder
            relative_path: Path of local_dir relative to the pair root
            old_snapshot: Snapshot of the previous run
            new_snapshot: Snapshot being built by this run (modified in place)
            remote_missing: True when the remote folder was just created
                and is known to be empty
        """
        local_items = self._list_local(run, local_dir)
        if local_items is None:
            self._carry_over(run, old_snapshot, new_snapshot, relative_path)
            return
        remote_items = {} if remote_missing else self._list_remote(run, remote_path)
        if remote_items is None:
            self._carry_over(run, old_snapshot, new_snapshot, relative_path)
            return

        local_names = {name.lower(): name for name in local_items}
        for key in sorted(set(local_names) | set(remote_items)):
            remote_entry = remote_items.get(key)
            if key in local_names:
                name = local_names[key]
                local_path = local_items[name]
            else:
                name = remote_entry.name
                local_path = None
            item_path = join_relative_path(relative_path, name)
            if self._excluded(run, item_path):
                continue

            local_is_dir = local_path is not None and local_path.is_dir()
            remote_is_dir = remote_entry is not None and remote_entry.is_folder

            if local_is_dir or remote_is_dir:
                self._two_way_folder(
                    run,
                    local_dir,
                    remote_path,
                    name,
                    item_path,
                    local_path,
                    remote_entry,
                    old_snapshot,
                    new_snapshot,
                )
            else:
                self._two_way_file(
                    run,
                    local_dir,
                    remote_path,
                    name,
                    item_path,
                    local_path,
                    remote_entry,
                    old_snapshot,
                    new_snapshot,
                )

    def _two_way_folder(
        self,
        run: _SyncRun,
        local_dir: Path,
        remote_path: str,
        name: str,
        item_path: str,
        local_path: Optional[Path],
        remote_entry: Optional[RemoteEntry],
        old_snapshot: Snapshots,
        new_snapshot: Snapshots,
    ) -> None:
        """Recurse into a folder, creating whichever side is missing."""
        local_is_dir = local_path is not None and local_path.is_dir()
        remote_is_dir = remote_entry is not None and remote_entry.is_folder

        if local_path is not None and remote_entry is not None:
            if not (local_is_dir and remote_is_dir):
                self._type_mismatch(run, item_path)
                self._carry_over(run, old_snapshot, new_snapshot, item_path)
                return
            self._sync_two_way_recursive(
                run,
                local_path,
                remote_entry.path_display,
                item_path,
                old_snapshot,
                new_snapshot,
            )
        elif remote_entry is not None:
            target = local_dir / name
            try:
                self.operations.create_local_folder(target)
            except OSError as e:
                self._error(run, f"Failed to create local folder {item_path}: {e}")
                self._carry_over(run, old_snapshot, new_snapshot, item_path)
                return
            self._sync_two_way_recursive(
                run,
                target,
                remote_entry.path_display,
                item_path,
                old_snapshot,
                new_snapshot,
            )
        elif local_path is not None:
            item_remote = join_remote_path(remote_path, name)
            try:
                created = self.operations.create_remote_folder(item_remote)
            except DropboxAuthenticationError:
                raise
            except DropboxAPIError as e:
                self._error(run, f"Failed to create remote folder {item_path}: {e}")
                self._carry_over(run, old_snapshot, new_snapshot, item_path)
                return
            self._sync_two_way_recursive(
                run,
                local_path,
                item_remote,
                item_path,
                old_snapshot,
                new_snapshot,
                remote_missing=created is not None,
            )

    def _two_way_file(
        self,
        run: _SyncRun,
        local_dir: Path,
        remote_path: str,
        name: str,
        item_path: str,
        local_path: Optional[Path],
        remote_entry: Optional[RemoteEntry],
        old_snapshot: Snapshots,
        new_snapshot: Snapshots,
    ) -> None:
        """Apply the three-way decision for a single file."""
        previous = old_snapshot.get(item_path)
        local_hash = hash_file(local_path) if local_path is not None else None
        item_remote = (
            remote_entry.path_display
            if remote_entry is not None
            else join_remote_path(remote_path, name)
        )
        target = local_dir / name

        decision = run.comparator.compare_two_way(
            item_path, local_path is not None, local_hash, remote_entry, previous
        )
        logger.debug(f"{item_path}: {decision.action.value} ({decision.reason})")

        def keep_previous() -> None:
            if previous is not None:
                new_snapshot[item_path] = previous

        action = decision.action
        if action == SyncAction.SKIP:
            if local_path is not None and remote_entry is not None:
                new_snapshot[item_path] = FileSnapshot(item_path, local_hash)
        elif action == SyncAction.UPLOAD and local_path is not None:
            if self._upload(run, local_path, item_remote, item_path):
                new_snapshot[item_path] = FileSnapshot(item_path, local_hash)
            else:
                keep_previous()
        elif action == SyncAction.DOWNLOAD:
            if self._download(run, item_remote, target, item_path):
                new_snapshot[item_path] = FileSnapshot(
                    item_path, decision.remote_hash
                )
            else:
                keep_previous()
        elif action == SyncAction.DELETE_LOCAL and local_path is not None:
            if not self._delete_local(run, local_path, item_path):
                keep_previous()
        elif action == SyncAction.DELETE_REMOTE:
            if not self._delete_remote(run, item_remote, item_path):
                keep_previous()
        elif action == SyncAction.CONFLICT and local_path is not None:
            self._resolve_conflict(
                run, decision, local_path, item_remote, new_snapshot, keep_previous
            )

    def _resolve_conflict(
        self,
        run: _SyncRun,
        decision: SyncDecision,
        local_path: Path,
        remote_path: str,
        new_snapshot: Snapshots,
        keep_previous: Callable[[], None],
    ) -> None:
        """Keep both versions of a file changed on both sides."""
        item_path = decision.relative_path
        run.outcome.conflicts += 1
        self._log(
            run,
            f"CONFLICT detected: {item_path}",
            LogKind.CONFLICT,
            details=(
                f"Local Hash: {decision.local_hash}\n"
                f"Remote Hash: {decision.remote_hash}"
            ),
        )

        try:
            renamed = self.conflicts.set_aside(local_path)
        except OSError as e:
            self._error(run, f"Failed to rename conflicting {item_path}: {e}")
            keep_previous()
            return
        self._log(run, f"Kept local version of {item_path} as {renamed.name}")

        try:
            self.conflicts.fetch_remote(remote_path, local_path)
        except DropboxAuthenticationError:
            raise
        except (DropboxAPIError, OSError) as e:
            # Without an entry the next run sees a new remote file and fetches it
            self._error(run, f"Failed to download {item_path}: {e}")
            return
        run.outcome.downloaded += 1
        new_snapshot[item_path] = FileSnapshot(item_path, decision.remote_hash)


def run_sync(
    pair: SyncPair,
    store: RemoteStore,
    log_sink: Optional[LogSink] = None,
    snapshot_store: Optional[SnapshotStore] = None,
) -> SyncOutcome:
    """Sync one pair against a remote store.

    Convenience wrapper around ``SyncEngine(store, snapshot_store).run_sync``.
    """
    return SyncEngine(store, snapshot_store).run_sync(pair, log_sink)
