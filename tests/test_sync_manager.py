"""Tests for the sync manager and the sync repository."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from autodrop.exceptions import DropboxAPIError, DropboxAuthenticationError
from autodrop.sync import (
    LogEvent,
    LogKind,
    SnapshotStore,
    SyncConfigError,
    SyncHistoryLog,
    SyncManager,
    SyncMethod,
    SyncPair,
    SyncRepository,
)
from autodrop.sync.repository import MAX_HISTORY_ENTRIES


@pytest.fixture
def repository(temp_dir):
    """Create a repository backed by temporary files."""
    return SyncRepository(
        pairs_file=temp_dir / "sync_pairs.json",
        history_file=temp_dir / "sync_history.json",
    )


def _pair(local: Path, remote: str, pair_id: str, **kwargs) -> SyncPair:
    local.mkdir(parents=True, exist_ok=True)
    return SyncPair(
        local=local, remote=remote, method=SyncMethod.PUSH_ONLY, id=pair_id, **kwargs
    )


class TestSyncRepository:
    """Tests for SyncRepository."""

    def test_no_pairs(self, repository):
        assert repository.get_sync_pairs() == []

    def test_add_and_get_pairs(self, repository):
        pair = SyncPair(Path("/a"), "/A", SyncMethod.TWO_WAY, alias="docs")
        repository.add_sync_pair(pair)

        assert repository.get_sync_pairs() == [pair]
        assert repository.get_sync_pair(pair.id) == pair
        assert repository.get_sync_pair("docs") == pair
        assert repository.get_sync_pair("unknown") is None

    def test_add_duplicate_id(self, repository):
        pair = SyncPair(Path("/a"), "/A", id="same")
        repository.add_sync_pair(pair)
        with pytest.raises(SyncConfigError, match="already exists"):
            repository.add_sync_pair(SyncPair(Path("/b"), "/B", id="same"))

    def test_remove_pair(self, repository):
        repository.add_sync_pair(SyncPair(Path("/a"), "/A", id="p1"))
        repository.add_sync_pair(SyncPair(Path("/b"), "/B", id="p2", alias="b"))

        assert repository.remove_sync_pair("b") is True
        assert repository.remove_sync_pair("missing") is False
        assert [p.id for p in repository.get_sync_pairs()] == ["p1"]

    def test_update_sync_status(self, repository):
        repository.add_sync_pair(SyncPair(Path("/a"), "/A", id="p1"))

        repository.update_sync_status("p1", "Synced: 3 change(s)")

        assert repository.get_sync_pair("p1").last_status == "Synced: 3 change(s)"

    def test_update_unknown_status_does_not_write(self, repository):
        repository.update_sync_status("p1", "Synced")
        assert not repository.pairs_file.exists()

    def test_malformed_pairs_file(self, repository):
        repository.pairs_file.write_text("{oops")
        with pytest.raises(SyncConfigError):
            repository.get_sync_pairs()

    def test_history_newest_first(self, repository):
        repository.add_logs([SyncHistoryLog("first"), SyncHistoryLog("second")])
        repository.add_log(SyncHistoryLog("third"))

        messages = [log.message for log in repository.get_history_logs()]

        assert messages == ["third", "second", "first"]

    def test_history_is_capped(self, repository):
        logs = [SyncHistoryLog(f"entry {i}") for i in range(MAX_HISTORY_ENTRIES + 5)]
        repository.add_logs(logs)

        history = repository.get_history_logs()

        assert len(history) == MAX_HISTORY_ENTRIES
        assert history[0].message == f"entry {MAX_HISTORY_ENTRIES + 4}"

    def test_history_entry_fields(self, repository):
        event = LogEvent("CONFLICT detected: a", LogKind.CONFLICT, details="x")
        repository.add_log(SyncHistoryLog.from_event(event, "p1"))

        stored = json.loads(repository.history_file.read_text())[0]

        assert stored["pairId"] == "p1"
        assert stored["kind"] == "conflict"
        assert stored["details"] == "x"
        assert repository.get_history_logs()[0].kind == LogKind.CONFLICT

    def test_unreadable_history(self, repository):
        repository.history_file.write_text("[{]")
        assert repository.get_history_logs() == []

    def test_clear_history_keeps_pairs(self, repository):
        repository.add_sync_pair(SyncPair(Path("/a"), "/A"))
        repository.add_log(SyncHistoryLog("entry"))

        repository.clear_history()

        assert repository.get_history_logs() == []
        assert repository.get_sync_pairs() != []


class TestSyncManager:
    """Tests for SyncManager."""

    @pytest.fixture
    def manager(self, repository, store, temp_dir):
        return SyncManager(
            repository=repository,
            snapshot_store=SnapshotStore(temp_dir / "state"),
            access_token="token",
            store_factory=lambda token: store,
        )

    def test_no_access_token(self, repository, store, temp_dir):
        manager = SyncManager(
            repository=repository,
            snapshot_store=SnapshotStore(temp_dir / "state"),
            store_factory=lambda token: store,
        )
        with patch("autodrop.sync.manager.config") as mock_config:
            mock_config.access_token = None
            outcome = manager.sync_all()

        assert outcome.errors == 1
        assert manager.status == "Error: Not Logged In"
        history = repository.get_history_logs()
        assert history[0].message == "Sync Failed: No access token configured"
        assert store.calls == []

    def test_no_pairs_configured(self, manager, repository):
        outcome = manager.sync_all()

        assert outcome.total_changes() == 0
        assert manager.status == "No folders configured."
        assert repository.get_history_logs()[0].message == (
            "Sync Skipped: No folder pairs configured"
        )

    def test_syncs_enabled_pairs(self, manager, repository, store, temp_dir):
        first = _pair(temp_dir / "one", "/One", "p1")
        (first.local / "a.txt").write_text("a")
        second = _pair(temp_dir / "two", "/Two", "p2", enabled=False)
        (second.local / "b.txt").write_text("b")
        repository.save_pairs([first, second])

        outcome = manager.sync_all()

        assert outcome.uploaded == 1
        assert set(store.files) == {"/One/a.txt"}
        assert store.closed is True
        assert manager.status == "Complete. Processed 1 items."

        pairs = {p.id: p for p in repository.get_sync_pairs()}
        assert pairs["p1"].last_status == "Synced: 1 change(s)"
        assert pairs["p2"].last_status == "Idle"

        history = repository.get_history_logs()
        assert history[0].message == "Sync Cycle Complete. Total: 1"
        assert history[0].pair_id == "GLOBAL"
        assert history[1].message == "Sync Success: Processed 1 changes"
        assert history[1].pair_id == "p1"

    def test_explicit_pairs(self, manager, store, temp_dir):
        pair = _pair(temp_dir / "one", "/One", "p1")
        (pair.local / "a.txt").write_text("a")

        outcome = manager.sync_all([pair])

        assert outcome.uploaded == 1
        assert "/One/a.txt" in store.files

    def test_no_changes_message(self, manager, repository, temp_dir):
        repository.save_pairs([_pair(temp_dir / "one", "/One", "p1")])

        manager.sync_all()

        assert repository.get_history_logs()[1].message == (
            "Sync Completed: No changes for /One"
        )

    def test_errors_set_pair_status(self, manager, repository, store, temp_dir):
        pair = _pair(temp_dir / "one", "/One", "p1")
        (pair.local / "a.txt").write_text("a")
        repository.save_pairs([pair])
        store.fail("list_folder", "/One", DropboxAPIError("x"))

        outcome = manager.sync_all()

        assert outcome.errors == 1
        assert repository.get_sync_pair("p1").last_status == "Error: 1 error(s)"

    def test_rejected_credential_stops_before_pairs(
        self, manager, repository, store, temp_dir
    ):
        repository.save_pairs([_pair(temp_dir / "one", "/One", "p1")])
        store.account_error = DropboxAuthenticationError("Invalid token")

        outcome = manager.sync_all()

        assert outcome.errors == 1
        assert store.count("list_folder") == 0
        assert manager.status == "Error: Invalid token"

    def test_authentication_error_stops_remaining_pairs(
        self, manager, repository, store, temp_dir
    ):
        first = _pair(temp_dir / "one", "/One", "p1")
        second = _pair(temp_dir / "two", "/Two", "p2")
        repository.save_pairs([first, second])
        store.fail("list_folder", "/One", DropboxAuthenticationError("expired"))

        outcome = manager.sync_all()

        assert outcome.errors == 1
        assert ("list_folder", "/Two") not in store.calls
        pairs = {p.id: p for p in repository.get_sync_pairs()}
        assert pairs["p1"].last_status == "Error: expired"
        messages = [log.message for log in repository.get_history_logs()]
        assert "Sync Error: expired" in messages

    def test_unexpected_error_moves_on_to_next_pair(
        self, manager, repository, store, temp_dir
    ):
        first = _pair(temp_dir / "one", "/R", "p1")
        second = _pair(temp_dir / "two", "/R2", "p2")
        (second.local / "b.txt").write_text("b")
        repository.save_pairs([first, second])
        store.fail("list_folder", "/R", KeyError("cursor"))

        outcome = manager.sync_all()

        assert outcome.errors == 1
        assert outcome.uploaded == 1
        assert "/R2/b.txt" in store.files
        assert store.closed is True
        pairs = {p.id: p for p in repository.get_sync_pairs()}
        assert pairs["p1"].last_status == "Error: 'cursor'"
        assert pairs["p2"].last_status == "Synced: 1 change(s)"
        messages = [log.message for log in repository.get_history_logs()]
        assert "Sync Error: 'cursor'" in messages
        assert messages[0] == "Sync Cycle Complete. Total: 1"

    def test_history_write_failure_does_not_raise(
        self, manager, repository, store, temp_dir
    ):
        repository.save_pairs([_pair(temp_dir / "one", "/One", "p1")])

        with patch.object(
            repository, "add_logs", side_effect=OSError("disk full")
        ) as add_logs:
            outcome = manager.sync_all()

        add_logs.assert_called_once()
        assert outcome.errors == 0
        assert repository.get_sync_pair("p1").last_status == "Synced: 0 change(s)"

    def test_callbacks(self, repository, store, temp_dir):
        statuses = []
        events = []
        manager = SyncManager(
            repository=repository,
            snapshot_store=SnapshotStore(temp_dir / "state"),
            access_token="token",
            store_factory=lambda token: store,
            log_sink=events.append,
            status_callback=statuses.append,
        )
        repository.save_pairs([_pair(temp_dir / "one", "/One", "p1")])

        manager.sync_all()

        assert statuses[0] == "Starting Sync..."
        assert "Syncing /One..." in statuses
        assert statuses[-1] == "Complete. Processed 0 items."
        assert events[0].kind == LogKind.START
        assert len(events) == len(repository.get_history_logs())
