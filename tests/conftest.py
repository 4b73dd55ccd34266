"""Shared fixtures for the autodrop tests."""

import io
import tempfile
from pathlib import Path
from typing import Optional

import pytest

from autodrop.exceptions import DropboxNotFoundError
from autodrop.models import RemoteEntry
from autodrop.utils import calculate_content_hash


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0]


class FakeRemoteStore:
    """In-memory remote folder tree.

    Paths are compared exactly as given. Failures can be injected per
    operation and path with :meth:`fail`.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.folders: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], Exception] = {}
        self.account_error: Optional[Exception] = None
        self.closed = False

    # Test helpers

    def put(self, path: str, content: bytes) -> None:
        self._make_parents(path)
        self.files[path] = content

    def mkdir(self, path: str) -> None:
        self._make_parents(path)
        self.folders.add(path)

    def fail(self, operation: str, path: str, error: Exception) -> None:
        self._failures[(operation, path)] = error

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    def _make_parents(self, path: str) -> None:
        parent = _parent(path)
        while parent:
            self.folders.add(parent)
            parent = _parent(parent)

    def _record(self, operation: str, path: str) -> None:
        self.calls.append((operation, path))
        error = self._failures.get((operation, path))
        if error is not None:
            raise error

    def _entry(self, path: str) -> RemoteEntry:
        name = path.rsplit("/", 1)[1]
        if path in self.folders:
            return RemoteEntry(name, path, path.lower(), is_folder=True)
        content = self.files[path]
        return RemoteEntry(
            name,
            path,
            path.lower(),
            is_folder=False,
            content_hash=calculate_content_hash(io.BytesIO(content)),
            size=len(content),
        )

    # RemoteStore interface

    def get_current_account(self) -> dict:
        self.calls.append(("get_current_account", ""))
        if self.account_error is not None:
            raise self.account_error
        return {"email": "user@example.com"}

    def list_folder(self, path: str = "") -> list[RemoteEntry]:
        self._record("list_folder", path)
        if path and path not in self.folders:
            raise DropboxNotFoundError(f"Path not found: {path}")
        children = [
            p for p in list(self.folders) + list(self.files) if _parent(p) == path
        ]
        return [self._entry(p) for p in sorted(children)]

    def upload_file(self, path: str, data) -> RemoteEntry:
        self._record("upload_file", path)
        content = data if isinstance(data, bytes) else data.read()
        self.put(path, content)
        return self._entry(path)

    def download_file(self, path: str, sink) -> int:
        self._record("download_file", path)
        if path not in self.files:
            raise DropboxNotFoundError(f"Path not found: {path}")
        sink.write(self.files[path])
        return len(self.files[path])

    def delete_file(self, path: str) -> dict:
        self._record("delete_file", path)
        if path in self.files:
            del self.files[path]
        elif path in self.folders:
            prefix = f"{path}/"
            self.folders = {
                f for f in self.folders if f != path and not f.startswith(prefix)
            }
            self.files = {
                p: c for p, c in self.files.items() if not p.startswith(prefix)
            }
        else:
            raise DropboxNotFoundError(f"Path not found: {path}")
        return {"metadata": {"path_display": path}}

    def create_folder(self, path: str) -> Optional[RemoteEntry]:
        self._record("create_folder", path)
        if path in self.folders:
            return None
        self.mkdir(path)
        return self._entry(path)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def store():
    """Provide an empty in-memory remote store."""
    return FakeRemoteStore()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
