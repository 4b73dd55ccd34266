"""Sync pair configuration."""

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..utils import normalize_remote_path
from .modes import SyncMethod


@dataclass
class SyncPair:
    """A local directory kept in sync with a remote folder.

    Examples:
        >>> pair = SyncPair(Path("/home/user/docs"), "/Documents", SyncMethod.TWO_WAY)
        >>> pair.remote
        '/Documents'
    """

    local: Path
    """Local root directory"""

    remote: str
    """Remote folder path ("" for the root)"""

    method: SyncMethod = SyncMethod.PUSH_ONLY
    """Reconciliation policy"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    """Stable identifier, also the key of the persisted snapshot"""

    enabled: bool = True
    """Disabled pairs are skipped by the manager"""

    excluded_paths: list[str] = field(default_factory=list)
    """Paths relative to the pair root that are never synced"""

    last_status: str = "Idle"
    """Human readable status of the last run"""

    alias: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.local, str):
            self.local = Path(self.local)
        if isinstance(self.method, str) and not isinstance(self.method, SyncMethod):
            self.method = SyncMethod.from_string(self.method)
        self.remote = normalize_remote_path(self.remote)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncPair":
        """Create a sync pair from its JSON form.

        Args:
            data: Dictionary with camelCase keys (``local``, ``remote``,
                ``syncMethod``, ``excludedPaths`` ...)

        Returns:
            SyncPair instance

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required = ["local", "remote", "syncMethod"]
        missing = [key for key in required if key not in data]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        kwargs: dict[str, Any] = {
            "local": Path(data["local"]),
            "remote": data["remote"],
            "method": SyncMethod.from_string(data["syncMethod"]),
            "enabled": bool(data.get("enabled", True)),
            "excluded_paths": list(data.get("excludedPaths", [])),
            "last_status": data.get("lastStatus", "Idle"),
            "alias": data.get("alias"),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert the pair to its JSON form."""
        data: dict[str, Any] = {
            "id": self.id,
            "local": str(self.local),
            "remote": self.remote,
            "syncMethod": self.method.value,
            "enabled": self.enabled,
            "excludedPaths": list(self.excluded_paths),
            "lastStatus": self.last_status,
        }
        if self.alias:
            data["alias"] = self.alias
        return data

    @classmethod
    def parse_literal(
        cls, literal: str, excluded_paths: Optional[list[str]] = None
    ) -> "SyncPair":
        """Parse a ``/local:method:/remote`` or ``/local:/remote`` literal.

        The two-part form defaults to two-way sync.

        Args:
            literal: Sync pair literal
            excluded_paths: Optional excluded paths for the new pair

        Returns:
            SyncPair instance

        Raises:
            ValueError: If the literal cannot be parsed
        """
        parts = literal.split(":")
        if len(parts) == 2:
            local, remote = parts
            method = SyncMethod.TWO_WAY
        elif len(parts) == 3:
            local, method_name, remote = parts
            method = SyncMethod.from_string(method_name)
        else:
            raise ValueError(
                f"Invalid sync pair literal: {literal}. "
                "Expected /local:method:/remote or /local:/remote"
            )

        if not local.strip() or not remote.strip():
            raise ValueError("Local and remote paths cannot be empty")

        return cls(
            local=Path(local),
            remote=remote,
            method=method,
            excluded_paths=list(excluded_paths or []),
        )

    def __str__(self) -> str:
        name = f"{self.alias}: " if self.alias else ""
        remote = self.remote or "/"
        return f"{name}{self.local} <-> {remote} ({self.method.value})"
