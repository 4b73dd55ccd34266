"""Loading sync pairs from JSON files."""

import json
from pathlib import Path
from typing import Any, Union

from .pair import SyncPair


class SyncConfigError(Exception):
    """Raised when a sync pair file cannot be parsed."""


def load_sync_pairs_from_json(source: Union[str, Path, list[Any]]) -> list[SyncPair]:
    """Load sync pairs from a JSON file or an already parsed list.

    The file must contain a list of objects in ``SyncPair.to_dict`` form.

    Args:
        source: Path to a JSON file, or a list of pair dictionaries

    Returns:
        List of SyncPair objects

    Raises:
        SyncConfigError: If the file is missing, malformed or a pair is invalid
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise SyncConfigError(f"Sync pair file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise SyncConfigError(f"Invalid JSON in {path}: {e}") from e
        except OSError as e:
            raise SyncConfigError(f"Cannot read {path}: {e}") from e
    else:
        data = source

    if not isinstance(data, list):
        raise SyncConfigError("Sync pair configuration must be a list of pairs")

    pairs = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise SyncConfigError(f"Sync pair #{index} must be an object")
        try:
            pairs.append(SyncPair.from_dict(item))
        except ValueError as e:
            raise SyncConfigError(f"Sync pair #{index}: {e}") from e
    return pairs
