"""
File-backed key/value store.

Each key is one JSON document under the store directory. Services use it
for small local blobs (cached feed posts, food log, saved recipes).
"""

import json
import logging
import os
import re
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class JSONStore:
    """
    Persistent key/value store with JSON values.

    Values must be JSON-serializable. Reads of a missing or corrupt key
    return the default.
    """

    def __init__(self, directory: str):
        """
        Initialize JSONStore.

        Args:
            directory: Directory that holds one file per key (created lazily)
        """
        self._directory = directory

    @property
    def directory(self) -> str:
        return self._directory

    def _path(self, key: str) -> str:
        return os.path.join(self._directory, f"{_SAFE_KEY.sub('_', key)}.json")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a value.

        Args:
            key: Storage key
            default: Returned when the key is missing or unreadable

        Returns:
            Decoded JSON value or default
        """
        path = self._path(key)
        if not os.path.exists(path):
            return default

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable store entry '{key}': {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous one.

        The file is written to a temp path and renamed so a crash never
        leaves a half-written entry.
        """
        os.makedirs(self._directory, exist_ok=True)
        path = self._path(key)
        tmp_path = f"{path}.tmp"

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(value, f, default=str)
        os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)

    def has(self, key: str) -> bool:
        return os.path.exists(self._path(key))

    def keys(self) -> List[str]:
        if not os.path.isdir(self._directory):
            return []
        return sorted(
            name[: -len(".json")]
            for name in os.listdir(self._directory)
            if name.endswith(".json")
        )

    def clear(self, prefix: Optional[str] = None) -> None:
        """
        Remove every key, or only keys starting with prefix.

        Args:
            prefix: Optional key prefix filter
        """
        for key in self.keys():
            if prefix is None or key.startswith(prefix):
                self.remove(key)
