"""
Key-value persistence for commitments and submission records.

The distribution pipeline only needs three operations: put, get and list by
prefix. Writes overwrite (last writer wins), which keeps retried periods
safe. Two backends are provided:
- FileKeyValueStore: one file per key under a root directory
- InMemoryKeyValueStore: a dict, for tests and dry runs
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote, unquote


class KeyValueStore(ABC):
    """Minimal key-value interface used by the merkle store."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or None."""

    @abstractmethod
    def list(self, prefix: str = "") -> List[str]:
        """Return all keys starting with ``prefix``, sorted."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def list(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class FileKeyValueStore(KeyValueStore):
    """
    File-backed store, one file per key.

    Keys are percent-encoded into file names. Writes go to a temporary file
    in the same directory and are moved into place with os.replace, so a
    reader never observes a half-written value.
    """

    def __init__(self, root_dir: str):
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / quote(key, safe="")

    def put(self, key: str, value: str) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def list(self, prefix: str = "") -> List[str]:
        keys = [
            unquote(p.name)
            for p in self.root.iterdir()
            if p.is_file() and not p.name.startswith(".tmp-")
        ]
        return sorted(k for k in keys if k.startswith(prefix))
