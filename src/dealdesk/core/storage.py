"""Client-side key/value storage.

Two flavours back the session:

- FileStorage: durable, a JSON object on disk that survives restarts
  (the token and cached user live here).
- MemoryStorage: ephemeral, lives as long as the process, which is the
  client's "browsing session" (the per-session login flag lives here).

Both store strings only; callers serialize anything richer themselves.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

from src.dealdesk.core.errors import StorageError

logger = structlog.get_logger(__name__)


class KeyValueStorage(Protocol):
    """Minimal string storage interface shared by both flavours."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage cleared when the process exits."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class FileStorage:
    """Durable storage persisted as a single JSON object.

    The file is loaded once at construction and rewritten atomically on
    every mutation. An unreadable or corrupt file is treated as empty so a
    damaged cache never blocks the client from starting.

    Args:
        path: Location of the JSON file. Parent directories are created.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._items: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        if key in self._items:
            del self._items[key]
            self._flush()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("storage.load_failed", path=str(self._path), exc_info=True)
            return {}
        if not isinstance(raw, dict):
            logger.warning("storage.unexpected_shape", path=str(self._path))
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".storage-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._items, f)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write client storage at {self._path}") from e
