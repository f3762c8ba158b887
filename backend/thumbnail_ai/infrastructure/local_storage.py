"""Local Storage — client-side key-value persistence for the trial record.

Invariants:
    - get_item never raises for unreadable or corrupt data: it returns None
    - Values are JSON-safe (dict / list / str / int / float / bool / None)
    - Write failures raise StorageError (the caller decides fail-open or fail-closed)

Design Decisions:
    - JsonFileStorage keeps the whole key space in one JSON file, rewritten atomically
      via a temp file + os.replace
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from thumbnail_ai.core.errors import StorageError

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Process-local storage (tests, single-request flows)."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._items: dict[str, Any] = dict(initial or {})

    def get_item(self, key: str) -> Any | None:
        return self._items.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Storage persisted to a single JSON file on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get_item(self, key: str) -> Any | None:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            del items[key]
            self._write(items)

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning(f"Local storage unreadable, treating as empty: {e}")
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Local storage corrupt, treating as empty: {self.path}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, items: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(items, fh)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(str(e), "local_write")
