"""
Durable storage in a single JSON file.

The whole mapping is loaded once and rewritten on every change. Writes go to a
temporary file in the same directory that is then renamed over the target, so
a crash mid-write leaves the previous contents intact. A file that cannot be
parsed is logged and treated as empty; it is only replaced on the next write.
"""

import json
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from loguru import logger

from conversational_client.storage.base import KeyValueStorage


class JSONFileKeyValueStorage(KeyValueStorage):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not load storage file {self.path}: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} does not contain a JSON object, ignoring it")
            return {}
        return data

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Any | None:
        value = self._data.get(key)
        if value is None:
            return None
        # Hand out a copy so callers cannot mutate the cached mapping.
        return json.loads(json.dumps(value))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value))
        self._write()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))
