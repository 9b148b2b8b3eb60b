import json
from collections.abc import Iterator
from typing import Any

from conversational_client.storage.base import KeyValueStorage


class InMemoryKeyValueStorage(KeyValueStorage):
    """
    Process-local storage.

    Values are kept JSON-encoded, exactly as a browser's localStorage keeps
    strings, so callers never share mutable state with the store and anything
    that would not survive a real backend fails here too.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {key: json.dumps(value) for key, value in (initial or {}).items()}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def raw(self, key: str) -> str | None:
        """Return the encoded value stored under 'key'."""
        return self._data.get(key)
